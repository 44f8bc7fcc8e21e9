"""Per-artifact publish decisions.

The JSON record is written only when its content differs from what is
stored for the same date; system timestamps are not part of the
comparison. The rendered image is always written.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from publisher.schemas.digest import TIMESTAMP_FIELDS, PublishedDigest
from publisher.services.remote_store import StoredFile

logger = logging.getLogger(__name__)


class Action(StrEnum):
    SKIP = "skip"
    WRITE = "write"


@dataclass(frozen=True)
class Decision:
    """Outcome for one artifact.

    Attributes:
        action: Whether to skip or write.
        revision: Revision marker to pass to the write (None means create).
        existing: Parsed stored JSON record, when one was found.
    """

    action: Action
    revision: str | None = None
    existing: dict[str, Any] | None = None


def decide_json(candidate: PublishedDigest, stored: StoredFile | None) -> Decision:
    """Decide whether the JSON record for candidate.date must be written."""
    if stored is None:
        logger.info("[%s] No stored record, creating", candidate.date)
        return Decision(Action.WRITE)

    existing = _parse_stored(stored.content)
    if existing is not None and _strip_timestamps(existing) == candidate.content():
        logger.info("[%s] Stored record is unchanged, skipping JSON write", candidate.date)
        return Decision(Action.SKIP, stored.revision, existing)

    logger.info("[%s] Stored record differs, overwriting", candidate.date)
    return Decision(Action.WRITE, stored.revision, existing)


def decide_image(stored: StoredFile | None) -> Decision:
    """Images are never compared: rendering is not byte-stable across runs."""
    return Decision(Action.WRITE, stored.revision if stored else None)


def _parse_stored(content: bytes) -> dict[str, Any] | None:
    try:
        parsed = json.loads(content.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        logger.warning("Stored record is not valid JSON, it will be replaced")
        return None
    return parsed if isinstance(parsed, dict) else None


def _strip_timestamps(record: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in record.items() if k not in TIMESTAMP_FIELDS}
