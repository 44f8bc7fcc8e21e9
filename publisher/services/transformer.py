"""Derive the persisted JSON document from a validated digest."""

from __future__ import annotations

from datetime import datetime

from publisher.schemas.digest import DigestRecord, PublishedDigest
from publisher.time_utils import epoch_millis, format_local_time


def image_url_for(image_base_url: str, date: str) -> str:
    return f"{image_base_url.rstrip('/')}/{date}.png"


def transform(
    record: DigestRecord, image_base_url: str, source: str
) -> PublishedDigest:
    """Build the publishable record.

    The upstream cover is dropped, the image reference is rewritten to the
    publish target and a source attribution is added. No timestamps are set
    here; see stamp().
    """
    return PublishedDigest(
        date=record.date,
        news=list(record.news_items),
        tip=record.tip,
        lunar_date=record.lunar_date,
        image=image_url_for(image_base_url, record.date),
        link=record.source_url or "",
        source=source,
    )


def stamp(
    candidate: PublishedDigest,
    now: datetime,
    timezone: str,
    existing: dict | None = None,
) -> PublishedDigest:
    """Return a copy of candidate with system timestamps applied.

    Creation timestamps are carried over from an existing stored record when
    it has them with the right types; update timestamps are always set to now.
    """
    local_now = format_local_time(now, timezone)
    millis = epoch_millis(now)
    existing = existing or {}
    created = existing.get("created")
    created_at = existing.get("created_at")
    if not isinstance(created, str) or not created:
        created = local_now
    if not isinstance(created_at, int) or isinstance(created_at, bool):
        created_at = millis
    return candidate.model_copy(
        update={
            "created": created,
            "created_at": created_at,
            "updated": local_now,
            "updated_at": millis,
        }
    )
