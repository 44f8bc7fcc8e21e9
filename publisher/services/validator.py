"""Upstream payload validation.

Two policies are supported and one is chosen per deployment:

- STRICT rejects a payload missing any of date, news, lunar_date or tip.
- LENIENT substitutes today's date, an empty news list and placeholder
  text for the missing fields.

Both policies reject a malformed date or a non-list ``news`` and apply the
optional expected-date gate.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import Any

from publisher.errors import DateMismatchError, ValidationError
from publisher.schemas.digest import DigestRecord
from publisher.time_utils import is_valid_date_string, today_local

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("date", "news", "lunar_date", "tip")
PLACEHOLDER_TEXT = "暂无"


class ValidationPolicy(StrEnum):
    STRICT = "strict"
    LENIENT = "lenient"


class DataValidator:
    """Turns a raw upstream ``data`` object into a DigestRecord."""

    def __init__(
        self,
        policy: ValidationPolicy = ValidationPolicy.LENIENT,
        timezone: str = "Asia/Shanghai",
    ) -> None:
        self.policy = ValidationPolicy(policy)
        self._timezone = timezone

    def validate(
        self, raw: dict[str, Any], expected_date: str | None = None
    ) -> DigestRecord:
        """Validate raw upstream data.

        Args:
            raw: The ``data`` object returned by the upstream API.
            expected_date: When set, the upstream date must equal it.

        Returns:
            An immutable DigestRecord.

        Raises:
            ValidationError: Missing or malformed fields.
            DateMismatchError: Upstream date differs from expected_date.
        """
        news = raw.get("news")
        if news is not None and not isinstance(news, list):
            raise ValidationError("Field 'news' must be an array", ["news"])
        if news and not all(isinstance(item, str) for item in news):
            raise ValidationError("Field 'news' must contain only strings", ["news"])

        missing = [field for field in REQUIRED_FIELDS if _is_blank(raw.get(field))]
        if missing and self.policy is ValidationPolicy.STRICT:
            raise ValidationError(
                f"Upstream payload missing required fields: {', '.join(missing)}",
                missing,
            )
        if missing:
            logger.warning("Substituting fallbacks for missing fields: %s", missing)

        record_date = str(raw.get("date") or today_local(self._timezone).isoformat())
        if not is_valid_date_string(record_date):
            raise ValidationError(f"Invalid date format: {record_date!r}", ["date"])

        if expected_date is not None and record_date != expected_date:
            raise DateMismatchError(record_date, expected_date)

        return DigestRecord(
            date=record_date,
            news=() if "news" in missing else tuple(news),
            tip=_text_or_placeholder(raw.get("tip")),
            lunar_date=_text_or_placeholder(raw.get("lunar_date")),
            link=raw.get("link") or None,
            cover=raw.get("cover") or None,
            image=raw.get("image") or None,
        )


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, list):
        # A list of blank headlines carries no news.
        return not any(str(item).strip() for item in value)
    if isinstance(value, str):
        return len(value) == 0
    return False


def _text_or_placeholder(value: Any) -> str:
    if _is_blank(value):
        return PLACEHOLDER_TEXT
    return str(value)
