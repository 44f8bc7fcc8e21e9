"""Digest record schemas.

DigestRecord is the validated upstream payload; PublishedDigest is the JSON
document committed to the target repository and served by the read API.
"""

from __future__ import annotations

import json

from pydantic import BaseModel, ConfigDict, Field

TIMESTAMP_FIELDS = frozenset({"created", "created_at", "updated", "updated_at"})


class DigestRecord(BaseModel):
    """Validated daily digest as received from upstream."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    date: str
    news_items: tuple[str, ...] = Field(default=(), alias="news")
    tip: str = ""
    lunar_date: str = ""
    source_url: str | None = Field(default=None, alias="link")
    cover_url: str | None = Field(default=None, alias="cover")
    image_url: str | None = Field(default=None, alias="image")


class PublishedDigest(BaseModel):
    """Persisted JSON form of a digest, keyed by date."""

    model_config = ConfigDict(frozen=True)

    date: str
    news: list[str]
    tip: str
    lunar_date: str
    image: str
    link: str = ""
    source: str
    created: str | None = None
    created_at: int | None = None
    updated: str | None = None
    updated_at: int | None = None

    def content(self) -> dict:
        """Return the record without system timestamps, for equality checks."""
        return self.model_dump(exclude=set(TIMESTAMP_FIELDS))

    def to_json_bytes(self) -> bytes:
        """Serialize as UTF-8 JSON with stable key order and a trailing newline."""
        payload = self.model_dump(exclude_none=True)
        return (json.dumps(payload, ensure_ascii=False, indent=2) + "\n").encode(
            "utf-8"
        )

    @classmethod
    def from_json_bytes(cls, raw: bytes) -> PublishedDigest:
        """Parse a stored JSON document."""
        return cls.model_validate(json.loads(raw.decode("utf-8")))


class DigestSummary(BaseModel):
    """Entry in the cached digest listing."""

    date: str
    image: str
