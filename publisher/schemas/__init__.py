"""Pydantic schemas for digest records."""

from publisher.schemas.digest import (
    DigestRecord,
    DigestSummary,
    PublishedDigest,
)

__all__ = [
    "DigestRecord",
    "DigestSummary",
    "PublishedDigest",
]
