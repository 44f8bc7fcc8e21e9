"""Read-only endpoints over the local digest cache."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from publisher.config import get_settings
from publisher.errors import ValidationError
from publisher.schemas.digest import DigestSummary, PublishedDigest
from publisher.services.storage import LocalDigestCache
from publisher.time_utils import is_valid_date_string

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/digests", tags=["digests"])


def get_cache() -> LocalDigestCache:
    """Return the cache configured for this process."""
    return LocalDigestCache(get_settings().storage.local_data_dir)


def _load(cache: LocalDigestCache, digest_date: str) -> PublishedDigest | None:
    """Load a cached record, mapping a corrupt file to HTTP 500."""
    try:
        return cache.load(digest_date)
    except ValidationError as exc:
        logger.error("Failed to load cached digest: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Cached digest for {digest_date} is corrupt",
        ) from exc


@router.get("", response_model=list[DigestSummary])
async def list_digests(
    cache: LocalDigestCache = Depends(get_cache),
) -> list[DigestSummary]:
    """List cached digests, newest first. Corrupt entries are left out."""
    summaries: list[DigestSummary] = []
    for date in cache.list_dates():
        try:
            record = cache.load(date)
        except ValidationError as exc:
            logger.warning("Skipping cached digest %s: %s", date, exc)
            continue
        if record is not None:
            summaries.append(DigestSummary(date=record.date, image=record.image))
    return summaries


@router.get("/latest", response_model=PublishedDigest)
async def get_latest_digest(
    cache: LocalDigestCache = Depends(get_cache),
) -> PublishedDigest:
    """Return the most recent cached digest."""
    dates = cache.list_dates()
    record = _load(cache, dates[0]) if dates else None
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="No digest published yet"
        )
    return record


@router.get("/{digest_date}", response_model=PublishedDigest)
async def get_digest(
    digest_date: str,
    cache: LocalDigestCache = Depends(get_cache),
) -> PublishedDigest:
    """Return the cached digest for a date (YYYY-MM-DD)."""
    if not is_valid_date_string(digest_date):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Date must be formatted YYYY-MM-DD",
        )
    record = _load(cache, digest_date)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No digest for {digest_date}",
        )
    return record
