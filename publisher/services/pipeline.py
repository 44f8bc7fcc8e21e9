"""Idempotent publish pipeline.

Stages, strictly sequential:
    1. Obtain the digest (upstream fetch + validation, or the local cache)
    2. Transform it into the publishable JSON record
    3. Write the JSON record unless an identical one is already stored
    4. Render the image and always overwrite it
    5. Refresh the local cache

Any failure aborts the run. JSON is written before the image, so a render
or image-write failure can leave a fresh JSON record next to a stale image.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing_extensions import TypedDict

from publisher.config import Settings
from publisher.errors import PipelineBusyError, StaleRevisionError
from publisher.schemas.digest import DigestRecord, PublishedDigest
from publisher.services.decision import Action, decide_image, decide_json
from publisher.services.fetcher import SourceFetcher
from publisher.services.remote_store import GitHubContentStore, RemoteStore
from publisher.services.renderer import ImageRenderer
from publisher.services.storage import LocalDigestCache
from publisher.services.transformer import stamp, transform
from publisher.services.validator import DataValidator, ValidationPolicy
from publisher.time_utils import today_local

logger = logging.getLogger(__name__)

# One run per process: runs share the remote image sha and the browser.
_run_lock = asyncio.Lock()


class PipelineResult(TypedDict):
    """Result returned by a pipeline run."""

    date: str
    json_action: str
    image_written: bool
    from_cache: bool


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


class PublishPipeline:
    """Wires the pipeline stages together for one target repository."""

    def __init__(
        self,
        settings: Settings,
        store: RemoteStore,
        fetcher: SourceFetcher | None = None,
        validator: DataValidator | None = None,
        renderer: ImageRenderer | None = None,
        cache: LocalDigestCache | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._settings = settings
        self._store = store
        self._fetcher = fetcher or SourceFetcher(settings.fetch)
        self._validator = validator or DataValidator(
            ValidationPolicy(settings.publish.validation_policy),
            timezone=settings.timezone,
        )
        self._renderer = renderer or ImageRenderer(settings.render)
        self._cache = cache or LocalDigestCache(settings.storage.local_data_dir)
        self._clock = clock

    def json_path(self, date: str) -> str:
        return f"{self._settings.storage.json_dir.strip('/')}/{date}.json"

    def image_path(self, date: str) -> str:
        return f"{self._settings.storage.image_dir.strip('/')}/{date}.png"

    async def run(
        self,
        expected_date: str | None = None,
        cached_date: str | None = None,
    ) -> PipelineResult:
        """Run the pipeline once.

        Args:
            expected_date: Upstream date must equal this; None disables the gate.
            cached_date: Publish the locally cached record for this date
                instead of calling upstream, when the cache holds it.

        Returns:
            Summary of what was written.
        """
        # Stage 1: Obtain digest
        record = self._load_cached(cached_date) if cached_date else None
        from_cache = record is not None
        if record is None:
            logger.info("Stage 1/5: Fetching digest from upstream")
            raw = await self._fetcher.fetch()
            record = self._validator.validate(raw, expected_date=expected_date)
        else:
            logger.info("Stage 1/5: Using cached digest for %s", cached_date)

        # Stage 2: Transform
        logger.info("Stage 2/5: Building publishable record for %s", record.date)
        candidate = transform(
            record,
            self._settings.effective_image_base_url,
            self._settings.effective_source_url,
        )

        # Stage 3: JSON record
        logger.info("Stage 3/5: Publishing JSON record")
        json_action, published = await self._publish_json(candidate)

        # Stage 4: Image
        logger.info("Stage 4/5: Rendering and publishing image")
        image = await self._renderer.render(published)
        await self._publish_image(published.date, image)

        # Stage 5: Local cache
        logger.info("Stage 5/5: Updating local cache")
        self._cache.save(published)

        result = PipelineResult(
            date=published.date,
            json_action=str(json_action),
            image_written=True,
            from_cache=from_cache,
        )
        logger.info("Publish pipeline complete: %s", result)
        return result

    def _load_cached(self, date: str) -> DigestRecord | None:
        cached = self._cache.load(date)
        if cached is None:
            logger.info("No cached digest for %s, falling back to upstream", date)
            return None
        return DigestRecord(
            date=cached.date,
            news=tuple(cached.news),
            tip=cached.tip,
            lunar_date=cached.lunar_date,
            link=cached.link or None,
        )

    async def _publish_json(
        self, candidate: PublishedDigest
    ) -> tuple[Action, PublishedDigest]:
        path = self.json_path(candidate.date)
        conflicts = 0
        while True:
            decision = decide_json(candidate, await self._store.read(path))
            if decision.action is Action.SKIP:
                try:
                    return Action.SKIP, PublishedDigest.model_validate(decision.existing)
                except ValueError:
                    logger.warning(
                        "[%s] Stored record has malformed timestamps, rewriting",
                        candidate.date,
                    )

            published = stamp(
                candidate, self._clock(), self._settings.timezone, decision.existing
            )
            try:
                await self._store.write(
                    path,
                    published.to_json_bytes(),
                    decision.revision,
                    f"Auto update 60s data: {candidate.date}.json",
                )
            except StaleRevisionError:
                conflicts += 1
                if conflicts > self._settings.publish.max_conflict_retries:
                    raise
                logger.warning("Revision conflict on %s, re-reading (retry %d)", path, conflicts)
                continue
            return Action.WRITE, published

    async def _publish_image(self, date: str, image: bytes) -> None:
        path = self.image_path(date)
        conflicts = 0
        while True:
            decision = decide_image(await self._store.read(path))
            try:
                await self._store.write(
                    path,
                    image,
                    decision.revision,
                    f"Auto generate 60s image: {date}.png",
                )
            except StaleRevisionError:
                conflicts += 1
                if conflicts > self._settings.publish.max_conflict_retries:
                    raise
                logger.warning("Revision conflict on %s, re-reading (retry %d)", path, conflicts)
                continue
            return


async def run_publish_pipeline(
    settings: Settings,
    target_date: str | None = None,
    from_cache: bool = False,
) -> PipelineResult:
    """Build a pipeline against the configured GitHub repository and run it.

    Args:
        settings: Validated application settings.
        target_date: Date to publish (YYYY-MM-DD); defaults to today.
        from_cache: Prefer the local cache over upstream for target_date.

    Raises:
        PipelineBusyError: Another run is already in progress in this process.
    """
    if _run_lock.locked():
        raise PipelineBusyError("A publish run is already in progress")

    async with _run_lock:
        return await _run_locked(settings, target_date, from_cache)


async def _run_locked(
    settings: Settings, target_date: str | None, from_cache: bool
) -> PipelineResult:
    today = today_local(settings.timezone).isoformat()
    date = target_date or today
    if target_date is not None:
        expected_date: str | None = target_date
    else:
        expected_date = today if settings.publish.require_today else None

    # Past dates cannot be fetched again; republish them from the cache.
    use_cache = from_cache or date != today
    logger.info("Starting publish pipeline for %s", date)

    async with GitHubContentStore(settings) as store:
        pipeline = PublishPipeline(settings, store)
        return await pipeline.run(
            expected_date=expected_date,
            cached_date=date if use_cache else None,
        )
