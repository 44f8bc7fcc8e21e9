"""Scheduler configuration tests."""

from unittest.mock import AsyncMock, MagicMock, patch
from zoneinfo import ZoneInfo

import pytest

from publisher.config import Settings
from publisher.errors import FetchError
from publisher.scheduler import _run_daily_publish_job, start_scheduler, stop_scheduler


@patch("publisher.scheduler.get_settings")
@patch("publisher.scheduler.AsyncIOScheduler")
def test_start_scheduler_uses_configured_timezone(
    mock_scheduler_cls: MagicMock,
    mock_get_settings: MagicMock,
) -> None:
    scheduler = MagicMock()
    mock_scheduler_cls.return_value = scheduler
    mock_get_settings.return_value = Settings(
        timezone="Asia/Shanghai",
        schedule={"daily_pipeline_hour": 7, "daily_pipeline_minute": 45},
    )

    start_scheduler()

    tz = ZoneInfo("Asia/Shanghai")
    mock_scheduler_cls.assert_called_once_with(timezone=tz)
    job = scheduler.add_job.call_args
    assert job.kwargs["timezone"] == tz
    assert job.kwargs["hour"] == 7
    assert job.kwargs["minute"] == 45
    scheduler.start.assert_called_once()

    stop_scheduler()
    scheduler.shutdown.assert_called_once_with(wait=False)


@pytest.mark.asyncio
@patch("publisher.scheduler.run_publish_pipeline", new_callable=AsyncMock)
@patch("publisher.scheduler.get_settings")
async def test_daily_job_swallows_pipeline_failure(
    mock_get_settings: MagicMock,
    mock_run: AsyncMock,
) -> None:
    mock_get_settings.return_value = Settings(
        gh_token="t", repo_owner="o", repo_name="r"
    )
    mock_run.side_effect = FetchError("HTTP 503")

    await _run_daily_publish_job()

    mock_run.assert_awaited_once()


@pytest.mark.asyncio
@patch("publisher.scheduler.run_publish_pipeline", new_callable=AsyncMock)
@patch("publisher.scheduler.get_settings")
async def test_daily_job_skips_without_credentials(
    mock_get_settings: MagicMock,
    mock_run: AsyncMock,
) -> None:
    mock_get_settings.return_value = Settings(gh_token="", repo_owner="", repo_name="")

    await _run_daily_publish_job()

    mock_run.assert_not_awaited()
