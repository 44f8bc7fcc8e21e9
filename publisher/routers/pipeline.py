"""Pipeline route handler for manual trigger."""

import logging

from fastapi import APIRouter, Header, HTTPException, Query, status

from publisher.config import get_settings, require_publish_settings
from publisher.errors import DateMismatchError, PipelineBusyError, PublisherError
from publisher.services.pipeline import PipelineResult, run_publish_pipeline
from publisher.time_utils import is_valid_date_string

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/pipeline", tags=["pipeline"])


@router.post("/run", response_model=PipelineResult)
async def trigger_pipeline(
    target_date: str | None = Query(default=None, alias="date"),
    from_cache: bool = Query(default=False),
    x_pipeline_token: str | None = Header(default=None, alias="X-Pipeline-Token"),
) -> PipelineResult:
    """Manually trigger one publish run.

    Returns 409 when another run is in progress or when upstream has not
    published the expected date yet.
    """
    logger.info("Manual pipeline trigger requested")
    settings = get_settings()
    expected_token = settings.pipeline_trigger_token
    if expected_token and x_pipeline_token != expected_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid pipeline trigger token",
        )
    if target_date is not None and not is_valid_date_string(target_date):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Date must be formatted YYYY-MM-DD",
        )

    try:
        require_publish_settings(settings)
        result = await run_publish_pipeline(settings, target_date, from_cache)
    except PipelineBusyError as exc:
        logger.warning("Pipeline trigger refused: %s", exc)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except DateMismatchError as exc:
        logger.warning("Pipeline skipped: %s", exc)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except PublisherError as exc:
        logger.exception("Pipeline execution failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Pipeline execution failed: {type(exc).__name__}",
        ) from exc
    return result
