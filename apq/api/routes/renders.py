import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from apq.api.deps import get_quotes_repo, get_render_jobs_repo
from apq.api.models import RenderEnqueueRequest, RenderJobResponse, RenderStatusResponse
from apq.core.json import NoStoreJSONResponse
from apq.services import renders as render_service
from apq.services.errors import QuoteNotFoundError, RenderJobNotFoundError, RenderRetryNotAllowedError, TenantNotFoundError
from apq.storage.quotes_repo import QuotesRepository
from apq.storage.render_jobs_repo import RenderJobsRepository

router = APIRouter()
logger = logging.getLogger("apq.api.routes.renders")


@router.post("", response_model=RenderJobResponse)
async def enqueue_render(  # noqa: B008
  payload: RenderEnqueueRequest,
  jobs_repo: RenderJobsRepository = Depends(get_render_jobs_repo),  # noqa: B008
  quotes_repo: QuotesRepository = Depends(get_quotes_repo),  # noqa: B008
) -> RenderJobResponse:
  """Queue a concept render for a quote, reusing a queued or running job."""
  try:
    outcome = await render_service.enqueue_render(jobs_repo=jobs_repo, quotes_repo=quotes_repo, tenant_key=payload.tenant_key, quote_id=payload.quote_id, quote_version_id=payload.quote_version_id, shop_notes=payload.shop_notes)
  except (TenantNotFoundError, QuoteNotFoundError) as exc:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
  job = outcome.job
  return RenderJobResponse(job_id=job.id, status=job.status, attempt=job.attempt, already_existed=outcome.already_existed)


@router.post("/{job_id}/retry", response_model=RenderJobResponse)
async def retry_render(  # noqa: B008
  job_id: str,
  jobs_repo: RenderJobsRepository = Depends(get_render_jobs_repo),  # noqa: B008
) -> RenderJobResponse:
  """Queue a new attempt for a failed render."""
  try:
    job = await render_service.retry_render(jobs_repo=jobs_repo, job_id=job_id)
  except RenderJobNotFoundError as exc:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
  except RenderRetryNotAllowedError as exc:
    raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
  return RenderJobResponse(job_id=job.id, status=job.status, attempt=job.attempt, already_existed=False)


@router.get("/status", response_model=RenderStatusResponse, response_class=NoStoreJSONResponse)
async def get_render_status(  # noqa: B008
  tenant_key: str = Query(min_length=1),
  quote_id: str = Query(min_length=1),
  jobs_repo: RenderJobsRepository = Depends(get_render_jobs_repo),  # noqa: B008
  quotes_repo: QuotesRepository = Depends(get_quotes_repo),  # noqa: B008
) -> NoStoreJSONResponse:
  """Return the projected render status for a quote. Safe to poll."""
  try:
    view = await render_service.get_render_status(jobs_repo=jobs_repo, quotes_repo=quotes_repo, tenant_key=tenant_key, quote_id=quote_id)
  except (TenantNotFoundError, QuoteNotFoundError) as exc:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc), headers={"Cache-Control": "no-store"}) from exc
  return NoStoreJSONResponse(content=view.to_dict())
