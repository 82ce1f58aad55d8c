import logging
from dataclasses import dataclass

from apq.renders.models import RenderJobRecord
from apq.renders.status import RenderStatusView, project_render_status
from apq.services.errors import QuoteNotFoundError, RenderJobNotFoundError, RenderRetryNotAllowedError, TenantNotFoundError
from apq.storage.quotes_repo import QuotesRepository
from apq.storage.render_jobs_repo import RenderJobsRepository
from apq.utils.ids import generate_job_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnqueueOutcome:
  job: RenderJobRecord
  already_existed: bool


async def _resolve_tenant(quotes_repo: QuotesRepository, tenant_key: str) -> str:
  tenant_id = await quotes_repo.resolve_tenant_id(tenant_key)
  if tenant_id is None:
    raise TenantNotFoundError(tenant_key)
  return tenant_id


async def _require_quote_for_tenant(quotes_repo: QuotesRepository, *, tenant_id: str, quote_id: str) -> None:
  owner = await quotes_repo.get_quote_tenant_id(quote_id)
  # A quote owned by another tenant is reported exactly like a missing one.
  if owner is None or owner != tenant_id:
    raise QuoteNotFoundError(quote_id)


async def enqueue_render(
  *,
  jobs_repo: RenderJobsRepository,
  quotes_repo: QuotesRepository,
  tenant_key: str,
  quote_id: str,
  quote_version_id: str | None = None,
  shop_notes: str | None = None,
) -> EnqueueOutcome:
  """Queue a render for a quote unless one is already queued or running."""
  tenant_id = await _resolve_tenant(quotes_repo, tenant_key)
  await _require_quote_for_tenant(quotes_repo, tenant_id=tenant_id, quote_id=quote_id)

  if quote_version_id is not None:
    version_quote = await quotes_repo.get_version_quote_id(quote_version_id)
    if version_quote != quote_id:
      raise QuoteNotFoundError(quote_id)

  existing = await jobs_repo.find_active_for_quote(quote_id)
  if existing is not None:
    logger.info("Render already %s for quote %s (job %s).", existing.status, quote_id, existing.id)
    return EnqueueOutcome(job=existing, already_existed=True)

  notes = (shop_notes or "").strip() or None
  record = RenderJobRecord(id=generate_job_id(), tenant_id=tenant_id, quote_id=quote_id, quote_version_id=quote_version_id, status="queued", attempt=1, shop_notes=notes)
  created = await jobs_repo.create_job(record)
  logger.info("Queued render job %s for quote %s.", created.id, quote_id)
  return EnqueueOutcome(job=created, already_existed=False)


async def retry_render(*, jobs_repo: RenderJobsRepository, job_id: str) -> RenderJobRecord:
  """Queue a new attempt copied from a failed job. The failed row is left untouched."""
  job = await jobs_repo.get_job(job_id)
  if job is None:
    raise RenderJobNotFoundError(job_id)
  if job.status != "failed":
    raise RenderRetryNotAllowedError(job_id, job.status)

  attempt = await jobs_repo.max_attempt(job.quote_id) + 1
  record = RenderJobRecord(
    id=generate_job_id(),
    tenant_id=job.tenant_id,
    quote_id=job.quote_id,
    quote_version_id=job.quote_version_id,
    status="queued",
    attempt=attempt,
    shop_notes=job.shop_notes,
  )
  created = await jobs_repo.create_job(record)
  logger.info("Queued render retry %s for quote %s (attempt %d, from job %s).", created.id, job.quote_id, attempt, job_id)
  return created


async def get_render_status(*, jobs_repo: RenderJobsRepository, quotes_repo: QuotesRepository, tenant_key: str, quote_id: str) -> RenderStatusView:
  tenant_id = await _resolve_tenant(quotes_repo, tenant_key)
  await _require_quote_for_tenant(quotes_repo, tenant_id=tenant_id, quote_id=quote_id)

  job = await jobs_repo.latest_for_quote(quote_id)
  if job is None:
    return RenderStatusView(status="idle")
  return project_render_status(job.status, job.image_url, job.error)
