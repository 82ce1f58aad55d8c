"""Single-shot processor for queued render jobs."""

from __future__ import annotations

import asyncio
import logging

from apq.ai.errors import ImageGenerationTimeout, is_transient_error
from apq.ai.providers import ImageModel
from apq.config import Settings
from apq.renders.models import ClaimedRenderJob, ProcessResult
from apq.renders.prompts import build_render_prompt
from apq.services.render_storage import RenderImageStore
from apq.storage.render_jobs_repo import RenderJobsRepository

RENDERING_DISABLED_MESSAGE = "Rendering is disabled for this tenant."
DEFAULT_FAILURE_MESSAGE = "Render failed"
MAX_ERROR_LENGTH = 2000


def describe_failure(exc: BaseException) -> str:
  """Pick the most useful human-readable message from an exception chain."""
  message = str(exc).strip()
  if not message:
    cause = exc.__cause__ or exc.__context__
    message = str(cause).strip() if cause is not None else ""
  if not message:
    message = type(exc).__name__
  return (message or DEFAULT_FAILURE_MESSAGE)[:MAX_ERROR_LENGTH]


class RenderWorker:
  """Claims one queued render job and drives it to a terminal state."""

  def __init__(self, *, jobs_repo: RenderJobsRepository, image_model: ImageModel, image_store: RenderImageStore, size: str = "1024x1024", timeout_seconds: float = 120) -> None:
    self._jobs_repo = jobs_repo
    self._image_model = image_model
    self._image_store = image_store
    self._size = size
    self._timeout_seconds = timeout_seconds
    self._logger = logging.getLogger(__name__)

  @classmethod
  def from_settings(cls, settings: Settings, *, jobs_repo: RenderJobsRepository, image_model: ImageModel, image_store: RenderImageStore) -> RenderWorker:
    return cls(jobs_repo=jobs_repo, image_model=image_model, image_store=image_store, size=settings.render_size, timeout_seconds=settings.render_timeout_seconds)

  async def claim_one_queued_job(self) -> ClaimedRenderJob | None:
    return await self._jobs_repo.claim_one_queued()

  async def process_one_queued_render(self) -> ProcessResult:
    """Process at most one job. Never raises."""
    try:
      job = await self.claim_one_queued_job()
    except Exception as exc:  # noqa: BLE001
      self._logger.error("Render claim failed.", exc_info=True)
      return ProcessResult(ok=False, did_work=False, message="Claim failed.", error=describe_failure(exc))

    if job is None:
      return ProcessResult(ok=True, did_work=False, message="No queued jobs.")

    self._logger.info("Claimed render job %s (quote %s, attempt %d).", job.id, job.quote_id, job.attempt)

    if not job.rendering_allowed:
      self._logger.info("Tenant %s has rendering disabled; failing job %s.", job.tenant_id, job.id)
      recorded = await self._fail(job, RENDERING_DISABLED_MESSAGE, prompt=None)
      if not recorded:
        return self._result(job, ok=False, message="Claimed job but could not record the disabled failure.", error=RENDERING_DISABLED_MESSAGE)
      return self._result(job, ok=True, message="Claimed job but tenant has rendering disabled.")

    prompt = build_render_prompt(job)
    try:
      image_url = await self._generate_and_store(job, prompt)
    except Exception as exc:  # noqa: BLE001
      message = describe_failure(exc)
      self._logger.error("Render job %s failed (transient=%s): %s", job.id, is_transient_error(exc), message, exc_info=True)
      await self._fail(job, message, prompt=prompt)
      return self._result(job, ok=False, message="Job failed.", error=message)

    try:
      applied = await self._jobs_repo.mark_rendered(job.id, image_url=image_url, prompt=prompt)
    except Exception as exc:  # noqa: BLE001
      message = describe_failure(exc)
      self._logger.error("Recording render success failed for job %s.", job.id, exc_info=True)
      await self._fail(job, message, prompt=prompt)
      return self._result(job, ok=False, message="Job failed.", error=message)

    if not applied:
      self._logger.warning("Render job %s was no longer running; result discarded.", job.id)
    else:
      self._logger.info("Rendered job %s.", job.id)
    return self._result(job, ok=True, message="Rendered 1 job.")

  async def _generate_and_store(self, job: ClaimedRenderJob, prompt: str) -> str:
    try:
      image_bytes = await asyncio.wait_for(self._image_model.generate_image(prompt, self._size), timeout=self._timeout_seconds)
    except TimeoutError as exc:
      raise ImageGenerationTimeout(f"Image generation timed out after {self._timeout_seconds:g} seconds.") from exc
    return await self._image_store.save(image_bytes, job_id=job.id, tenant_id=job.tenant_id)

  async def _fail(self, job: ClaimedRenderJob, message: str, *, prompt: str | None) -> bool:
    """Write the failed state; False when the row did not change."""
    try:
      applied = await self._jobs_repo.mark_failed(job.id, error=message[:MAX_ERROR_LENGTH], prompt=prompt)
    except Exception:  # noqa: BLE001
      # The row stays running; orphan recovery happens outside the worker.
      self._logger.error("Recording render failure failed for job %s.", job.id, exc_info=True)
      return False
    if not applied:
      self._logger.warning("Render job %s was no longer running; failure not recorded.", job.id)
    return applied

  def _result(self, job: ClaimedRenderJob, *, ok: bool, message: str, error: str | None = None) -> ProcessResult:
    return ProcessResult(ok=ok, did_work=True, message=message, job_id=job.id, quote_id=job.quote_id, quote_version_id=job.quote_version_id, error=error)
