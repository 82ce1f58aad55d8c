"""Storage interface for render jobs."""

from __future__ import annotations

from typing import Protocol

from apq.renders.models import ClaimedRenderJob, RenderJobRecord


class RenderJobsRepository(Protocol):
  """Repository contract for render job persistence.

  Rows move `queued -> running -> rendered | failed` and never back. Only `claim_one_queued`
  moves a row to running, and the terminal writes only touch rows that are still running.
  """

  async def create_job(self, record: RenderJobRecord) -> RenderJobRecord:
    """Persist a new queued job and return it with server defaults filled in."""

  async def get_job(self, job_id: str) -> RenderJobRecord | None:
    """Fetch a job by identifier."""

  async def find_active_for_quote(self, quote_id: str) -> RenderJobRecord | None:
    """Return the newest queued or running job for a quote."""

  async def latest_for_quote(self, quote_id: str) -> RenderJobRecord | None:
    """Return the newest job for a quote regardless of status."""

  async def max_attempt(self, quote_id: str) -> int:
    """Return the highest attempt number recorded for a quote, or 0."""

  async def claim_one_queued(self) -> ClaimedRenderJob | None:
    """Atomically move the oldest queued job to running and return it hydrated."""

  async def mark_rendered(self, job_id: str, *, image_url: str, prompt: str | None) -> bool:
    """Record success on a running job. Returns False when the row was not running."""

  async def mark_failed(self, job_id: str, *, error: str, prompt: str | None = None) -> bool:
    """Record failure on a running job. Returns False when the row was not running."""
