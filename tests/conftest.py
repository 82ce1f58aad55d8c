"""Shared test configuration and in-memory repository doubles."""

from __future__ import annotations

import asyncio
import os
import uuid
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from typing import Any

# Required settings must exist before the application is imported.
os.environ.setdefault("APQ_ALLOWED_ORIGINS", "http://localhost")
os.environ.setdefault("APQ_RENDER_PROVIDER", "dummy")
os.environ.setdefault("APQ_WORKER_SECRET", "test-worker-secret")
os.environ.setdefault("APQ_RENDER_SIZE", "64x64")

import pytest  # noqa: E402

from apq.pricing.models import PricingPolicy  # noqa: E402
from apq.renders.models import ACTIVE_STATUSES, ClaimedRenderJob, RenderJobRecord  # noqa: E402
from apq.storage.quotes_repo import PricingSnapshot, QuoteVersionRecord  # noqa: E402

_EPOCH = datetime(2026, 1, 1, tzinfo=UTC)


@pytest.fixture
def anyio_backend() -> str:
  return "asyncio"


class InMemoryRenderJobsRepo:
  """In-memory render job store with the same state rules as the Postgres repository."""

  def __init__(self) -> None:
    self.jobs: dict[str, RenderJobRecord] = {}
    self.tenant_settings: dict[str, dict[str, Any]] = {}
    self.quote_inputs: dict[str, Any] = {}
    self.versions: dict[str, tuple[int, Any]] = {}
    self._clock = 0

  def _tick(self) -> datetime:
    self._clock += 1
    return _EPOCH + timedelta(seconds=self._clock)

  def seed(self, *, tenant_id: str = "tenant-1", quote_id: str = "quote-1", status: str = "queued", attempt: int = 1, **fields: Any) -> RenderJobRecord:
    now = self._tick()
    record = RenderJobRecord(id=fields.pop("id", str(uuid.uuid4())), tenant_id=tenant_id, quote_id=quote_id, status=status, attempt=attempt, created_at=now, updated_at=now, **fields)  # type: ignore[arg-type]
    self.jobs[record.id] = record
    return record

  async def create_job(self, record: RenderJobRecord) -> RenderJobRecord:
    now = self._tick()
    stored = replace(record, created_at=now, updated_at=now)
    self.jobs[stored.id] = stored
    return stored

  async def get_job(self, job_id: str) -> RenderJobRecord | None:
    return self.jobs.get(job_id)

  async def find_active_for_quote(self, quote_id: str) -> RenderJobRecord | None:
    active = [job for job in self.jobs.values() if job.quote_id == quote_id and job.status in ACTIVE_STATUSES]
    return max(active, key=lambda job: job.created_at) if active else None

  async def latest_for_quote(self, quote_id: str) -> RenderJobRecord | None:
    jobs = [job for job in self.jobs.values() if job.quote_id == quote_id]
    return max(jobs, key=lambda job: (job.created_at, job.attempt)) if jobs else None

  async def max_attempt(self, quote_id: str) -> int:
    return max((job.attempt for job in self.jobs.values() if job.quote_id == quote_id), default=0)

  async def claim_one_queued(self) -> ClaimedRenderJob | None:
    # Yield first so concurrent claimers interleave; the pick-and-flip below has no await.
    await asyncio.sleep(0)
    queued = sorted((job for job in self.jobs.values() if job.status == "queued"), key=lambda job: (job.created_at, job.id))
    if not queued:
      return None
    job = queued[0]
    now = self._tick()
    self.jobs[job.id] = replace(job, status="running", started_at=now, updated_at=now)

    settings = self.tenant_settings.get(job.tenant_id, {})
    version_number, version_output = self.versions.get(job.quote_version_id or "", (None, None))
    return ClaimedRenderJob(
      id=job.id,
      tenant_id=job.tenant_id,
      quote_id=job.quote_id,
      quote_version_id=job.quote_version_id,
      attempt=job.attempt,
      shop_notes=job.shop_notes,
      rendering_enabled=settings.get("rendering_enabled"),
      ai_rendering_enabled=settings.get("ai_rendering_enabled"),
      rendering_prompt_addendum=settings.get("rendering_prompt_addendum"),
      rendering_negative_guidance=settings.get("rendering_negative_guidance"),
      version_number=version_number,
      version_output=version_output,
      quote_input=self.quote_inputs.get(job.quote_id),
    )

  async def mark_rendered(self, job_id: str, *, image_url: str, prompt: str | None) -> bool:
    return self._terminal(job_id, status="rendered", image_url=image_url, error=None, prompt=prompt)

  async def mark_failed(self, job_id: str, *, error: str, prompt: str | None = None) -> bool:
    fields: dict[str, Any] = {"status": "failed", "error": error}
    if prompt is not None:
      fields["prompt"] = prompt
    return self._terminal(job_id, **fields)

  def _terminal(self, job_id: str, **fields: Any) -> bool:
    job = self.jobs.get(job_id)
    if job is None or job.status != "running":
      return False
    now = self._tick()
    self.jobs[job_id] = replace(job, completed_at=now, updated_at=now, **fields)
    return True


class InMemoryQuotesRepo:
  """In-memory tenants, quotes and versions."""

  def __init__(self) -> None:
    self.tenants: dict[str, str] = {}
    self.quotes: dict[str, str] = {}
    self.quote_outputs: dict[str, dict[str, Any]] = {}
    self.version_quotes: dict[str, str] = {}
    self.versions: list[QuoteVersionRecord] = []
    self.snapshots: dict[str, PricingSnapshot] = {}

  def add_tenant(self, tenant_id: str, slug: str, snapshot: PricingSnapshot | None = None) -> None:
    self.tenants[tenant_id] = slug
    self.snapshots[tenant_id] = snapshot or PricingSnapshot(policy=PricingPolicy(), config=None, rules=None)

  def add_quote(self, quote_id: str, tenant_id: str) -> None:
    self.quotes[quote_id] = tenant_id

  async def resolve_tenant_id(self, tenant_key: str) -> str | None:
    key = (tenant_key or "").strip()
    if key in self.tenants:
      return key
    return next((tenant_id for tenant_id, slug in self.tenants.items() if slug == key), None)

  async def get_quote_tenant_id(self, quote_id: str) -> str | None:
    return self.quotes.get(quote_id)

  async def get_version_quote_id(self, version_id: str) -> str | None:
    return self.version_quotes.get(version_id)

  async def load_pricing_snapshot(self, tenant_id: str) -> PricingSnapshot:
    return self.snapshots[tenant_id]

  async def create_version(self, *, tenant_id: str, quote_id: str, ai_mode: str | None, source: str, created_by: str, reason: str | None, output: dict[str, Any], meta: dict[str, Any]) -> QuoteVersionRecord:
    next_version = max((v.version for v in self.versions if v.quote_id == quote_id), default=0) + 1
    self.versions = [replace(v, is_active=False) if v.quote_id == quote_id else v for v in self.versions]
    record = QuoteVersionRecord(id=str(uuid.uuid4()), tenant_id=tenant_id, quote_id=quote_id, version=next_version, ai_mode=ai_mode, source=source, created_by=created_by, reason=reason, output=output, meta=meta, is_active=True)
    self.versions.append(record)
    self.version_quotes[record.id] = quote_id
    self.quote_outputs[quote_id] = output
    return record


@pytest.fixture
def jobs_repo() -> InMemoryRenderJobsRepo:
  return InMemoryRenderJobsRepo()


@pytest.fixture
def quotes_repo() -> InMemoryQuotesRepo:
  repo = InMemoryQuotesRepo()
  repo.add_tenant("11111111-1111-4111-8111-111111111111", "acme-roofing")
  repo.add_quote("quote-1", "11111111-1111-4111-8111-111111111111")
  return repo
