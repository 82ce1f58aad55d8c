"""Unit tests for render enqueue, retry and status services."""

from __future__ import annotations

import pytest

from apq.services.errors import QuoteNotFoundError, RenderJobNotFoundError, RenderRetryNotAllowedError, TenantNotFoundError
from apq.services.renders import enqueue_render, get_render_status, retry_render

TENANT_ID = "11111111-1111-4111-8111-111111111111"


@pytest.mark.anyio
async def test_enqueue_creates_first_attempt(jobs_repo, quotes_repo) -> None:
  outcome = await enqueue_render(jobs_repo=jobs_repo, quotes_repo=quotes_repo, tenant_key="acme-roofing", quote_id="quote-1", shop_notes="  add gutters  ")
  assert outcome.already_existed is False
  assert outcome.job.status == "queued"
  assert outcome.job.attempt == 1
  assert outcome.job.tenant_id == TENANT_ID
  assert outcome.job.shop_notes == "add gutters"


@pytest.mark.anyio
async def test_enqueue_reuses_active_job(jobs_repo, quotes_repo) -> None:
  first = await enqueue_render(jobs_repo=jobs_repo, quotes_repo=quotes_repo, tenant_key=TENANT_ID, quote_id="quote-1")
  second = await enqueue_render(jobs_repo=jobs_repo, quotes_repo=quotes_repo, tenant_key="acme-roofing", quote_id="quote-1")
  assert second.already_existed is True
  assert second.job.id == first.job.id
  assert len(jobs_repo.jobs) == 1


@pytest.mark.anyio
async def test_enqueue_rejects_foreign_quote_and_unknown_tenant(jobs_repo, quotes_repo) -> None:
  quotes_repo.add_tenant("22222222-2222-4222-8222-222222222222", "other-shop")
  with pytest.raises(QuoteNotFoundError):
    await enqueue_render(jobs_repo=jobs_repo, quotes_repo=quotes_repo, tenant_key="other-shop", quote_id="quote-1")
  with pytest.raises(TenantNotFoundError):
    await enqueue_render(jobs_repo=jobs_repo, quotes_repo=quotes_repo, tenant_key="nobody", quote_id="quote-1")
  assert jobs_repo.jobs == {}


@pytest.mark.anyio
async def test_enqueue_rejects_version_from_another_quote(jobs_repo, quotes_repo) -> None:
  quotes_repo.version_quotes["version-x"] = "quote-2"
  with pytest.raises(QuoteNotFoundError):
    await enqueue_render(jobs_repo=jobs_repo, quotes_repo=quotes_repo, tenant_key="acme-roofing", quote_id="quote-1", quote_version_id="version-x")


@pytest.mark.anyio
async def test_retry_creates_next_attempt_and_keeps_failed_row(jobs_repo) -> None:
  failed = jobs_repo.seed(status="failed", attempt=2, error="boom", shop_notes="notes", quote_version_id="version-1")
  retried = await retry_render(jobs_repo=jobs_repo, job_id=failed.id)
  assert retried.id != failed.id
  assert retried.status == "queued"
  assert retried.attempt == 3
  assert retried.shop_notes == "notes"
  assert retried.quote_version_id == "version-1"
  assert jobs_repo.jobs[failed.id].status == "failed"


@pytest.mark.anyio
@pytest.mark.parametrize("status", ["queued", "running", "rendered"])
async def test_retry_only_allows_failed_jobs(jobs_repo, status: str) -> None:
  job = jobs_repo.seed(status=status)
  with pytest.raises(RenderRetryNotAllowedError, match=status):
    await retry_render(jobs_repo=jobs_repo, job_id=job.id)


@pytest.mark.anyio
async def test_retry_unknown_job(jobs_repo) -> None:
  with pytest.raises(RenderJobNotFoundError):
    await retry_render(jobs_repo=jobs_repo, job_id="missing")


@pytest.mark.anyio
async def test_status_projects_latest_job(jobs_repo, quotes_repo) -> None:
  view = await get_render_status(jobs_repo=jobs_repo, quotes_repo=quotes_repo, tenant_key="acme-roofing", quote_id="quote-1")
  assert view.to_dict() == {"status": "idle", "imageUrl": None, "error": None}

  jobs_repo.seed(tenant_id=TENANT_ID, status="failed", error="Rendering is disabled for this tenant.")
  jobs_repo.seed(tenant_id=TENANT_ID, status="queued", attempt=2, image_url="https://img/2.png")
  view = await get_render_status(jobs_repo=jobs_repo, quotes_repo=quotes_repo, tenant_key="acme-roofing", quote_id="quote-1")
  assert view.status == "rendered"
  assert view.image_url == "https://img/2.png"
