"""Integration tests for the render enqueue, retry and status routes."""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from apq.api.deps import get_quotes_repo, get_render_jobs_repo
from apq.main import app

TENANT_ID = "11111111-1111-4111-8111-111111111111"


@pytest.fixture
async def client(jobs_repo, quotes_repo):
  app.dependency_overrides[get_render_jobs_repo] = lambda: jobs_repo
  app.dependency_overrides[get_quotes_repo] = lambda: quotes_repo
  async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
    yield ac
  app.dependency_overrides.clear()


@pytest.mark.anyio
async def test_enqueue_then_reuse_active_job(client: AsyncClient, jobs_repo) -> None:
  first = await client.post("/v1/renders", json={"tenant_key": "acme-roofing", "quote_id": "quote-1", "shop_notes": "Cedar"})
  assert first.status_code == 200
  body = first.json()
  assert body["status"] == "queued"
  assert body["attempt"] == 1
  assert body["already_existed"] is False

  second = await client.post("/v1/renders", json={"tenant_key": TENANT_ID, "quote_id": "quote-1"})
  assert second.status_code == 200
  assert second.json()["job_id"] == body["job_id"]
  assert second.json()["already_existed"] is True
  assert len(jobs_repo.jobs) == 1


@pytest.mark.anyio
async def test_enqueue_unknown_quote_is_404(client: AsyncClient) -> None:
  response = await client.post("/v1/renders", json={"tenant_key": "acme-roofing", "quote_id": "quote-404"})
  assert response.status_code == 404
  assert response.json()["detail"] == "Quote not found."
  assert response.json()["request_id"] == response.headers["x-request-id"]


@pytest.mark.anyio
async def test_enqueue_validation_errors_do_not_echo_input(client: AsyncClient) -> None:
  response = await client.post("/v1/renders", json={"tenant_key": "", "quote_id": "quote-1", "unexpected": "secret-value"})
  assert response.status_code == 422
  assert "secret-value" not in response.text
  assert all("input" not in error for error in response.json()["detail"])


@pytest.mark.anyio
async def test_retry_failed_job(client: AsyncClient, jobs_repo) -> None:
  failed = jobs_repo.seed(tenant_id=TENANT_ID, status="failed", error="boom")

  response = await client.post(f"/v1/renders/{failed.id}/retry")

  assert response.status_code == 200
  body = response.json()
  assert body["status"] == "queued"
  assert body["attempt"] == 2
  assert body["job_id"] != failed.id
  assert jobs_repo.jobs[failed.id].status == "failed"


@pytest.mark.anyio
async def test_retry_conflicts_for_non_failed_job(client: AsyncClient, jobs_repo) -> None:
  running = jobs_repo.seed(tenant_id=TENANT_ID, status="running")
  response = await client.post(f"/v1/renders/{running.id}/retry")
  assert response.status_code == 409
  assert "only failed jobs can be retried" in response.json()["detail"]

  missing = await client.post("/v1/renders/does-not-exist/retry")
  assert missing.status_code == 404


@pytest.mark.anyio
async def test_status_is_not_cacheable(client: AsyncClient, jobs_repo) -> None:
  idle = await client.get("/v1/renders/status", params={"tenant_key": "acme-roofing", "quote_id": "quote-1"})
  assert idle.status_code == 200
  assert idle.json() == {"status": "idle", "imageUrl": None, "error": None}
  assert idle.headers["cache-control"] == "no-store"

  jobs_repo.seed(tenant_id=TENANT_ID, status="failed", error="Rendering is disabled for this tenant.")
  failed = await client.get("/v1/renders/status", params={"tenant_key": "acme-roofing", "quote_id": "quote-1"})
  assert failed.json()["status"] == "failed"
  assert "disabled" in failed.json()["error"]


@pytest.mark.anyio
async def test_status_exposes_image_url_for_stale_queued_row(client: AsyncClient, jobs_repo) -> None:
  jobs_repo.seed(tenant_id=TENANT_ID, status="queued", image_url="https://img/stale.png")

  response = await client.get("/v1/renders/status", params={"tenant_key": "acme-roofing", "quote_id": "quote-1"})

  assert response.status_code == 200
  assert response.json() == {"status": "rendered", "imageUrl": "https://img/stale.png", "error": None}
  assert "image_url" not in response.json()


@pytest.mark.anyio
async def test_status_by_tenant_id_matches_slug(client: AsyncClient, jobs_repo) -> None:
  jobs_repo.seed(tenant_id=TENANT_ID, status="running")

  by_slug = await client.get("/v1/renders/status", params={"tenant_key": "acme-roofing", "quote_id": "quote-1"})
  by_id = await client.get("/v1/renders/status", params={"tenant_key": TENANT_ID, "quote_id": "quote-1"})

  assert by_slug.status_code == by_id.status_code == 200
  assert by_id.json() == by_slug.json() == {"status": "running", "imageUrl": None, "error": None}


@pytest.mark.anyio
async def test_status_for_unknown_tenant_is_404_and_not_cacheable(client: AsyncClient) -> None:
  response = await client.get("/v1/renders/status", params={"tenant_key": "nobody", "quote_id": "quote-1"})
  assert response.status_code == 404
  assert response.headers["cache-control"] == "no-store"
  assert response.headers["x-content-type-options"] == "nosniff"


@pytest.mark.anyio
async def test_health(client: AsyncClient) -> None:
  response = await client.get("/health")
  assert response.status_code == 200
  assert response.json()["status"] == "ok"
