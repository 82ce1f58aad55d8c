"""Tests for the local render worker poller."""

from __future__ import annotations

import httpx
import pytest

from scripts.render_worker import run


def _client(responses: list[httpx.Response], seen: list[httpx.Request]) -> httpx.Client:
  def handler(request: httpx.Request) -> httpx.Response:
    seen.append(request)
    return responses.pop(0)

  return httpx.Client(base_url="http://worker.test", transport=httpx.MockTransport(handler))


def test_poller_stops_when_queue_is_empty() -> None:
  seen: list[httpx.Request] = []
  responses = [
    httpx.Response(200, json={"ok": True, "did_work": True, "message": "Rendered 1 job."}),
    httpx.Response(500, json={"ok": False, "did_work": True, "message": "Job failed.", "error": "quota"}),
    httpx.Response(200, json={"ok": True, "did_work": False, "message": "No queued jobs."}),
  ]
  with _client(responses, seen) as client:
    worked = run(base_url="http://worker.test", secret="s3cret", max_ticks=10, client=client)

  assert worked == 2
  assert len(seen) == 3
  assert seen[0].url.path == "/internal/renders/process-one"
  assert seen[0].headers["x-apq-worker-secret"] == "s3cret"


def test_poller_respects_max_ticks() -> None:
  seen: list[httpx.Request] = []
  responses = [httpx.Response(200, json={"ok": True, "did_work": True, "message": "Rendered 1 job."}) for _ in range(5)]
  with _client(responses, seen) as client:
    assert run(base_url="http://worker.test", secret="s3cret", max_ticks=2, client=client) == 2
  assert len(seen) == 2


def test_poller_aborts_on_rejected_secret() -> None:
  responses = [httpx.Response(403, json={"detail": "Invalid worker secret."})]
  with _client(responses, []) as client, pytest.raises(SystemExit):
    run(base_url="http://worker.test", secret="wrong", max_ticks=3, client=client)
