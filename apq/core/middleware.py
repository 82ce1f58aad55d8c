import logging
import time
from typing import Any

from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Receive, Scope, Send

from apq.utils.ids import generate_request_id

logger = logging.getLogger("apq.core.middleware")


def _request_target(scope: Scope) -> str:
  path = scope.get("path", "")
  query_string = scope.get("query_string", b"")
  if query_string:
    return f"{path}?{query_string.decode('latin-1')}"
  return path


def _incoming_request_id(scope: Scope) -> str | None:
  for key, value in scope.get("headers", []):
    if key.decode("latin-1").lower() == "x-request-id":
      candidate = value.decode("latin-1").strip()
      # Accept short opaque ids only; anything else is replaced.
      if candidate and len(candidate) <= 64 and candidate.replace("-", "").isalnum():
        return candidate
  return None


class RequestLoggingMiddleware:
  """Assign a request id and log method, path, status and duration."""

  def __init__(self, app: ASGIApp) -> None:
    self.app = app

  async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
    if scope["type"] != "http":
      await self.app(scope, receive, send)
      return

    request_id = _incoming_request_id(scope) or generate_request_id()
    scope.setdefault("state", {})["request_id"] = request_id
    start_time = time.perf_counter()
    method = scope.get("method", "UNKNOWN")
    target = _request_target(scope)
    logger.info("Incoming request request_id=%s %s %s", request_id, method, target)

    status_code: int | None = None

    async def send_wrapper(message: dict[str, Any]) -> None:
      nonlocal status_code
      if message.get("type") == "http.response.start":
        status_code = message.get("status")
        headers = MutableHeaders(scope=message)
        if "x-request-id" not in headers:
          headers["x-request-id"] = request_id
      await send(message)

    await self.app(scope, receive, send_wrapper)
    elapsed_ms = (time.perf_counter() - start_time) * 1000
    logger.info("Response request_id=%s %s %s status=%s (took %.2fms)", request_id, method, target, status_code or 0, elapsed_ms)


class SecurityHeadersMiddleware:
  """Strip framework fingerprints and forbid MIME sniffing."""

  def __init__(self, app: ASGIApp) -> None:
    self.app = app

  async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
    if scope["type"] != "http":
      await self.app(scope, receive, send)
      return

    async def send_wrapper(message: dict[str, Any]) -> None:
      if message["type"] == "http.response.start":
        headers = MutableHeaders(scope=message)
        if "x-powered-by" in headers:
          del headers["x-powered-by"]
        headers.setdefault("x-content-type-options", "nosniff")
      await send(message)

    await self.app(scope, receive, send_wrapper)
