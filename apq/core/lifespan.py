import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from urllib.parse import urlparse

from fastapi import FastAPI

from apq.config import get_settings
from apq.core import database
from apq.core.logging import initialize_logging


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
  """Initialize logging and report the runtime configuration."""
  settings = get_settings()
  logger = logging.getLogger("apq.core.lifespan")

  try:
    initialize_logging(settings)
  except RuntimeError:
    logger.warning("Logging setup failed; continuing with default handlers.", exc_info=True)

  logger.info(
    "Startup complete env=%s render_provider=%s render_storage=%s database=%s worker_secret=%s",
    settings.environment,
    settings.render_provider,
    settings.render_storage,
    redact_dsn(settings.pg_dsn),
    "configured" if settings.worker_secret else "unset",
  )

  yield

  if database.engine is not None:
    await database.engine.dispose()


def redact_dsn(raw: str | None) -> str:
  """Drop credentials from a DSN while keeping host and database visible."""
  if not raw:
    return "<unset>"
  parsed = urlparse(raw)
  if not parsed.scheme:
    return "<invalid>"
  user = parsed.username or ""
  host = parsed.hostname or ""
  port = f":{parsed.port}" if parsed.port else ""
  netloc = f"{user}@{host}{port}" if user else f"{host}{port}"
  db_name = parsed.path.lstrip("/")
  return f"{parsed.scheme}://{netloc}" + (f"/{db_name}" if db_name else "")
