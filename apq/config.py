"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from functools import lru_cache

from apq.utils.env import default_env_path, load_env_file

load_env_file(default_env_path(), override=False)

_RENDER_PROVIDERS = {"gemini", "dummy"}
_RENDER_STORAGE_MODES = {"inline", "gcs"}
_SIZE_PATTERN = re.compile(r"^\d{2,5}x\d{2,5}$")


@dataclass(frozen=True)
class Settings:
  """Typed settings for the APQ service."""

  environment: str
  debug: bool
  allowed_origins: tuple[str, ...]
  log_dir: str
  log_max_bytes: int
  log_backup_count: int
  log_http_4xx: bool
  pg_dsn: str | None
  pg_connect_timeout: int
  worker_secret: str | None
  render_provider: str
  render_model: str
  render_size: str
  render_timeout_seconds: int
  render_storage: str
  render_bucket: str
  render_public_base_url: str | None
  gcs_storage_host: str | None
  gcp_project_id: str | None
  gemini_api_key: str | None
  base_url: str


@dataclass(frozen=True)
class DatabaseSettings:
  """Typed settings for database connectivity."""

  debug: bool
  pg_dsn: str | None
  pg_connect_timeout: int


def _parse_origins(raw: str | None) -> tuple[str, ...]:
  if not raw:
    raise ValueError("APQ_ALLOWED_ORIGINS must be set to one or more origins.")

  origins = [origin.strip() for origin in raw.split(",") if origin.strip()]

  if not origins:
    raise ValueError("APQ_ALLOWED_ORIGINS must include at least one origin.")

  if "*" in origins:
    raise ValueError("APQ_ALLOWED_ORIGINS must not include wildcard origins.")

  return tuple(origins)


def _parse_bool(raw: str | None) -> bool:
  """Parse a boolean-ish string from environment variables."""

  if raw is None:
    return False

  normalized = raw.strip().lower()
  return normalized in {"1", "true", "yes", "on"}


def _optional_str(raw: str | None) -> str | None:
  if raw is None:
    return None
  value = raw.strip()
  if value == "":
    return None
  return value


def _positive_int(name: str, default: str) -> int:
  value = int(os.getenv(name, default))
  if value <= 0:
    raise ValueError(f"{name} must be a positive integer.")
  return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  environment = os.getenv("APQ_ENV", "development").lower()
  debug = _parse_bool(os.getenv("APQ_DEBUG"))

  log_max_bytes = _positive_int("APQ_LOG_MAX_BYTES", "5242880")
  log_backup_count = int(os.getenv("APQ_LOG_BACKUP_COUNT", "10"))
  if log_backup_count < 0:
    raise ValueError("APQ_LOG_BACKUP_COUNT must be zero or a positive integer.")

  render_provider = (os.getenv("APQ_RENDER_PROVIDER") or "gemini").strip().lower()
  if render_provider not in _RENDER_PROVIDERS:
    raise ValueError(f"APQ_RENDER_PROVIDER must be one of {sorted(_RENDER_PROVIDERS)}.")

  render_size = (os.getenv("APQ_RENDER_SIZE") or "1024x1024").strip().lower()
  if not _SIZE_PATTERN.match(render_size):
    raise ValueError("APQ_RENDER_SIZE must look like WIDTHxHEIGHT, e.g. 1024x1024.")

  render_storage = (os.getenv("APQ_RENDER_STORAGE") or "inline").strip().lower()
  if render_storage not in _RENDER_STORAGE_MODES:
    raise ValueError(f"APQ_RENDER_STORAGE must be one of {sorted(_RENDER_STORAGE_MODES)}.")

  database = get_database_settings()

  return Settings(
    environment=environment,
    debug=debug,
    allowed_origins=_parse_origins(os.getenv("APQ_ALLOWED_ORIGINS")),
    log_dir=(os.getenv("APQ_LOG_DIR") or "./logs").strip(),
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
    log_http_4xx=_parse_bool(os.getenv("APQ_LOG_HTTP_4XX")),
    pg_dsn=database.pg_dsn,
    pg_connect_timeout=database.pg_connect_timeout,
    worker_secret=_optional_str(os.getenv("APQ_WORKER_SECRET")),
    render_provider=render_provider,
    render_model=(os.getenv("APQ_RENDER_MODEL") or "imagen-3.0-generate-002").strip(),
    render_size=render_size,
    render_timeout_seconds=_positive_int("APQ_RENDER_TIMEOUT_SECONDS", "120"),
    render_storage=render_storage,
    render_bucket=(os.getenv("APQ_RENDER_BUCKET") or "apq-renders").strip(),
    render_public_base_url=_optional_str(os.getenv("APQ_RENDER_PUBLIC_BASE_URL")),
    gcs_storage_host=_optional_str(os.getenv("GCS_STORAGE_HOST")),
    gcp_project_id=_optional_str(os.getenv("GCP_PROJECT_ID")),
    gemini_api_key=_optional_str(os.getenv("GEMINI_API_KEY")),
    base_url=(os.getenv("APQ_BASE_URL") or "http://localhost:8000").strip().rstrip("/"),
  )


@lru_cache(maxsize=1)
def get_database_settings() -> DatabaseSettings:
  """Load database settings without requiring web-runtime configuration like CORS."""
  debug = _parse_bool(os.getenv("APQ_DEBUG"))
  pg_connect_timeout = _positive_int("APQ_PG_CONNECT_TIMEOUT", "5")

  # DATABASE_URL is honored for hosting platforms that inject it.
  pg_dsn = _optional_str(os.getenv("APQ_PG_DSN")) or _optional_str(os.getenv("DATABASE_URL"))

  return DatabaseSettings(debug=debug, pg_dsn=pg_dsn, pg_connect_timeout=pg_connect_timeout)
