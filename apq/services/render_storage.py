"""Persist generated render images and return the URL stored on the job row."""

from __future__ import annotations

import base64
import io
import os
from typing import Protocol
from urllib.parse import urlparse, urlunparse

from google.auth.credentials import AnonymousCredentials
from google.cloud import storage
from PIL import Image, UnidentifiedImageError
from starlette.concurrency import run_in_threadpool

from apq.config import Settings


class RenderStorageError(RuntimeError):
  """Raised when generated bytes cannot be decoded or stored."""


def encode_png(image_bytes: bytes) -> bytes:
  """Re-encode provider bytes as PNG so every stored render has one format."""
  if not image_bytes:
    raise RenderStorageError("Render image is empty.")
  try:
    image = Image.open(io.BytesIO(image_bytes))
    image.load()
  except (UnidentifiedImageError, OSError) as exc:
    raise RenderStorageError(f"Render image could not be decoded: {exc}") from exc
  if image.format == "PNG":
    return image_bytes
  converted = image.convert("RGBA") if image.mode not in {"RGB", "RGBA"} else image
  output = io.BytesIO()
  converted.save(output, format="PNG")
  return output.getvalue()


class RenderImageStore(Protocol):
  async def save(self, image_bytes: bytes, *, job_id: str, tenant_id: str) -> str:
    """Store the image and return a URL a browser can load."""


class InlineRenderStore:
  """Store renders directly on the row as a data URL."""

  async def save(self, image_bytes: bytes, *, job_id: str, tenant_id: str) -> str:
    png = encode_png(image_bytes)
    return f"data:image/png;base64,{base64.b64encode(png).decode('ascii')}"


class GcsRenderStore:
  """Upload renders to a GCS bucket (or the local emulator)."""

  def __init__(self, settings: Settings, client: storage.Client | None = None) -> None:
    self._bucket_name = settings.render_bucket
    self._storage_host = settings.gcs_storage_host
    self._public_base_url = settings.render_public_base_url
    if client is not None:
      self._client = client
    elif self._storage_host:
      emulator_endpoint = _normalize_emulator_endpoint(self._storage_host)
      os.environ["GCS_STORAGE_EMULATOR_HOST"] = emulator_endpoint
      self._client = storage.Client(project=settings.gcp_project_id or "local-dev", credentials=AnonymousCredentials(), client_options={"api_endpoint": emulator_endpoint})
    else:
      self._client = storage.Client(project=settings.gcp_project_id)

  @property
  def bucket_name(self) -> str:
    return self._bucket_name

  def object_name(self, *, job_id: str, tenant_id: str) -> str:
    return f"renders/{tenant_id}/{job_id}.png"

  def public_url(self, object_name: str) -> str:
    if self._public_base_url:
      return f"{self._public_base_url.rstrip('/')}/{object_name}"
    if self._storage_host:
      return f"{_normalize_emulator_endpoint(self._storage_host)}/{self._bucket_name}/{object_name}"
    return f"https://storage.googleapis.com/{self._bucket_name}/{object_name}"

  async def save(self, image_bytes: bytes, *, job_id: str, tenant_id: str) -> str:
    png = encode_png(image_bytes)
    object_name = self.object_name(job_id=job_id, tenant_id=tenant_id)
    blob = self._client.bucket(self._bucket_name).blob(object_name)
    blob.cache_control = "public, max-age=31536000, immutable"
    blob.content_type = "image/png"
    try:
      await run_in_threadpool(blob.upload_from_string, png, "image/png")
    except Exception as exc:
      raise RenderStorageError(f"Render upload failed: {exc}") from exc
    return self.public_url(object_name)


def build_render_store(settings: Settings) -> RenderImageStore:
  if settings.render_storage == "gcs":
    return GcsRenderStore(settings)
  return InlineRenderStore()


def _normalize_emulator_endpoint(raw_endpoint: str) -> str:
  """Normalize emulator endpoint so the SDK receives scheme+host+port only."""
  parsed = urlparse(raw_endpoint)
  if not parsed.scheme or not parsed.netloc:
    return raw_endpoint.rstrip("/")
  return urlunparse((parsed.scheme, parsed.netloc, "", "", "", "")).rstrip("/")
