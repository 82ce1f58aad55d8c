"""Domain models for asynchronous render jobs."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal

RenderJobStatus = Literal["queued", "running", "rendered", "failed"]
ACTIVE_STATUSES: frozenset[str] = frozenset({"queued", "running"})


@dataclass
class RenderJobRecord:
  """Represents one render attempt for a quote."""

  id: str
  tenant_id: str
  quote_id: str
  status: RenderJobStatus
  attempt: int = 1
  quote_version_id: str | None = None
  prompt: str | None = None
  shop_notes: str | None = None
  image_url: str | None = None
  error: str | None = None
  created_at: datetime | None = None
  started_at: datetime | None = None
  completed_at: datetime | None = None
  updated_at: datetime | None = None


@dataclass(frozen=True)
class ClaimedRenderJob:
  """A running job hydrated with everything the worker needs to build the prompt."""

  id: str
  tenant_id: str
  quote_id: str
  quote_version_id: str | None
  attempt: int
  shop_notes: str | None = None
  rendering_enabled: bool | None = None
  ai_rendering_enabled: bool | None = None
  rendering_prompt_addendum: str | None = None
  rendering_negative_guidance: str | None = None
  version_number: int | None = None
  version_output: Any = None
  quote_input: Any = None

  @property
  def rendering_allowed(self) -> bool:
    # The newer flag wins whenever it is set; the legacy flag only fills a null.
    if self.ai_rendering_enabled is not None:
      return bool(self.ai_rendering_enabled)
    return bool(self.rendering_enabled)


@dataclass(frozen=True)
class ProcessResult:
  ok: bool
  did_work: bool
  message: str
  job_id: str | None = None
  quote_id: str | None = None
  quote_version_id: str | None = None
  error: str | None = None

  def to_dict(self) -> dict[str, Any]:
    payload: dict[str, Any] = {"ok": self.ok, "did_work": self.did_work, "message": self.message}
    for key in ("job_id", "quote_id", "quote_version_id", "error"):
      value = getattr(self, key)
      if value is not None:
        payload[key] = value
    return payload
