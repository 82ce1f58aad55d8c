"""Four-state render status as shown to customers and staff."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

RenderStatus = Literal["idle", "running", "rendered", "failed"]

_KNOWN = {"running", "rendered", "failed"}


@dataclass(frozen=True)
class RenderStatusView:
  status: RenderStatus
  image_url: str | None = None
  error: str | None = None

  def to_dict(self) -> dict[str, Any]:
    return {"status": self.status, "imageUrl": self.image_url, "error": self.error}


def normalize_render_status(raw_status: Any) -> RenderStatus:
  """Map a persisted status onto the read contract; queued and unknown values read as idle."""
  value = str(raw_status or "").strip().lower()
  if value in _KNOWN:
    return value  # type: ignore[return-value]
  return "idle"


def project_render_status(raw_status: Any, image_url: str | None, error: str | None) -> RenderStatusView:
  status = normalize_render_status(raw_status)
  image = (image_url or "").strip() or None
  # A stored image is the strongest signal; only an explicit failure outranks it.
  if image and status != "failed":
    status = "rendered"
  return RenderStatusView(status=status, image_url=image, error=error or None)
