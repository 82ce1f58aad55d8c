"""Request and response payloads for the HTTP surface."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StrictStr, field_validator


class RenderEnqueueRequest(BaseModel):
  """Request payload for queueing a concept render."""

  tenant_key: StrictStr = Field(min_length=1, description="Tenant slug or id.")
  quote_id: StrictStr = Field(min_length=1)
  quote_version_id: StrictStr | None = None
  shop_notes: str | None = Field(default=None, max_length=4000)
  model_config = ConfigDict(extra="forbid")


class RenderJobResponse(BaseModel):
  job_id: StrictStr
  status: Literal["queued", "running", "rendered", "failed"]
  attempt: StrictInt = Field(ge=1)
  already_existed: StrictBool = False


class RenderStatusResponse(BaseModel):
  status: Literal["idle", "running", "rendered", "failed"]
  image_url: str | None = Field(default=None, serialization_alias="imageUrl")
  error: str | None = None


class ProcessResultResponse(BaseModel):
  ok: StrictBool
  did_work: StrictBool
  message: StrictStr
  job_id: str | None = None
  quote_id: str | None = None
  quote_version_id: str | None = None
  error: str | None = None


class EstimateRequest(BaseModel):
  """Price an assessment; explicit policy/config/rules override the tenant's stored rows."""

  tenant_key: StrictStr | None = None
  assessment: dict[str, Any] = Field(default_factory=dict)
  image_count: int = Field(default=1, ge=0)
  policy: dict[str, Any] | None = None
  config: dict[str, Any] | None = None
  rules: dict[str, Any] | None = None
  model_config = ConfigDict(extra="forbid")


class EstimateDisplay(BaseModel):
  mode: str
  money_line: str | None = None
  label: str


class EstimateResponse(BaseModel):
  estimate_low: StrictInt
  estimate_high: StrictInt
  inspection_required: StrictBool
  basis: dict[str, Any]
  display: EstimateDisplay


class QuoteVersionCreateRequest(BaseModel):
  """Request payload for accepting a new assessment as an immutable quote version."""

  tenant_key: StrictStr = Field(min_length=1)
  assessment: dict[str, Any]
  image_count: int = Field(default=1, ge=0)
  source: StrictStr = "customer_submit"
  created_by: StrictStr = "system"
  reason: str | None = None
  model_config = ConfigDict(extra="forbid")

  @field_validator("source", "created_by")
  @classmethod
  def _not_blank(cls, value: str) -> str:
    value = value.strip()
    if not value:
      raise ValueError("must not be blank")
    return value


class QuoteVersionCreateResponse(BaseModel):
  version_id: StrictStr
  version: StrictInt
  estimate: EstimateResponse
