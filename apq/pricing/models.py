"""Canonical pricing inputs and outputs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

AI_MODES: frozenset[str] = frozenset({"assessment_only", "range", "fixed"})


@dataclass(frozen=True)
class PricingPolicy:
  """Tenant-level switch deciding whether and how money is shown."""

  ai_mode: str = "assessment_only"
  pricing_enabled: bool = False
  pricing_model: str | None = None


@dataclass(frozen=True)
class PricingConfig:
  """Tenant pricing parameters for the configured model."""

  model: str | None = None
  flat_rate_default: float | None = None
  hourly_labor_rate: float | None = None
  material_markup_percent: float | None = None
  per_unit_rate: float | None = None
  per_unit_label: str | None = None
  package_json: Any = None
  line_items_json: Any = None
  assessment_fee_amount: float | None = None
  assessment_fee_credit_toward_job: bool | None = None


@dataclass(frozen=True)
class PricingRules:
  """Tenant guard rails applied after the model computes a range."""

  min_job: float | None = None
  typical_low: float | None = None
  typical_high: float | None = None
  max_without_inspection: float | None = None
  tone: str | None = None
  risk_posture: str | None = None
  always_estimate_language: bool | None = None


@dataclass(frozen=True)
class AiAssessment:
  """The parts of a model assessment that pricing trusts."""

  confidence: str = "low"
  inspection_required: bool = False
  visible_scope: tuple[str, ...] = ()
  assumptions: tuple[str, ...] = ()
  questions: tuple[str, ...] = ()
  summary: str = ""
  currency: str | None = None


@dataclass(frozen=True)
class EstimateResult:
  estimate_low: int
  estimate_high: int
  inspection_required: bool
  basis: dict[str, Any] = field(default_factory=dict)

  def to_dict(self) -> dict[str, Any]:
    return {
      "estimate_low": self.estimate_low,
      "estimate_high": self.estimate_high,
      "inspection_required": self.inspection_required,
      "basis": dict(self.basis),
    }


@dataclass(frozen=True)
class FormattedEstimate:
  mode: str
  money_line: str | None
  label: str
