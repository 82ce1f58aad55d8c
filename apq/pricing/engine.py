"""Deterministic pricing.

The model supplies scope, an inspection signal and a confidence. Money is computed here from
the tenant's policy, config and rules. Model-provided estimates are never trusted.

`packages` and `line_items` are not computed; like missing config they fall back to the
tenant's typical range, or to zero when no range is configured.
"""

from __future__ import annotations

import math
from typing import Any

from apq.pricing.models import AI_MODES, AiAssessment, EstimateResult, PricingConfig, PricingPolicy, PricingRules

_DEFAULT_MARKUP_PERCENT = 30.0


def round_half_up(value: float) -> int:
  """Round to whole currency units, halves away from zero."""
  if value >= 0:
    return int(math.floor(value + 0.5))
  return -int(math.floor(-value + 0.5))


def clamp_int(value: float, minimum: int, maximum: int) -> int:
  if not math.isfinite(value):
    return minimum
  return max(minimum, min(maximum, round_half_up(value)))


def clamp_money(value: float) -> int:
  if not math.isfinite(value):
    return 0
  return max(0, round_half_up(value))


def ensure_low_high(low: float, high: float) -> tuple[int, int]:
  a = clamp_money(low)
  b = clamp_money(high)
  return (a, b) if a <= b else (b, a)


def effective_policy(policy: PricingPolicy) -> PricingPolicy:
  if not policy.pricing_enabled:
    return PricingPolicy(ai_mode="assessment_only", pricing_enabled=False, pricing_model=None)
  ai_mode = policy.ai_mode if policy.ai_mode in AI_MODES else "range"
  return PricingPolicy(ai_mode=ai_mode, pricing_enabled=True, pricing_model=policy.pricing_model)


def confidence_weight(confidence: str | None) -> float:
  normalized = (confidence or "").strip().lower()
  if normalized == "high":
    return 0.85
  if normalized == "medium":
    return 1.0
  # low and anything unrecognized widen the range
  return 1.2


def complexity_score(assessment: AiAssessment, image_count: float) -> float:
  scope = len([item for item in assessment.visible_scope if item])
  questions = len([item for item in assessment.questions if item])
  assumptions = len([item for item in assessment.assumptions if item])
  raw = (
    1
    + scope * 0.9
    + questions * 0.35
    + assumptions * 0.2
    + clamp_int(image_count, 1, 12) * 0.25
    + (1.0 if assessment.inspection_required else 0.0)
  )
  return max(1.0, min(10.0, raw))


def _typical_fallback(rules: PricingRules | None, basis: dict[str, Any]) -> tuple[float, float, dict[str, Any]]:
  typical_low = rules.typical_low if rules else None
  typical_high = rules.typical_high if rules else None
  if typical_low is not None and typical_high is not None:
    low, high = ensure_low_high(typical_low, typical_high)
    return low, high, {**basis, "method": "rules.typical"}
  if typical_low is not None:
    value = clamp_money(typical_low)
    return value, value, {**basis, "method": "rules.typical_low_only"}
  return 0, 0, {**basis, "method": "fallback.zero"}


def compute_estimate(
  assessment: AiAssessment,
  image_count: float,
  policy: PricingPolicy,
  config: PricingConfig | None = None,
  rules: PricingRules | None = None,
) -> EstimateResult:
  """Compute a bounded, policy-compliant estimate. Never raises for well-typed input."""
  policy = effective_policy(policy)

  if not policy.pricing_enabled or policy.ai_mode == "assessment_only":
    reason = "pricing_disabled" if not policy.pricing_enabled else "assessment_only"
    return EstimateResult(
      estimate_low=0,
      estimate_high=0,
      inspection_required=bool(assessment.inspection_required),
      basis={"method": "suppressed", "reason": reason},
    )

  model = policy.pricing_model or (config.model if config else None) or None
  typical_low = rules.typical_low if rules else None
  min_job = rules.min_job if rules else None
  max_without_inspection = rules.max_without_inspection if rules else None

  conf_w = confidence_weight(assessment.confidence)
  complexity = complexity_score(assessment, image_count)
  inspection_required = bool(assessment.inspection_required)

  basis: dict[str, Any] = {"model": model, "confidence_weight": conf_w, "complexity": complexity}
  low: float
  high: float

  if model == "flat_per_job":
    base = _first_number(config.flat_rate_default if config else None, typical_low)
    spread = base * (0.18 * conf_w) + complexity * 25
    low = max(0.0, base - spread * 0.55)
    high = base + spread
    basis = {**basis, "method": "flat_per_job", "base": base, "spread": spread}
  elif model == "assessment_fee":
    fee = _first_number(config.assessment_fee_amount if config else None, typical_low)
    low = high = fee
    credit = bool(config.assessment_fee_credit_toward_job) if config else False
    basis = {**basis, "method": "assessment_fee", "fee": fee, "credit_toward_job": credit}
  elif model == "hourly_plus_materials":
    hourly = config.hourly_labor_rate if config else None
    if not hourly:
      low, high, basis = _typical_fallback(rules, basis)
    else:
      markup = config.material_markup_percent if config and config.material_markup_percent is not None else _DEFAULT_MARKUP_PERCENT
      base_hours = 2.5 + complexity * 0.85
      low_hours = max(1.0, base_hours * 0.85)
      high_hours = base_hours * 1.25 * conf_w
      labor_low = low_hours * hourly
      labor_high = high_hours * hourly
      materials_low = labor_low * 0.22 * (1 + markup / 100)
      materials_high = labor_high * 0.35 * (1 + markup / 100)
      low = labor_low + materials_low
      high = labor_high + materials_high
      basis = {
        **basis,
        "method": "hourly_plus_materials",
        "hourly": hourly,
        "markup_percent": markup,
        "hours": {"low": low_hours, "high": high_hours},
        "labor": {"low": labor_low, "high": labor_high},
        "materials": {"low": materials_low, "high": materials_high},
      }
  elif model == "per_unit":
    rate = config.per_unit_rate if config else None
    if not rate:
      low, high, basis = _typical_fallback(rules, basis)
    else:
      base_units = 4 + complexity * 3.2
      low_units = max(1.0, base_units * 0.8)
      high_units = base_units * 1.35 * conf_w
      low = low_units * rate
      high = high_units * rate
      basis = {
        **basis,
        "method": "per_unit",
        "per_unit_rate": rate,
        "per_unit_label": config.per_unit_label if config else None,
        "units": {"low": low_units, "high": high_units},
      }
  elif model == "inspection_only":
    inspection_required = True
    low, high, basis = _typical_fallback(rules, basis)
    basis = {**basis, "method": "inspection_only"}
  else:
    low, high, basis = _typical_fallback(rules, basis)
    basis = {**basis, "method": f"unsupported.{model}" if model else "no_model"}

  if min_job is not None and min_job > 0:
    low = max(low, min_job)
    high = max(high, min_job)
    basis = {**basis, "min_job_applied": min_job}

  if not inspection_required and max_without_inspection is not None and max_without_inspection > 0:
    if high > max_without_inspection:
      inspection_required = True
      high = max_without_inspection
      low = min(low, high)
      basis = {**basis, "max_without_inspection_applied": max_without_inspection, "forced_inspection": True}

  low_int, high_int = ensure_low_high(low, high)

  if policy.ai_mode == "fixed":
    midpoint = clamp_money((low_int + high_int) / 2)
    low_int = high_int = midpoint
    basis = {**basis, "ai_mode_applied": "fixed"}
  else:
    basis = {**basis, "ai_mode_applied": "range"}

  return EstimateResult(estimate_low=low_int, estimate_high=high_int, inspection_required=inspection_required, basis=basis)


def _first_number(*values: float | None) -> float:
  for value in values:
    if value is not None:
      return value
  return 0.0
