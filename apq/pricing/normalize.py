"""Canonicalize loosely shaped pricing rows into frozen dataclasses.

Rows reach pricing as plain dicts, ORM instances, JSON text or legacy camelCase payloads.
Everything past this module works on the canonical types only.
"""

from __future__ import annotations

import json
import math
from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Any

from apq.pricing.models import AI_MODES, AiAssessment, PricingConfig, PricingPolicy, PricingRules

_CONFIG_FIELDS: dict[str, tuple[str, ...]] = {
  "model": ("model", "pricingModel"),
  "flat_rate_default": ("flat_rate_default", "flatRateDefault"),
  "hourly_labor_rate": ("hourly_labor_rate", "hourlyLaborRate"),
  "material_markup_percent": ("material_markup_percent", "materialMarkupPercent"),
  "per_unit_rate": ("per_unit_rate", "perUnitRate"),
  "per_unit_label": ("per_unit_label", "perUnitLabel"),
  "package_json": ("package_json", "packageJson"),
  "line_items_json": ("line_items_json", "lineItemsJson"),
  "assessment_fee_amount": ("assessment_fee_amount", "assessmentFeeAmount"),
  "assessment_fee_credit_toward_job": ("assessment_fee_credit_toward_job", "assessmentFeeCreditTowardJob"),
}

_RULES_FIELDS: dict[str, tuple[str, ...]] = {
  "min_job": ("min_job", "minJob"),
  "typical_low": ("typical_low", "typicalLow"),
  "typical_high": ("typical_high", "typicalHigh"),
  "max_without_inspection": ("max_without_inspection", "maxWithoutInspection"),
  "tone": ("tone",),
  "risk_posture": ("risk_posture", "riskPosture"),
  "always_estimate_language": ("always_estimate_language", "alwaysEstimateLanguage"),
}

_TRUE_STRINGS = {"1", "true", "yes", "on", "t", "y"}


def _as_mapping(raw: Any) -> Mapping[str, Any]:
  """Return a read-only mapping view of a dict, JSON object string or attribute bag."""
  if raw is None:
    return {}
  if isinstance(raw, Mapping):
    return raw
  if isinstance(raw, (str, bytes)):
    try:
      decoded = json.loads(raw)
    except (TypeError, ValueError):
      return {}
    return decoded if isinstance(decoded, Mapping) else {}
  # ORM rows and simple namespaces.
  return {key: value for key, value in vars(raw).items() if not key.startswith("_")} if hasattr(raw, "__dict__") else {}


def _pick(source: Mapping[str, Any], names: Iterable[str]) -> Any:
  for name in names:
    if name in source and source[name] is not None:
      return source[name]
  return None


def coerce_number(value: Any) -> float | None:
  """Coerce ints, Decimals and numeric strings to float; anything else becomes None."""
  if value is None or isinstance(value, bool):
    return None
  if isinstance(value, Decimal):
    if not value.is_finite():
      return None
    number = float(value)
  elif isinstance(value, (int, float)):
    number = float(value)
  elif isinstance(value, str):
    text = value.strip().replace(",", "").lstrip("$")
    if text == "":
      return None
    try:
      number = float(text)
    except ValueError:
      return None
  else:
    return None
  return number if math.isfinite(number) else None


def coerce_bool(value: Any) -> bool | None:
  if value is None:
    return None
  if isinstance(value, bool):
    return value
  if isinstance(value, (int, float)):
    return value != 0
  if isinstance(value, str):
    text = value.strip().lower()
    if text == "":
      return None
    return text in _TRUE_STRINGS
  return bool(value)


def _coerce_text(value: Any) -> str | None:
  if value is None:
    return None
  text = str(value).strip()
  return text or None


def _coerce_json(value: Any) -> Any:
  if isinstance(value, (str, bytes)):
    try:
      return json.loads(value)
    except (TypeError, ValueError):
      return None
  return value


def _string_items(value: Any) -> tuple[str, ...]:
  """Keep truthy list entries; empty strings and nulls do not count toward complexity."""
  if not isinstance(value, (list, tuple)):
    return ()
  return tuple(str(item) for item in value if item)


def normalize_pricing_policy(raw: Any) -> PricingPolicy:
  source = _as_mapping(raw)
  pricing_enabled = bool(coerce_bool(_pick(source, ("pricing_enabled", "pricingEnabled"))))
  if not pricing_enabled:
    return PricingPolicy(ai_mode="assessment_only", pricing_enabled=False, pricing_model=None)

  ai_mode = (_coerce_text(_pick(source, ("ai_mode", "aiMode"))) or "").lower()
  if ai_mode not in AI_MODES:
    ai_mode = "range"

  # Unknown models pass through; the engine falls back and records the name.
  pricing_model = _coerce_text(_pick(source, ("pricing_model", "pricingModel")))
  return PricingPolicy(ai_mode=ai_mode, pricing_enabled=True, pricing_model=pricing_model)


def normalize_pricing_config(raw: Any) -> PricingConfig | None:
  if raw is None:
    return None
  source = _as_mapping(raw)
  values = {name: _pick(source, aliases) for name, aliases in _CONFIG_FIELDS.items()}
  return PricingConfig(
    model=_coerce_text(values["model"]),
    flat_rate_default=coerce_number(values["flat_rate_default"]),
    hourly_labor_rate=coerce_number(values["hourly_labor_rate"]),
    material_markup_percent=coerce_number(values["material_markup_percent"]),
    per_unit_rate=coerce_number(values["per_unit_rate"]),
    per_unit_label=_coerce_text(values["per_unit_label"]),
    package_json=_coerce_json(values["package_json"]),
    line_items_json=_coerce_json(values["line_items_json"]),
    assessment_fee_amount=coerce_number(values["assessment_fee_amount"]),
    assessment_fee_credit_toward_job=coerce_bool(values["assessment_fee_credit_toward_job"]),
  )


def normalize_pricing_rules(raw: Any) -> PricingRules | None:
  if raw is None:
    return None
  source = _as_mapping(raw)
  values = {name: _pick(source, aliases) for name, aliases in _RULES_FIELDS.items()}
  return PricingRules(
    min_job=coerce_number(values["min_job"]),
    typical_low=coerce_number(values["typical_low"]),
    typical_high=coerce_number(values["typical_high"]),
    max_without_inspection=coerce_number(values["max_without_inspection"]),
    tone=_coerce_text(values["tone"]),
    risk_posture=_coerce_text(values["risk_posture"]),
    always_estimate_language=coerce_bool(values["always_estimate_language"]),
  )


def normalize_assessment(raw: Any) -> AiAssessment:
  """Keep only the assessment signals pricing uses; model-provided estimates are dropped."""
  source = _as_mapping(raw)
  confidence = _coerce_text(source.get("confidence")) or "low"
  return AiAssessment(
    confidence=confidence,
    inspection_required=bool(coerce_bool(_pick(source, ("inspection_required", "inspectionRequired")))),
    visible_scope=_string_items(_pick(source, ("visible_scope", "visibleScope"))),
    assumptions=_string_items(source.get("assumptions")),
    questions=_string_items(source.get("questions")),
    summary=_coerce_text(source.get("summary")) or "",
    currency=_coerce_text(source.get("currency")),
  )
