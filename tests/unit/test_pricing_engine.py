"""Unit tests for the deterministic estimate engine."""

from __future__ import annotations

import pytest

from apq.pricing.engine import clamp_int, clamp_money, complexity_score, compute_estimate, confidence_weight, ensure_low_high, round_half_up
from apq.pricing.models import AiAssessment, PricingConfig, PricingPolicy, PricingRules
from apq.pricing.normalize import normalize_pricing_policy

_RANGE_FLAT = PricingPolicy(ai_mode="range", pricing_enabled=True, pricing_model="flat_per_job")
_ONE_ITEM = AiAssessment(confidence="medium", visible_scope=("replace cracked window pane",))


def test_flat_per_job_range_straddles_base_rate() -> None:
  """A medium-confidence single-item job prices around the tenant's flat rate."""
  result = compute_estimate(_ONE_ITEM, 3, _RANGE_FLAT, PricingConfig(flat_rate_default=500))
  assert result.estimate_low == 414
  assert result.estimate_high == 656
  assert result.estimate_low < 500 < result.estimate_high
  assert result.inspection_required is False
  assert result.basis["method"] == "flat_per_job"
  assert result.basis["complexity"] == pytest.approx(2.65)
  assert result.basis["spread"] == pytest.approx(156.25)
  assert result.basis["ai_mode_applied"] == "range"


def test_inspection_only_always_requires_inspection() -> None:
  policy = PricingPolicy(ai_mode="range", pricing_enabled=True, pricing_model="inspection_only")
  result = compute_estimate(_ONE_ITEM, 3, policy, PricingConfig(flat_rate_default=500))
  assert result.inspection_required is True
  assert result.basis["method"] == "inspection_only"
  assert (result.estimate_low, result.estimate_high) == (0, 0)


def test_inspection_only_uses_typical_range_when_configured() -> None:
  policy = PricingPolicy(ai_mode="range", pricing_enabled=True, pricing_model="inspection_only")
  result = compute_estimate(_ONE_ITEM, 1, policy, None, PricingRules(typical_low=900, typical_high=300))
  assert (result.estimate_low, result.estimate_high) == (300, 900)
  assert result.inspection_required is True


def test_fixed_mode_collapses_to_midpoint_after_inspection_cap() -> None:
  policy = PricingPolicy(ai_mode="fixed", pricing_enabled=True, pricing_model="flat_per_job")
  result = compute_estimate(_ONE_ITEM, 3, policy, PricingConfig(flat_rate_default=500), PricingRules(max_without_inspection=600))
  assert result.estimate_low == result.estimate_high == 507
  assert result.inspection_required is True
  assert result.basis["forced_inspection"] is True
  assert result.basis["max_without_inspection_applied"] == 600
  assert result.basis["ai_mode_applied"] == "fixed"


def test_cap_is_skipped_when_inspection_is_already_required() -> None:
  assessment = AiAssessment(confidence="medium", visible_scope=("roof leak",), inspection_required=True)
  result = compute_estimate(assessment, 1, _RANGE_FLAT, PricingConfig(flat_rate_default=5000), PricingRules(max_without_inspection=600))
  assert result.estimate_high > 600
  assert "forced_inspection" not in result.basis


def test_min_job_raises_both_bounds() -> None:
  result = compute_estimate(_ONE_ITEM, 3, _RANGE_FLAT, PricingConfig(flat_rate_default=100), PricingRules(min_job=400))
  assert (result.estimate_low, result.estimate_high) == (400, 400)
  assert result.basis["min_job_applied"] == 400


@pytest.mark.parametrize(
  ("policy", "reason"),
  [
    (PricingPolicy(ai_mode="range", pricing_enabled=False, pricing_model="flat_per_job"), "pricing_disabled"),
    (PricingPolicy(ai_mode="assessment_only", pricing_enabled=True, pricing_model="flat_per_job"), "assessment_only"),
  ],
)
def test_suppressed_policies_return_zero(policy: PricingPolicy, reason: str) -> None:
  assessment = AiAssessment(confidence="high", visible_scope=("fence",), inspection_required=True)
  result = compute_estimate(assessment, 2, policy, PricingConfig(flat_rate_default=500))
  assert (result.estimate_low, result.estimate_high) == (0, 0)
  assert result.inspection_required is True
  assert result.basis == {"method": "suppressed", "reason": reason}


def test_unknown_ai_mode_is_treated_as_range() -> None:
  policy = PricingPolicy(ai_mode="exact", pricing_enabled=True, pricing_model="flat_per_job")
  result = compute_estimate(_ONE_ITEM, 3, policy, PricingConfig(flat_rate_default=500))
  assert result.basis["ai_mode_applied"] == "range"
  assert result.estimate_low < result.estimate_high


def test_model_falls_back_to_config_model() -> None:
  policy = PricingPolicy(ai_mode="range", pricing_enabled=True, pricing_model=None)
  result = compute_estimate(_ONE_ITEM, 3, policy, PricingConfig(model="flat_per_job", flat_rate_default=500))
  assert result.basis["model"] == "flat_per_job"
  assert (result.estimate_low, result.estimate_high) == (414, 656)


def test_assessment_fee_is_a_single_amount() -> None:
  policy = PricingPolicy(ai_mode="range", pricing_enabled=True, pricing_model="assessment_fee")
  result = compute_estimate(_ONE_ITEM, 1, policy, PricingConfig(assessment_fee_amount=75, assessment_fee_credit_toward_job=True))
  assert (result.estimate_low, result.estimate_high) == (75, 75)
  assert result.basis["credit_toward_job"] is True


def test_hourly_plus_materials_uses_default_markup() -> None:
  policy = PricingPolicy(ai_mode="range", pricing_enabled=True, pricing_model="hourly_plus_materials")
  result = compute_estimate(_ONE_ITEM, 1, policy, PricingConfig(hourly_labor_rate=80))
  assert result.basis["method"] == "hourly_plus_materials"
  assert result.basis["markup_percent"] == 30.0
  assert 0 < result.estimate_low < result.estimate_high


def test_per_unit_without_rate_uses_typical_range() -> None:
  policy = PricingPolicy(ai_mode="range", pricing_enabled=True, pricing_model="per_unit")
  result = compute_estimate(_ONE_ITEM, 1, policy, PricingConfig(per_unit_label="sq ft"), PricingRules(typical_low=200, typical_high=800))
  assert result.basis["method"] == "rules.typical"
  assert (result.estimate_low, result.estimate_high) == (200, 800)


def test_per_unit_records_units() -> None:
  policy = PricingPolicy(ai_mode="range", pricing_enabled=True, pricing_model="per_unit")
  result = compute_estimate(_ONE_ITEM, 1, policy, PricingConfig(per_unit_rate=12.5, per_unit_label="sq ft"))
  assert result.basis["per_unit_label"] == "sq ft"
  assert result.basis["units"]["low"] <= result.basis["units"]["high"]


@pytest.mark.parametrize("model", ["packages", "line_items"])
def test_unimplemented_models_fall_back_to_typical_low(model: str) -> None:
  policy = PricingPolicy(ai_mode="range", pricing_enabled=True, pricing_model=model)
  result = compute_estimate(_ONE_ITEM, 1, policy, PricingConfig(), PricingRules(typical_low=250))
  assert (result.estimate_low, result.estimate_high) == (250, 250)
  assert result.basis["method"] == f"unsupported.{model}"


def test_missing_model_falls_back_to_zero() -> None:
  policy = PricingPolicy(ai_mode="range", pricing_enabled=True, pricing_model=None)
  result = compute_estimate(_ONE_ITEM, 1, policy)
  assert (result.estimate_low, result.estimate_high) == (0, 0)
  assert result.basis["method"] == "no_model"


def test_flat_rate_without_config_or_rules_stays_non_negative() -> None:
  result = compute_estimate(_ONE_ITEM, 3, _RANGE_FLAT)
  assert result.estimate_low == 0
  assert result.estimate_high == 66


def test_unknown_confidence_widens_like_low() -> None:
  assert confidence_weight("certain") == confidence_weight("low") == 1.2
  assert confidence_weight(" HIGH ") == 0.85
  assert confidence_weight(None) == 1.2


def test_complexity_counts_only_non_empty_items_and_is_bounded() -> None:
  sparse = AiAssessment(visible_scope=("", "gutter"), questions=("",), assumptions=())
  assert complexity_score(sparse, 1) == pytest.approx(1 + 0.9 + 0.25)

  busy = AiAssessment(visible_scope=tuple(f"item {i}" for i in range(30)), inspection_required=True)
  assert complexity_score(busy, 50) == 10.0


def test_non_finite_image_count_is_clamped() -> None:
  result = compute_estimate(_ONE_ITEM, float("nan"), _RANGE_FLAT, PricingConfig(flat_rate_default=500))
  assert result.basis["complexity"] == pytest.approx(1 + 0.9 + 0.25)


def test_same_inputs_give_same_result() -> None:
  args = (_ONE_ITEM, 4, _RANGE_FLAT, PricingConfig(flat_rate_default=320), PricingRules(min_job=150))
  assert compute_estimate(*args) == compute_estimate(*args)


@pytest.mark.parametrize("model", ["flat_per_job", "hourly_plus_materials", "per_unit", "packages", "line_items", "inspection_only", "assessment_fee", None])
@pytest.mark.parametrize("ai_mode", ["range", "fixed"])
@pytest.mark.parametrize("confidence", ["low", "medium", "high", "unknown"])
def test_results_are_ordered_non_negative_integers(model: str | None, ai_mode: str, confidence: str) -> None:
  policy = PricingPolicy(ai_mode=ai_mode, pricing_enabled=True, pricing_model=model)
  config = PricingConfig(flat_rate_default=450, hourly_labor_rate=95, per_unit_rate=7, assessment_fee_amount=89)
  rules = PricingRules(min_job=120, typical_low=300, typical_high=700, max_without_inspection=2500)
  assessment = AiAssessment(confidence=confidence, visible_scope=("deck", "stairs"), questions=("material?",), assumptions=("standard height",))
  result = compute_estimate(assessment, 5, policy, config, rules)
  assert isinstance(result.estimate_low, int)
  assert isinstance(result.estimate_high, int)
  assert 0 <= result.estimate_low <= result.estimate_high
  if ai_mode == "fixed":
    assert result.estimate_low == result.estimate_high
  if not result.inspection_required:
    assert result.estimate_high <= 2500


def test_rounding_helpers() -> None:
  assert round_half_up(2.5) == 3
  assert round_half_up(-2.5) == -3
  assert clamp_money(-10) == 0
  assert clamp_money(float("inf")) == 0
  assert clamp_int(20, 1, 12) == 12
  assert ensure_low_high(900, 100) == (100, 900)


def test_unrecognized_model_name_is_recorded() -> None:
  policy = normalize_pricing_policy({"pricing_enabled": True, "ai_mode": "range", "pricing_model": "custom_quote"})
  result = compute_estimate(_ONE_ITEM, 1, policy, None, PricingRules(typical_low=300, typical_high=500))
  assert result.basis["model"] == "custom_quote"
  assert result.basis["method"] == "unsupported.custom_quote"
  assert (result.estimate_low, result.estimate_high) == (300, 500)


def test_range_mode_caps_high_at_max_without_inspection() -> None:
  result = compute_estimate(_ONE_ITEM, 3, _RANGE_FLAT, PricingConfig(flat_rate_default=500), PricingRules(max_without_inspection=600))
  assert result.estimate_high == 600
  assert result.estimate_low == 414
  assert result.inspection_required is True
  assert result.basis["forced_inspection"] is True
  assert result.basis["ai_mode_applied"] == "range"
