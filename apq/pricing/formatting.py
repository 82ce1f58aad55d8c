"""Human-facing money line for a tenant pricing policy."""

from __future__ import annotations

from typing import Any

from apq.pricing.engine import effective_policy, round_half_up
from apq.pricing.models import FormattedEstimate, PricingPolicy
from apq.pricing.normalize import coerce_number, normalize_pricing_policy


def format_usd(amount: float) -> str:
  rounded = round_half_up(amount)
  sign = "-" if rounded < 0 else ""
  return f"{sign}${abs(rounded):,}"


def format_estimate_for_policy(policy: PricingPolicy | Any, low: Any, high: Any) -> FormattedEstimate:
  if not isinstance(policy, PricingPolicy):
    policy = normalize_pricing_policy(policy)
  policy = effective_policy(policy)

  mode = policy.ai_mode if policy.pricing_enabled else "assessment_only"
  if mode not in {"fixed", "range"}:
    return FormattedEstimate(mode="assessment_only", money_line=None, label="Assessment only")

  low_value = coerce_number(low)
  high_value = coerce_number(high)

  if mode == "fixed":
    single = low_value if low_value is not None else high_value
    return FormattedEstimate(mode=mode, money_line=format_usd(single) if single is not None else None, label="Estimate")

  if low_value is not None and high_value is not None:
    money_line = f"{format_usd(low_value)} – {format_usd(high_value)}"
  elif low_value is not None or high_value is not None:
    money_line = format_usd(low_value if low_value is not None else high_value)
  else:
    money_line = None
  return FormattedEstimate(mode=mode, money_line=money_line, label="Estimate range")
