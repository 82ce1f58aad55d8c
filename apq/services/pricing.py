"""Price an assessment against a tenant snapshot or explicit overrides."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from apq.pricing.engine import compute_estimate
from apq.pricing.formatting import format_estimate_for_policy
from apq.pricing.models import EstimateResult, FormattedEstimate, PricingConfig, PricingPolicy, PricingRules
from apq.pricing.normalize import normalize_assessment, normalize_pricing_config, normalize_pricing_policy, normalize_pricing_rules
from apq.services.errors import TenantNotFoundError
from apq.storage.quotes_repo import PricingSnapshot, QuotesRepository


@dataclass(frozen=True)
class PricedAssessment:
  policy: PricingPolicy
  estimate: EstimateResult
  display: FormattedEstimate

  def to_dict(self) -> dict[str, Any]:
    payload = self.estimate.to_dict()
    payload["display"] = {"mode": self.display.mode, "money_line": self.display.money_line, "label": self.display.label}
    return payload


def price_with_snapshot(*, assessment: Any, image_count: Any, policy: PricingPolicy, config: PricingConfig | None, rules: PricingRules | None) -> PricedAssessment:
  try:
    count = float(image_count)
  except (TypeError, ValueError):
    count = 1.0
  estimate = compute_estimate(normalize_assessment(assessment), count, policy, config, rules)
  display = format_estimate_for_policy(policy, estimate.estimate_low, estimate.estimate_high)
  return PricedAssessment(policy=policy, estimate=estimate, display=display)


async def load_tenant_snapshot(quotes_repo: QuotesRepository, tenant_key: str) -> tuple[str, PricingSnapshot]:
  tenant_id = await quotes_repo.resolve_tenant_id(tenant_key)
  if tenant_id is None:
    raise TenantNotFoundError(tenant_key)
  return tenant_id, await quotes_repo.load_pricing_snapshot(tenant_id)


async def estimate(
  *,
  quotes_repo: QuotesRepository | None,
  tenant_key: str | None,
  assessment: Any,
  image_count: Any,
  policy: Any = None,
  config: Any = None,
  rules: Any = None,
) -> PricedAssessment:
  """Explicit policy/config/rules win; anything missing comes from the tenant's stored rows."""
  snapshot: PricingSnapshot | None = None
  if tenant_key and quotes_repo is not None and (policy is None or config is None or rules is None):
    _, snapshot = await load_tenant_snapshot(quotes_repo, tenant_key)

  resolved_policy = normalize_pricing_policy(policy) if policy is not None else (snapshot.policy if snapshot else normalize_pricing_policy(None))
  resolved_config = normalize_pricing_config(config) if config is not None else (snapshot.config if snapshot else None)
  resolved_rules = normalize_pricing_rules(rules) if rules is not None else (snapshot.rules if snapshot else None)
  return price_with_snapshot(assessment=assessment, image_count=image_count, policy=resolved_policy, config=resolved_config, rules=resolved_rules)
