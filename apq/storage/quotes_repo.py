"""Storage interface for tenants, quotes and quote versions."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

from apq.pricing.models import PricingConfig, PricingPolicy, PricingRules


@dataclass(frozen=True)
class PricingSnapshot:
  """Tenant pricing rows read at computation time."""

  policy: PricingPolicy
  config: PricingConfig | None
  rules: PricingRules | None


@dataclass(frozen=True)
class QuoteVersionRecord:
  id: str
  tenant_id: str
  quote_id: str
  version: int
  ai_mode: str | None
  source: str
  created_by: str
  reason: str | None
  output: dict[str, Any]
  meta: dict[str, Any]
  is_active: bool
  created_at: datetime | None = None


class QuotesRepository(Protocol):
  """Repository contract for the tenant and quote reads the pipeline needs."""

  async def resolve_tenant_id(self, tenant_key: str) -> str | None:
    """Resolve a tenant slug or uuid to the tenant id."""

  async def get_quote_tenant_id(self, quote_id: str) -> str | None:
    """Return the owning tenant of a quote, or None when the quote does not exist."""

  async def get_version_quote_id(self, version_id: str) -> str | None:
    """Return the quote a version belongs to."""

  async def load_pricing_snapshot(self, tenant_id: str) -> PricingSnapshot:
    """Read the tenant's policy, config and newest rules row."""

  async def create_version(
    self,
    *,
    tenant_id: str,
    quote_id: str,
    ai_mode: str | None,
    source: str,
    created_by: str,
    reason: str | None,
    output: dict[str, Any],
    meta: dict[str, Any],
  ) -> QuoteVersionRecord:
    """Insert the next version as active and update the quote's current output."""
