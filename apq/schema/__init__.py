"""ORM models; importing the package registers every table on Base.metadata."""

from .quotes import Quote, QuoteVersion
from .renders import QuoteRender
from .tenants import Tenant, TenantPricingConfig, TenantPricingRules, TenantSettings

__all__ = ["Quote", "QuoteRender", "QuoteVersion", "Tenant", "TenantPricingConfig", "TenantPricingRules", "TenantSettings"]
