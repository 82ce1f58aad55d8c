"""Accept a new assessment as an immutable quote version."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from apq.services.errors import QuoteNotFoundError
from apq.services.pricing import PricedAssessment, load_tenant_snapshot, price_with_snapshot
from apq.storage.quotes_repo import QuotesRepository, QuoteVersionRecord

logger = logging.getLogger(__name__)

# Model-provided money is replaced by the server-side estimate before the snapshot is stored.
_UNTRUSTED_ESTIMATE_KEYS = ("estimate_low", "estimate_high", "inspection_required")


@dataclass(frozen=True)
class AcceptedVersion:
  version: QuoteVersionRecord
  priced: PricedAssessment


async def accept_assessment(
  *,
  quotes_repo: QuotesRepository,
  tenant_key: str,
  quote_id: str,
  assessment: dict[str, Any],
  image_count: int = 1,
  source: str = "customer_submit",
  created_by: str = "system",
  reason: str | None = None,
) -> AcceptedVersion:
  tenant_id, snapshot = await load_tenant_snapshot(quotes_repo, tenant_key)
  owner = await quotes_repo.get_quote_tenant_id(quote_id)
  if owner is None or owner != tenant_id:
    raise QuoteNotFoundError(quote_id)

  priced = price_with_snapshot(assessment=assessment, image_count=image_count, policy=snapshot.policy, config=snapshot.config, rules=snapshot.rules)

  output = {key: value for key, value in assessment.items() if key not in _UNTRUSTED_ESTIMATE_KEYS}
  output.update(
    estimate_low=priced.estimate.estimate_low,
    estimate_high=priced.estimate.estimate_high,
    inspection_required=priced.estimate.inspection_required,
  )
  meta = {"pricing_basis": priced.estimate.basis, "image_count": image_count, "display": {"mode": priced.display.mode, "money_line": priced.display.money_line, "label": priced.display.label}}

  version = await quotes_repo.create_version(
    tenant_id=tenant_id,
    quote_id=quote_id,
    ai_mode=priced.policy.ai_mode,
    source=source,
    created_by=created_by,
    reason=reason,
    output=output,
    meta=meta,
  )
  logger.info("Stored quote %s version v%d (%s).", quote_id, version.version, source)
  return AcceptedVersion(version=version, priced=priced)
