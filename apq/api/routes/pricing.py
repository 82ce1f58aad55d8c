import logging
from collections.abc import Callable

from fastapi import APIRouter, Depends, HTTPException, status

from apq.api.deps import get_quotes_repo_factory
from apq.api.models import EstimateRequest, EstimateResponse
from apq.services import pricing as pricing_service
from apq.services.errors import TenantNotFoundError
from apq.storage.quotes_repo import QuotesRepository

router = APIRouter()
logger = logging.getLogger("apq.api.routes.pricing")


@router.post("/estimate", response_model=EstimateResponse)
async def estimate(  # noqa: B008
  payload: EstimateRequest,
  quotes_repo_factory: Callable[[], QuotesRepository] = Depends(get_quotes_repo_factory),  # noqa: B008
) -> EstimateResponse:
  """Compute a deterministic estimate. Tenant rows are only read when an override is missing."""
  needs_tenant_rows = bool(payload.tenant_key) and (payload.policy is None or payload.config is None or payload.rules is None)
  quotes_repo = quotes_repo_factory() if needs_tenant_rows else None
  try:
    priced = await pricing_service.estimate(
      quotes_repo=quotes_repo,
      tenant_key=payload.tenant_key,
      assessment=payload.assessment,
      image_count=payload.image_count,
      policy=payload.policy,
      config=payload.config,
      rules=payload.rules,
    )
  except TenantNotFoundError as exc:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
  return EstimateResponse.model_validate(priced.to_dict())
