import logging

from fastapi import APIRouter, Depends, HTTPException, status

from apq.api.deps import get_quotes_repo
from apq.api.models import EstimateResponse, QuoteVersionCreateRequest, QuoteVersionCreateResponse
from apq.services import quotes as quote_service
from apq.services.errors import QuoteNotFoundError, TenantNotFoundError
from apq.storage.quotes_repo import QuotesRepository

router = APIRouter()
logger = logging.getLogger("apq.api.routes.quotes")


@router.post("/{quote_id}/versions", response_model=QuoteVersionCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_quote_version(  # noqa: B008
  quote_id: str,
  payload: QuoteVersionCreateRequest,
  quotes_repo: QuotesRepository = Depends(get_quotes_repo),  # noqa: B008
) -> QuoteVersionCreateResponse:
  """Price a new assessment and store it as the quote's active version."""
  try:
    accepted = await quote_service.accept_assessment(
      quotes_repo=quotes_repo,
      tenant_key=payload.tenant_key,
      quote_id=quote_id,
      assessment=payload.assessment,
      image_count=payload.image_count,
      source=payload.source,
      created_by=payload.created_by,
      reason=payload.reason,
    )
  except (TenantNotFoundError, QuoteNotFoundError) as exc:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
  return QuoteVersionCreateResponse(version_id=accepted.version.id, version=accepted.version.version, estimate=EstimateResponse.model_validate(accepted.priced.to_dict()))
