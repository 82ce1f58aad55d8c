from __future__ import annotations

import logging
import secrets
from typing import Annotated

from fastapi import APIRouter, Depends, Header, HTTPException, status

from apq.api.deps import get_render_worker
from apq.api.models import ProcessResultResponse
from apq.config import Settings, get_settings
from apq.core.json import NoStoreJSONResponse
from apq.renders.worker import RenderWorker

router = APIRouter(prefix="/renders", tags=["worker"])
logger = logging.getLogger(__name__)


def require_worker_secret(
  settings: Annotated[Settings, Depends(get_settings)],
  authorization: str | None = Header(default=None),
  x_apq_worker_secret: str | None = Header(default=None),
) -> None:
  # Secure-by-default: an unset secret disables the endpoint entirely.
  if not settings.worker_secret:
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Worker authentication is not configured.")
  header_valid = secrets.compare_digest((x_apq_worker_secret or "").encode(), settings.worker_secret.encode())
  bearer_valid = secrets.compare_digest((authorization or "").encode(), f"Bearer {settings.worker_secret}".encode())
  if not header_valid and not bearer_valid:
    logger.warning("Unauthorized access attempt to /renders/process-one")
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid worker secret.")


@router.post("/process-one", response_model=ProcessResultResponse, dependencies=[Depends(require_worker_secret)])
async def process_one(worker: Annotated[RenderWorker, Depends(get_render_worker)]) -> NoStoreJSONResponse:
  """Claim and process at most one queued render job."""
  result = await worker.process_one_queued_render()
  status_code = status.HTTP_200_OK if result.ok else status.HTTP_500_INTERNAL_SERVER_ERROR
  payload = ProcessResultResponse.model_validate(result.to_dict())
  return NoStoreJSONResponse(content=payload.model_dump(exclude_none=True), status_code=status_code)
