from __future__ import annotations

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from apq.api.routes import pricing, quotes, renders, worker
from apq.config import get_settings
from apq.core.exceptions import global_exception_handler, http_exception_handler, request_validation_exception_handler
from apq.core.json import DecimalJSONResponse
from apq.core.lifespan import lifespan
from apq.core.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware

__version__ = "0.1.0"

settings = get_settings()

app = FastAPI(title="APQ Engine", version=__version__, default_response_class=DecimalJSONResponse, lifespan=lifespan, docs_url=None, redoc_url=None, openapi_url=None)

app.add_middleware(CORSMiddleware, allow_origins=list(settings.allowed_origins), allow_credentials=True, allow_methods=["GET", "POST", "OPTIONS"], allow_headers=["content-type", "authorization"], expose_headers=["content-length", "x-request-id"])

app.add_exception_handler(Exception, global_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)


@app.get("/health", include_in_schema=False)
async def health_check() -> dict[str, str]:
  """Return a simple health status."""
  return {"status": "ok", "version": __version__}


app.include_router(renders.router, prefix="/v1/renders", tags=["renders"])
app.include_router(pricing.router, prefix="/v1/pricing", tags=["pricing"])
app.include_router(quotes.router, prefix="/v1/quotes", tags=["quotes"])
app.include_router(worker.router, prefix="/internal", tags=["worker"])
