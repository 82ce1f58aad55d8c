"""JSON responses that tolerate Decimal values read from Numeric columns."""

from __future__ import annotations

import json
from decimal import Decimal
from typing import Any

from fastapi.responses import JSONResponse


class DecimalJSONEncoder(json.JSONEncoder):
  def default(self, obj: Any) -> Any:
    if isinstance(obj, Decimal):
      return int(obj) if obj % 1 == 0 else float(obj)
    return super().default(obj)


class DecimalJSONResponse(JSONResponse):
  def render(self, content: Any) -> bytes:
    return json.dumps(content, ensure_ascii=False, allow_nan=False, indent=None, separators=(",", ":"), cls=DecimalJSONEncoder).encode("utf-8")


class NoStoreJSONResponse(DecimalJSONResponse):
  """JSON response that intermediaries and browsers must not cache."""

  def __init__(self, content: Any, status_code: int = 200, **kwargs: Any) -> None:
    super().__init__(content, status_code=status_code, **kwargs)
    self.headers["Cache-Control"] = "no-store"
