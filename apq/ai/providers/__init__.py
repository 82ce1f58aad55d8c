"""Provider implementations."""

from __future__ import annotations

import logging

from apq.ai.providers.base import ImageModel, UnavailableImageModel
from apq.ai.providers.dummy import DummyImageModel
from apq.ai.providers.gemini import GeminiImageModel
from apq.config import Settings

logger = logging.getLogger(__name__)


def get_image_model(settings: Settings) -> ImageModel:
  """Return the configured image model.

  A provider that cannot be built (for example a missing API key) still yields a model, so the
  claimed job fails with a readable reason instead of the worker erroring before the claim.
  """
  if settings.render_provider == "dummy":
    return DummyImageModel()
  if settings.render_provider == "gemini":
    try:
      return GeminiImageModel(settings.render_model, api_key=settings.gemini_api_key)
    except ValueError as exc:
      logger.warning("Gemini image model unavailable: %s", exc)
      return UnavailableImageModel(settings.render_model, str(exc))
  raise ValueError(f"Unsupported render provider '{settings.render_provider}'.")


__all__ = ["DummyImageModel", "GeminiImageModel", "ImageModel", "UnavailableImageModel", "get_image_model"]
