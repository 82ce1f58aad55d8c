"""Gemini image generation using the google-genai SDK."""

from __future__ import annotations

import logging
import os

from google import genai
from google.genai import types

from apq.ai.errors import EmptyImageResponseError, ImageGenerationError
from apq.ai.providers.base import ImageModel, parse_size

logger = logging.getLogger(__name__)

_ASPECT_RATIOS: dict[str, float] = {"1:1": 1.0, "3:4": 3 / 4, "4:3": 4 / 3, "9:16": 9 / 16, "16:9": 16 / 9}


def aspect_ratio_for_size(size: str) -> str:
  """Pick the supported aspect ratio closest to the requested size."""
  width, height = parse_size(size)
  ratio = width / height
  return min(_ASPECT_RATIOS, key=lambda name: abs(_ASPECT_RATIOS[name] - ratio))


class GeminiImageModel(ImageModel):
  """Imagen model served through the Gemini API."""

  def __init__(self, name: str, api_key: str | None = None, client: genai.Client | None = None) -> None:
    self.name = name
    if client is None:
      api_key = api_key or os.getenv("GEMINI_API_KEY")
      if not api_key:
        raise ValueError("GEMINI_API_KEY environment variable is required")
      client = genai.Client(api_key=api_key)
    self._client = client

  async def generate_image(self, prompt: str, size: str) -> bytes:
    config = types.GenerateImagesConfig(number_of_images=1, aspect_ratio=aspect_ratio_for_size(size), output_mime_type="image/png")
    try:
      # Use the async client to avoid blocking the asyncio event loop.
      response = await self._client.aio.models.generate_images(model=self.name, prompt=prompt, config=config)
    except Exception as exc:
      raise ImageGenerationError(f"Gemini image generation failed: {exc}") from exc

    for generated in response.generated_images or []:
      image = generated.image
      if image is not None and image.image_bytes:
        logger.info("Gemini returned %d image bytes for model %s.", len(image.image_bytes), self.name)
        return image.image_bytes

    raise EmptyImageResponseError("Gemini did not return image data.")
