"""Base interface for image-generation models."""

from __future__ import annotations

from abc import ABC, abstractmethod

from apq.ai.errors import ImageGenerationError


def parse_size(size: str) -> tuple[int, int]:
  """Parse a `WIDTHxHEIGHT` string."""
  width_text, sep, height_text = size.lower().partition("x")
  if not sep:
    raise ValueError(f"Invalid image size '{size}'.")
  width, height = int(width_text), int(height_text)
  if width <= 0 or height <= 0:
    raise ValueError(f"Invalid image size '{size}'.")
  return width, height


class ImageModel(ABC):
  """Abstract image-generation model."""

  name: str

  @abstractmethod
  async def generate_image(self, prompt: str, size: str) -> bytes:
    """Return encoded image bytes for the prompt."""


class UnavailableImageModel(ImageModel):
  """Stand-in for a provider that could not be configured; every call fails with the reason."""

  def __init__(self, name: str, reason: str) -> None:
    self.name = name
    self.reason = reason

  async def generate_image(self, prompt: str, size: str) -> bytes:
    raise ImageGenerationError(self.reason)
