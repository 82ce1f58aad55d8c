"""Offline image model for local development and tests."""

from __future__ import annotations

import hashlib
import io

from PIL import Image, ImageDraw

from apq.ai.providers.base import ImageModel, parse_size


class DummyImageModel(ImageModel):
  """Paint a deterministic placeholder derived from the prompt."""

  def __init__(self, name: str = "dummy") -> None:
    self.name = name

  async def generate_image(self, prompt: str, size: str) -> bytes:
    width, height = parse_size(size)
    digest = hashlib.sha256(prompt.encode("utf-8")).digest()
    background = (digest[0], digest[1], digest[2])
    accent = (255 - digest[0], 255 - digest[1], 255 - digest[2])

    image = Image.new("RGB", (width, height), background)
    draw = ImageDraw.Draw(image)
    inset = min(width, height) // 6
    draw.rectangle((inset, inset, width - inset, height - inset), outline=accent, width=max(1, inset // 8))

    output = io.BytesIO()
    image.save(output, format="PNG")
    return output.getvalue()
