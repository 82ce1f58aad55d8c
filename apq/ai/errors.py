"""Errors raised by image-generation providers."""

from __future__ import annotations

from collections.abc import Iterable

_TRANSIENT_HINTS: tuple[str, ...] = (
  "rate limit",
  "quota",
  "429",
  "timeout",
  "timed out",
  "connection",
  "network",
  "service unavailable",
  "bad gateway",
  "503",
)


class ImageGenerationError(RuntimeError):
  """Raised when a provider cannot produce an image."""


class ImageGenerationTimeout(ImageGenerationError):
  """Raised when the provider does not answer within the configured budget."""


class EmptyImageResponseError(ImageGenerationError):
  """Raised when the provider answers without image bytes."""


def _match_hint(message: str, hints: Iterable[str]) -> bool:
  return any(hint in message for hint in hints)


def is_transient_error(exc: BaseException) -> bool:
  """Return True when the failure looks like throttling or connectivity rather than a bad request."""
  if isinstance(exc, ImageGenerationTimeout):
    return True
  chain: BaseException | None = exc
  while chain is not None:
    if _match_hint(str(chain).lower(), _TRANSIENT_HINTS):
      return True
    chain = chain.__cause__
  return False
