"""Deterministic prompt construction for concept renders."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from apq.renders.models import ClaimedRenderJob

PREAMBLE = 'You are generating a service-industry "concept render" image for a quote review tool.'
OUTPUT_INSTRUCTION = "Output: a single realistic image suitable for showing a customer. No text overlays, no watermarks, no UI elements."

_PHOTO_LIST_KEYS = ("photos", "images", "photo_urls")
_PHOTO_SINGLE_KEYS = ("photoUrl", "photo_url", "imageUrl", "image_url")
_PHOTO_OBJECT_KEYS = ("url", "src", "href")


def _text(value: Any) -> str:
  if value is None:
    return ""
  return str(value).strip()


def _http_url(value: Any) -> str | None:
  if isinstance(value, str) and value.startswith("http"):
    return value
  return None


def extract_reference_photo_url(quote_input: Any) -> str | None:
  """Return the first http(s) photo reference found in a raw quote input."""
  if not isinstance(quote_input, Mapping):
    return None

  for key in _PHOTO_LIST_KEYS:
    candidates = quote_input.get(key)
    if not isinstance(candidates, list):
      continue
    for candidate in candidates:
      if not candidate:
        continue
      if isinstance(candidate, str):
        url = _http_url(candidate)
      elif isinstance(candidate, Mapping):
        url = _http_url(next((candidate.get(k) for k in _PHOTO_OBJECT_KEYS if candidate.get(k)), None))
      else:
        url = None
      if url:
        return url

  # Older submissions stored a single url.
  single = next((quote_input.get(k) for k in _PHOTO_SINGLE_KEYS if quote_input.get(k)), None)
  return _http_url(single)


def build_render_prompt(job: ClaimedRenderJob) -> str:
  shop_notes = _text(job.shop_notes)
  addendum = _text(job.rendering_prompt_addendum)
  negative = _text(job.rendering_negative_guidance)
  photo_url = extract_reference_photo_url(job.quote_input)

  if job.version_number is not None:
    version_hint = f"This render is for quote version v{job.version_number}."
  else:
    version_hint = "This render is for a quote version snapshot."

  parts = [PREAMBLE, version_hint]
  if photo_url:
    parts.append(f"A reference photo URL exists (for future photo-driven edits): {photo_url}")
    parts.append("For now, generate a plausible render consistent with the request (do not mention URLs).")

  parts.append(f"Shop notes / instructions: {shop_notes}" if shop_notes else "Shop notes / instructions: none provided.")

  if addendum:
    parts.append(f"Tenant prompt addendum (must follow): {addendum}")
  if negative:
    parts.append(f"Negative guidance (avoid these): {negative}")

  parts.append(OUTPUT_INSTRUCTION)
  return "\n\n".join(parts)
