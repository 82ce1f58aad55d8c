"""Identifier utilities."""

from __future__ import annotations

import secrets
import uuid


def generate_job_id() -> str:
  """Return a new render job identifier."""
  return str(uuid.uuid4())


def generate_request_id() -> str:
  """Return a short hex id used to correlate request logs."""
  return secrets.token_hex(6)
