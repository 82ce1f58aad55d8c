"""Domain errors raised by services and mapped to HTTP responses by routes."""

from __future__ import annotations


class ServiceError(Exception):
  """Base class for expected, client-facing service failures."""


class TenantNotFoundError(ServiceError):
  def __init__(self, tenant_key: str) -> None:
    super().__init__("Tenant not found.")
    self.tenant_key = tenant_key


class QuoteNotFoundError(ServiceError):
  def __init__(self, quote_id: str) -> None:
    super().__init__("Quote not found.")
    self.quote_id = quote_id


class RenderJobNotFoundError(ServiceError):
  def __init__(self, job_id: str) -> None:
    super().__init__("Render job not found.")
    self.job_id = job_id


class RenderRetryNotAllowedError(ServiceError):
  """Only failed jobs can be retried."""

  def __init__(self, job_id: str, status: str) -> None:
    super().__init__(f"Render job is {status}; only failed jobs can be retried.")
    self.job_id = job_id
    self.status = status
