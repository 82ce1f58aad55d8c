"""Repository construction for request handlers and the worker."""

from __future__ import annotations

from apq.storage.postgres_quotes_repo import PostgresQuotesRepository
from apq.storage.postgres_render_jobs_repo import PostgresRenderJobsRepository
from apq.storage.quotes_repo import QuotesRepository
from apq.storage.render_jobs_repo import RenderJobsRepository


def _get_render_jobs_repo() -> RenderJobsRepository:
  return PostgresRenderJobsRepository()


def _get_quotes_repo() -> QuotesRepository:
  return PostgresQuotesRepository()
