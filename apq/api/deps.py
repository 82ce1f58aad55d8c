"""Shared FastAPI dependencies for repositories and the render worker."""

from __future__ import annotations

from collections.abc import Callable

from fastapi import Depends

from apq.ai.providers import get_image_model
from apq.config import Settings, get_settings
from apq.renders.worker import RenderWorker
from apq.services.render_storage import build_render_store
from apq.storage.factory import _get_quotes_repo, _get_render_jobs_repo
from apq.storage.quotes_repo import QuotesRepository
from apq.storage.render_jobs_repo import RenderJobsRepository


def get_render_jobs_repo() -> RenderJobsRepository:
  return _get_render_jobs_repo()


def get_quotes_repo() -> QuotesRepository:
  return _get_quotes_repo()


def get_render_worker(settings: Settings = Depends(get_settings), jobs_repo: RenderJobsRepository = Depends(get_render_jobs_repo)) -> RenderWorker:  # noqa: B008
  """Build a worker for one invocation; it holds no state between calls."""
  return RenderWorker.from_settings(settings, jobs_repo=jobs_repo, image_model=get_image_model(settings), image_store=build_render_store(settings))


def get_quotes_repo_factory() -> Callable[[], QuotesRepository]:
  """Defer repository construction for routes that only sometimes touch the database."""
  return _get_quotes_repo
