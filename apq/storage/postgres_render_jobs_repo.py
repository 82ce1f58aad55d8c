"""Postgres-backed repository for render jobs using SQLAlchemy."""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import Update, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from apq.core.database import get_session_factory
from apq.renders.models import ACTIVE_STATUSES, ClaimedRenderJob, RenderJobRecord
from apq.schema.quotes import Quote, QuoteVersion
from apq.schema.renders import QuoteRender
from apq.schema.tenants import TenantSettings
from apq.storage.render_jobs_repo import RenderJobsRepository


def as_uuid(value: str | uuid.UUID | None) -> uuid.UUID | None:
  """Parse an identifier, returning None for anything that is not a uuid."""
  if value is None:
    return None
  if isinstance(value, uuid.UUID):
    return value
  try:
    return uuid.UUID(str(value).strip())
  except ValueError:
    return None


def _str_id(value: uuid.UUID | None) -> str | None:
  return str(value) if value is not None else None


def build_claim_statement() -> Update:
  """Build the single-statement claim: pick the oldest queued row under SKIP LOCKED and flip it to running."""
  picked = (
    select(QuoteRender.id)
    .where(QuoteRender.status == "queued")
    .order_by(QuoteRender.created_at.asc(), QuoteRender.id.asc())
    .limit(1)
    .with_for_update(skip_locked=True)
    .cte("picked")
  )
  return (
    update(QuoteRender)
    .where(QuoteRender.id == picked.c.id)
    .values(status="running", started_at=func.now(), updated_at=func.now())
    .returning(QuoteRender.id)
    .execution_options(synchronize_session=False)
  )


def build_terminal_statement(job_id: uuid.UUID, **values: Any) -> Update:
  """Terminal writes only apply while the row is still running."""
  return (
    update(QuoteRender)
    .where(QuoteRender.id == job_id, QuoteRender.status == "running")
    .values(completed_at=func.now(), updated_at=func.now(), **values)
    .execution_options(synchronize_session=False)
  )


class PostgresRenderJobsRepository(RenderJobsRepository):
  """Persist render jobs to Postgres."""

  def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
    self._session_factory = session_factory or get_session_factory()
    if self._session_factory is None:
      raise RuntimeError("Database not initialized")

  async def create_job(self, record: RenderJobRecord) -> RenderJobRecord:
    async with self._session_factory() as session:
      row = QuoteRender(
        id=as_uuid(record.id) or uuid.uuid4(),
        tenant_id=as_uuid(record.tenant_id),
        quote_id=as_uuid(record.quote_id),
        quote_version_id=as_uuid(record.quote_version_id),
        attempt=record.attempt,
        status=record.status,
        shop_notes=record.shop_notes,
      )
      session.add(row)
      await session.commit()
      await session.refresh(row)
      return self._model_to_record(row)

  async def get_job(self, job_id: str) -> RenderJobRecord | None:
    key = as_uuid(job_id)
    if key is None:
      return None
    async with self._session_factory() as session:
      row = await session.get(QuoteRender, key)
      return self._model_to_record(row) if row is not None else None

  async def find_active_for_quote(self, quote_id: str) -> RenderJobRecord | None:
    key = as_uuid(quote_id)
    if key is None:
      return None
    async with self._session_factory() as session:
      stmt = select(QuoteRender).where(QuoteRender.quote_id == key, QuoteRender.status.in_(tuple(ACTIVE_STATUSES))).order_by(QuoteRender.created_at.desc()).limit(1)
      row = (await session.execute(stmt)).scalar_one_or_none()
      return self._model_to_record(row) if row is not None else None

  async def latest_for_quote(self, quote_id: str) -> RenderJobRecord | None:
    key = as_uuid(quote_id)
    if key is None:
      return None
    async with self._session_factory() as session:
      stmt = select(QuoteRender).where(QuoteRender.quote_id == key).order_by(QuoteRender.created_at.desc(), QuoteRender.attempt.desc()).limit(1)
      row = (await session.execute(stmt)).scalar_one_or_none()
      return self._model_to_record(row) if row is not None else None

  async def max_attempt(self, quote_id: str) -> int:
    key = as_uuid(quote_id)
    if key is None:
      return 0
    async with self._session_factory() as session:
      value = (await session.execute(select(func.max(QuoteRender.attempt)).where(QuoteRender.quote_id == key))).scalar_one_or_none()
      return int(value or 0)

  async def claim_one_queued(self) -> ClaimedRenderJob | None:
    async with self._session_factory() as session:
      async with session.begin():
        claimed_id = (await session.execute(build_claim_statement())).scalar_one_or_none()
        if claimed_id is None:
          return None

        # Hydrate inside the claim transaction so the snapshot matches the claimed row.
        stmt = (
          select(
            QuoteRender.id,
            QuoteRender.tenant_id,
            QuoteRender.quote_id,
            QuoteRender.quote_version_id,
            QuoteRender.attempt,
            QuoteRender.shop_notes,
            TenantSettings.rendering_enabled,
            TenantSettings.ai_rendering_enabled,
            TenantSettings.rendering_prompt_addendum,
            TenantSettings.rendering_negative_guidance,
            QuoteVersion.version,
            QuoteVersion.output,
            Quote.input,
          )
          .outerjoin(TenantSettings, TenantSettings.tenant_id == QuoteRender.tenant_id)
          .outerjoin(QuoteVersion, QuoteVersion.id == QuoteRender.quote_version_id)
          .outerjoin(Quote, Quote.id == QuoteRender.quote_id)
          .where(QuoteRender.id == claimed_id)
          .limit(1)
        )
        row = (await session.execute(stmt)).one()
        return ClaimedRenderJob(
          id=str(row[0]),
          tenant_id=str(row[1]),
          quote_id=str(row[2]),
          quote_version_id=_str_id(row[3]),
          attempt=int(row[4]),
          shop_notes=row[5],
          rendering_enabled=row[6],
          ai_rendering_enabled=row[7],
          rendering_prompt_addendum=row[8],
          rendering_negative_guidance=row[9],
          version_number=row[10],
          version_output=row[11],
          quote_input=row[12],
        )

  async def mark_rendered(self, job_id: str, *, image_url: str, prompt: str | None) -> bool:
    return await self._apply_terminal(job_id, status="rendered", image_url=image_url, error=None, prompt=prompt)

  async def mark_failed(self, job_id: str, *, error: str, prompt: str | None = None) -> bool:
    values: dict[str, Any] = {"status": "failed", "error": error}
    if prompt is not None:
      values["prompt"] = prompt
    return await self._apply_terminal(job_id, **values)

  async def _apply_terminal(self, job_id: str, **values: Any) -> bool:
    key = as_uuid(job_id)
    if key is None:
      return False
    async with self._session_factory() as session:
      result = await session.execute(build_terminal_statement(key, **values))
      await session.commit()
      return bool(result.rowcount)

  def _model_to_record(self, row: QuoteRender) -> RenderJobRecord:
    return RenderJobRecord(
      id=str(row.id),
      tenant_id=str(row.tenant_id),
      quote_id=str(row.quote_id),
      quote_version_id=_str_id(row.quote_version_id),
      attempt=row.attempt,
      status=row.status,  # type: ignore[arg-type]
      prompt=row.prompt,
      shop_notes=row.shop_notes,
      image_url=row.image_url,
      error=row.error,
      created_at=row.created_at,
      started_at=row.started_at,
      completed_at=row.completed_at,
      updated_at=row.updated_at,
    )
