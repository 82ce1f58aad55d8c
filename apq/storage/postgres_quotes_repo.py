"""Postgres-backed repository for tenants, quotes and quote versions."""

from __future__ import annotations

import logging
import uuid
from typing import Any

from sqlalchemy import func, insert, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from apq.core.database import get_session_factory
from apq.pricing.normalize import normalize_pricing_config, normalize_pricing_policy, normalize_pricing_rules
from apq.schema.quotes import Quote, QuoteVersion
from apq.schema.tenants import Tenant, TenantPricingConfig, TenantPricingRules, TenantSettings
from apq.storage.postgres_render_jobs_repo import as_uuid
from apq.storage.quotes_repo import PricingSnapshot, QuotesRepository, QuoteVersionRecord

logger = logging.getLogger(__name__)

_VERSION_INSERT_ATTEMPTS = 3


def _row_dict(row: Any) -> dict[str, Any] | None:
  if row is None:
    return None
  return {column.key: getattr(row, column.key) for column in row.__table__.columns}


def build_next_version_insert(*, version_id: uuid.UUID, tenant_id: uuid.UUID, quote_id: uuid.UUID, ai_mode: str | None, source: str, created_by: str, reason: str | None, output: dict[str, Any], meta: dict[str, Any]):
  """Compute the next version number inside the INSERT so concurrent writers collide on the unique key."""
  next_version = select(func.coalesce(func.max(QuoteVersion.version), 0) + 1).where(QuoteVersion.quote_id == quote_id).scalar_subquery()
  return (
    insert(QuoteVersion)
    .values(
      id=version_id,
      tenant_id=tenant_id,
      quote_id=quote_id,
      version=next_version,
      ai_mode=ai_mode,
      source=source,
      created_by=created_by,
      reason=reason,
      output=output,
      meta=meta,
      is_active=True,
    )
    .returning(QuoteVersion.version, QuoteVersion.created_at)
  )


class PostgresQuotesRepository(QuotesRepository):
  """Read tenants and quotes and write quote versions in Postgres."""

  def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
    self._session_factory = session_factory or get_session_factory()
    if self._session_factory is None:
      raise RuntimeError("Database not initialized")

  async def resolve_tenant_id(self, tenant_key: str) -> str | None:
    key = (tenant_key or "").strip()
    if not key:
      return None
    key_uuid = as_uuid(key)
    condition = or_(Tenant.id == key_uuid, Tenant.slug == key) if key_uuid is not None else Tenant.slug == key
    async with self._session_factory() as session:
      value = (await session.execute(select(Tenant.id).where(condition).limit(1))).scalar_one_or_none()
      return str(value) if value is not None else None

  async def get_quote_tenant_id(self, quote_id: str) -> str | None:
    key = as_uuid(quote_id)
    if key is None:
      return None
    async with self._session_factory() as session:
      value = (await session.execute(select(Quote.tenant_id).where(Quote.id == key))).scalar_one_or_none()
      return str(value) if value is not None else None

  async def get_version_quote_id(self, version_id: str) -> str | None:
    key = as_uuid(version_id)
    if key is None:
      return None
    async with self._session_factory() as session:
      value = (await session.execute(select(QuoteVersion.quote_id).where(QuoteVersion.id == key))).scalar_one_or_none()
      return str(value) if value is not None else None

  async def load_pricing_snapshot(self, tenant_id: str) -> PricingSnapshot:
    key = as_uuid(tenant_id)
    async with self._session_factory() as session:
      settings_row = await session.get(TenantSettings, key) if key is not None else None
      config_row = await session.get(TenantPricingConfig, key) if key is not None else None
      rules_row = None
      if key is not None:
        stmt = select(TenantPricingRules).where(TenantPricingRules.tenant_id == key).order_by(TenantPricingRules.created_at.desc()).limit(1)
        rules_row = (await session.execute(stmt)).scalar_one_or_none()

    return PricingSnapshot(
      policy=normalize_pricing_policy(_row_dict(settings_row)),
      config=normalize_pricing_config(_row_dict(config_row)),
      rules=normalize_pricing_rules(_row_dict(rules_row)),
    )

  async def create_version(
    self,
    *,
    tenant_id: str,
    quote_id: str,
    ai_mode: str | None,
    source: str,
    created_by: str,
    reason: str | None,
    output: dict[str, Any],
    meta: dict[str, Any],
  ) -> QuoteVersionRecord:
    tenant_key = as_uuid(tenant_id)
    quote_key = as_uuid(quote_id)
    if tenant_key is None or quote_key is None:
      raise ValueError("tenant_id and quote_id must be uuids")

    for attempt in range(1, _VERSION_INSERT_ATTEMPTS + 1):
      version_id = uuid.uuid4()
      try:
        async with self._session_factory() as session:
          async with session.begin():
            # Serialize writers per quote; the unique key still rejects any duplicate that slips through.
            await session.execute(select(Quote.id).where(Quote.id == quote_key).with_for_update())
            await session.execute(update(QuoteVersion).where(QuoteVersion.quote_id == quote_key, QuoteVersion.is_active.is_(True)).values(is_active=False).execution_options(synchronize_session=False))
            stmt = build_next_version_insert(version_id=version_id, tenant_id=tenant_key, quote_id=quote_key, ai_mode=ai_mode, source=source, created_by=created_by, reason=reason, output=output, meta=meta)
            version, created_at = (await session.execute(stmt)).one()
            await session.execute(update(Quote).where(Quote.id == quote_key).values(output=output).execution_options(synchronize_session=False))
      except IntegrityError:
        if attempt == _VERSION_INSERT_ATTEMPTS:
          raise
        logger.warning("Quote version insert collided for quote %s; retrying (attempt %d).", quote_id, attempt)
        continue

      return QuoteVersionRecord(
        id=str(version_id),
        tenant_id=str(tenant_key),
        quote_id=str(quote_key),
        version=int(version),
        ai_mode=ai_mode,
        source=source,
        created_by=created_by,
        reason=reason,
        output=output,
        meta=meta,
        is_active=True,
        created_at=created_at,
      )

    raise RuntimeError("unreachable")
