from __future__ import annotations

import datetime
import uuid
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Numeric, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from apq.core.database import Base


class Tenant(Base):
  __tablename__ = "tenants"

  id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
  name: Mapped[str] = mapped_column(String, nullable=False)
  slug: Mapped[str] = mapped_column(String, unique=True, index=True, nullable=False)
  created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class TenantSettings(Base):
  """Non-sensitive tenant switches consumed by pricing and rendering."""

  __tablename__ = "tenant_settings"

  tenant_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), primary_key=True)
  ai_mode: Mapped[str | None] = mapped_column(String, nullable=True)
  pricing_enabled: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
  pricing_model: Mapped[str | None] = mapped_column(String, nullable=True)
  # Legacy flag; ai_rendering_enabled takes precedence when it is not null.
  rendering_enabled: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
  ai_rendering_enabled: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
  rendering_prompt_addendum: Mapped[str | None] = mapped_column(Text, nullable=True)
  rendering_negative_guidance: Mapped[str | None] = mapped_column(Text, nullable=True)
  updated_at: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=True)


class TenantPricingConfig(Base):
  __tablename__ = "tenant_pricing_config"

  tenant_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), primary_key=True)
  model: Mapped[str | None] = mapped_column(String, nullable=True)
  flat_rate_default: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
  hourly_labor_rate: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
  material_markup_percent: Mapped[Decimal | None] = mapped_column(Numeric(6, 2), nullable=True)
  per_unit_rate: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
  per_unit_label: Mapped[str | None] = mapped_column(String, nullable=True)
  package_json: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
  line_items_json: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
  assessment_fee_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
  assessment_fee_credit_toward_job: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
  updated_at: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=True)


class TenantPricingRules(Base):
  """Pricing guardrails. The newest row per tenant is authoritative."""

  __tablename__ = "tenant_pricing_rules"

  id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
  tenant_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
  min_job: Mapped[int | None] = mapped_column(Integer, nullable=True)
  typical_low: Mapped[int | None] = mapped_column(Integer, nullable=True)
  typical_high: Mapped[int | None] = mapped_column(Integer, nullable=True)
  max_without_inspection: Mapped[int | None] = mapped_column(Integer, nullable=True)
  tone: Mapped[str | None] = mapped_column(String, nullable=True, server_default="value")
  risk_posture: Mapped[str | None] = mapped_column(String, nullable=True, server_default="conservative")
  always_estimate_language: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="true")
  created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
