"""Create tenants, pricing, quotes, quote versions and render jobs.

Revision ID: 5c1e2a9b7d40
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "5c1e2a9b7d40"
down_revision = None
branch_labels = None
depends_on = None


def _uuid_pk() -> sa.Column:
  return sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()"))


def _tenant_fk(*, primary_key: bool = False) -> sa.Column:
  return sa.Column("tenant_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, primary_key=primary_key)


def _created_at() -> sa.Column:
  return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()"))


def upgrade() -> None:
  """Upgrade schema."""
  op.create_table(
    "tenants",
    _uuid_pk(),
    sa.Column("name", sa.String(), nullable=False),
    sa.Column("slug", sa.String(), nullable=False),
    _created_at(),
  )
  op.create_index("ix_tenants_slug", "tenants", ["slug"], unique=True)

  op.create_table(
    "tenant_settings",
    _tenant_fk(primary_key=True),
    sa.Column("ai_mode", sa.String(), nullable=True),
    sa.Column("pricing_enabled", sa.Boolean(), nullable=True),
    sa.Column("pricing_model", sa.String(), nullable=True),
    sa.Column("rendering_enabled", sa.Boolean(), nullable=True),
    sa.Column("ai_rendering_enabled", sa.Boolean(), nullable=True),
    sa.Column("rendering_prompt_addendum", sa.Text(), nullable=True),
    sa.Column("rendering_negative_guidance", sa.Text(), nullable=True),
    sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True, server_default=sa.text("now()")),
  )

  op.create_table(
    "tenant_pricing_config",
    _tenant_fk(primary_key=True),
    sa.Column("model", sa.String(), nullable=True),
    sa.Column("flat_rate_default", sa.Numeric(12, 2), nullable=True),
    sa.Column("hourly_labor_rate", sa.Numeric(12, 2), nullable=True),
    sa.Column("material_markup_percent", sa.Numeric(6, 2), nullable=True),
    sa.Column("per_unit_rate", sa.Numeric(12, 2), nullable=True),
    sa.Column("per_unit_label", sa.String(), nullable=True),
    sa.Column("package_json", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
    sa.Column("line_items_json", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
    sa.Column("assessment_fee_amount", sa.Numeric(12, 2), nullable=True),
    sa.Column("assessment_fee_credit_toward_job", sa.Boolean(), nullable=True),
    sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True, server_default=sa.text("now()")),
  )

  op.create_table(
    "tenant_pricing_rules",
    _uuid_pk(),
    _tenant_fk(),
    sa.Column("min_job", sa.Integer(), nullable=True),
    sa.Column("typical_low", sa.Integer(), nullable=True),
    sa.Column("typical_high", sa.Integer(), nullable=True),
    sa.Column("max_without_inspection", sa.Integer(), nullable=True),
    sa.Column("tone", sa.String(), nullable=True, server_default="value"),
    sa.Column("risk_posture", sa.String(), nullable=True, server_default="conservative"),
    sa.Column("always_estimate_language", sa.Boolean(), nullable=False, server_default=sa.text("true")),
    _created_at(),
  )
  op.create_index("ix_tenant_pricing_rules_tenant_id", "tenant_pricing_rules", ["tenant_id"], unique=False)

  op.create_table(
    "quotes",
    _uuid_pk(),
    _tenant_fk(),
    sa.Column("input", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
    sa.Column("output", postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default=sa.text("'{}'::jsonb")),
    sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
    sa.Column("stage", sa.String(), nullable=False, server_default="new"),
    _created_at(),
  )
  op.create_index("ix_quotes_tenant_id", "quotes", ["tenant_id"], unique=False)

  op.create_table(
    "quote_versions",
    _uuid_pk(),
    _tenant_fk(),
    sa.Column("quote_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False),
    sa.Column("version", sa.Integer(), nullable=False),
    sa.Column("ai_mode", sa.String(), nullable=True),
    sa.Column("source", sa.String(), nullable=False),
    sa.Column("created_by", sa.String(), nullable=False),
    sa.Column("reason", sa.Text(), nullable=True),
    sa.Column("output", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
    sa.Column("meta", postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default=sa.text("'{}'::jsonb")),
    sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("false")),
    _created_at(),
    sa.UniqueConstraint("quote_id", "version", name="ux_quote_versions_quote_version"),
  )
  op.create_index("ix_quote_versions_tenant_id", "quote_versions", ["tenant_id"], unique=False)
  op.create_index("ix_quote_versions_quote_id", "quote_versions", ["quote_id"], unique=False)
  op.create_index("ux_quote_versions_active", "quote_versions", ["quote_id"], unique=True, postgresql_where=sa.text("is_active"))

  op.create_table(
    "quote_renders",
    _uuid_pk(),
    _tenant_fk(),
    sa.Column("quote_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False),
    sa.Column("quote_version_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("quote_versions.id", ondelete="SET NULL"), nullable=True),
    sa.Column("attempt", sa.Integer(), nullable=False, server_default=sa.text("1")),
    sa.Column("status", sa.Text(), nullable=False, server_default="queued"),
    sa.Column("prompt", sa.Text(), nullable=True),
    sa.Column("shop_notes", sa.Text(), nullable=True),
    sa.Column("image_url", sa.Text(), nullable=True),
    sa.Column("error", sa.Text(), nullable=True),
    _created_at(),
    sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
    sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
    sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    sa.CheckConstraint("status IN ('queued', 'running', 'rendered', 'failed')", name="ck_quote_renders_status"),
    sa.CheckConstraint("attempt >= 1", name="ck_quote_renders_attempt"),
  )
  op.create_index("ix_quote_renders_tenant_id", "quote_renders", ["tenant_id"], unique=False)
  op.create_index("ix_quote_renders_status_created_at", "quote_renders", ["status", "created_at"], unique=False)
  op.create_index("ix_quote_renders_quote_created_at", "quote_renders", ["quote_id", "created_at"], unique=False)


def downgrade() -> None:
  """Downgrade schema."""
  op.drop_table("quote_renders")
  op.drop_index("ux_quote_versions_active", table_name="quote_versions")
  op.drop_table("quote_versions")
  op.drop_table("quotes")
  op.drop_table("tenant_pricing_rules")
  op.drop_table("tenant_pricing_config")
  op.drop_table("tenant_settings")
  op.drop_table("tenants")
