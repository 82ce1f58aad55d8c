from __future__ import annotations

import datetime
import uuid

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint, func, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from apq.core.database import Base


class Quote(Base):
  __tablename__ = "quotes"

  id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
  tenant_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
  input: Mapped[dict] = mapped_column(JSONB, nullable=False)
  output: Mapped[dict] = mapped_column(JSONB, nullable=False, server_default=text("'{}'::jsonb"))
  is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="false")
  # new | reviewing | quoted | scheduled | won | lost | archived
  stage: Mapped[str] = mapped_column(String, nullable=False, server_default="new")
  created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class QuoteVersion(Base):
  """Immutable assessment snapshot; only is_active flips when a newer version lands."""

  __tablename__ = "quote_versions"
  __table_args__ = (
    UniqueConstraint("quote_id", "version", name="ux_quote_versions_quote_version"),
    Index("ux_quote_versions_active", "quote_id", unique=True, postgresql_where=text("is_active")),
  )

  id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
  tenant_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
  quote_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False, index=True)
  version: Mapped[int] = mapped_column(Integer, nullable=False)
  ai_mode: Mapped[str | None] = mapped_column(String, nullable=True)
  source: Mapped[str] = mapped_column(String, nullable=False)
  created_by: Mapped[str] = mapped_column(String, nullable=False)
  reason: Mapped[str | None] = mapped_column(Text, nullable=True)
  output: Mapped[dict] = mapped_column(JSONB, nullable=False)
  meta: Mapped[dict] = mapped_column(JSONB, nullable=False, server_default=text("'{}'::jsonb"))
  is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="false")
  created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
