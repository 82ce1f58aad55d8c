from __future__ import annotations

import datetime
import uuid

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, Text, func, text
from sqlalchemy.orm import Mapped, mapped_column

from apq.core.database import Base


class QuoteRender(Base):
  __tablename__ = "quote_renders"
  __table_args__ = (
    CheckConstraint("status IN ('queued', 'running', 'rendered', 'failed')", name="ck_quote_renders_status"),
    CheckConstraint("attempt >= 1", name="ck_quote_renders_attempt"),
    Index("ix_quote_renders_status_created_at", "status", "created_at"),
    Index("ix_quote_renders_quote_created_at", "quote_id", "created_at"),
  )

  id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
  tenant_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
  quote_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False)
  quote_version_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("quote_versions.id", ondelete="SET NULL"), nullable=True)
  attempt: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("1"))
  status: Mapped[str] = mapped_column(Text, nullable=False, server_default="queued")
  prompt: Mapped[str | None] = mapped_column(Text, nullable=True)
  shop_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
  image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
  error: Mapped[str | None] = mapped_column(Text, nullable=True)
  created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
  started_at: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
  completed_at: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
  updated_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
