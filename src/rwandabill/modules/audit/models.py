from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rwandabill.core.models import Base, IntegerPrimaryKey


class AuditEvent(IntegerPrimaryKey, Base):
    __tablename__ = "audit_event"

    actor_account_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("identity_account.id"), nullable=True, index=True
    )
    subject_account_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("identity_account.id"), nullable=True, index=True
    )

    event_type: Mapped[str] = mapped_column(String(50), index=True)
    payload_json: Mapped[dict] = mapped_column(JSON, default=dict)
    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC)
    )

    actor = relationship("Account", foreign_keys=[actor_account_id])
    subject = relationship("Account", foreign_keys=[subject_account_id])
