from __future__ import annotations

import enum
from datetime import UTC, datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from rwandabill.core.models import Base, IntegerPrimaryKey, Timestamped


class UserRole(str, enum.Enum):
    USER = "USER"
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"


class ServiceType(str, enum.Enum):
    WATER = "WATER"
    SANITATION = "SANITATION"
    SECURITY = "SECURITY"


class ApprovalState(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"


class Account(IntegerPrimaryKey, Timestamped, Base):
    """One row per identity; ``role`` discriminates regular users, admins and super-admins.

    Email uniqueness is a single table-wide constraint, which is what keeps the
    three identity classes disjoint.
    """

    __tablename__ = "identity_account"
    __table_args__ = (
        CheckConstraint(
            "role != 'ADMIN' OR service_type IS NOT NULL", name="ck_identity_account_admin_service"
        ),
    )

    email: Mapped[str] = mapped_column(String(320), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(200))

    full_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    telephone: Mapped[str | None] = mapped_column(String(40), nullable=True)
    district: Mapped[str | None] = mapped_column(String(100), nullable=True)
    sector: Mapped[str | None] = mapped_column(String(100), nullable=True)

    role: Mapped[UserRole] = mapped_column(Enum(UserRole, native_enum=False), index=True)
    service_type: Mapped[ServiceType | None] = mapped_column(
        Enum(ServiceType, native_enum=False), nullable=True
    )

    is_active: Mapped[bool] = mapped_column(Boolean, default=False)
    approved: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    approved_by: Mapped[str | None] = mapped_column(String(320), nullable=True)

    @property
    def is_regular_user(self) -> bool:
        return self.role == UserRole.USER

    @property
    def approval_state(self) -> ApprovalState:
        return ApprovalState.APPROVED if self.approved else ApprovalState.PENDING


BOOTSTRAP_CLAIM_ID = 1


class BootstrapClaim(Base):
    """Marks that the anonymous super-admin bootstrap has been used.

    The primary key is always ``BOOTSTRAP_CLAIM_ID``, so at most one row can
    ever be inserted and concurrent bootstraps lose on the insert.
    """

    __tablename__ = "identity_bootstrap_claim"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    account_id: Mapped[int] = mapped_column(ForeignKey("identity_account.id", ondelete="CASCADE"))
    claimed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC)
    )
