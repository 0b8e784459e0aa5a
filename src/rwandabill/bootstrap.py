from __future__ import annotations

import rwandabill.models  # noqa: F401
from rwandabill.core.config import settings
from rwandabill.core.db import SessionLocal, engine, is_sqlite
from rwandabill.core.logging import get_logger, log_event
from rwandabill.core.models import Base
from rwandabill.modules.identity.service import ensure_super_admin

logger = get_logger(__name__)


def bootstrap() -> None:
    if settings.environment in {"dev", "test"} and is_sqlite():
        Base.metadata.create_all(engine)

    if not settings.init_super_admin_email or not settings.init_super_admin_password:
        return

    with SessionLocal() as session:
        account = ensure_super_admin(
            session,
            email=settings.init_super_admin_email,
            password=settings.init_super_admin_password,
            full_name=settings.init_super_admin_full_name,
        )
        log_event(
            logger,
            "bootstrap.super_admin",
            account_id=account.id,
            email=account.email,
            role=account.role.value,
        )
