from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from rwandabill.core.logging import get_logger, log_event, redact_fields
from rwandabill.modules.audit.models import AuditEvent

logger = get_logger(__name__)


def record_event(
    session: Session,
    *,
    event_type: str,
    actor_account_id: int | None = None,
    subject_account_id: int | None = None,
    **payload: Any,
) -> AuditEvent:
    """Stage an audit row on ``session`` and emit the same fact to the log.

    The row is committed together with the caller's own changes.
    """
    clean = {k: v for k, v in redact_fields(payload).items() if v is not None}
    event = AuditEvent(
        event_type=event_type,
        actor_account_id=actor_account_id,
        subject_account_id=subject_account_id,
        payload_json=clean,
    )
    session.add(event)
    log_event(
        logger,
        event_type,
        actor_account_id=actor_account_id,
        subject_account_id=subject_account_id,
        **clean,
    )
    return event


def list_events(
    session: Session, *, subject_account_id: int | None = None, event_type: str | None = None
) -> list[AuditEvent]:
    q = select(AuditEvent)
    if subject_account_id is not None:
        q = q.where(AuditEvent.subject_account_id == subject_account_id)
    if event_type is not None:
        q = q.where(AuditEvent.event_type == event_type)
    return list(session.scalars(q.order_by(AuditEvent.occurred_at, AuditEvent.id)))
