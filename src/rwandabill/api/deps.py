from __future__ import annotations

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from rwandabill.core.db import db_session
from rwandabill.core.errors import InvalidToken
from rwandabill.core.logging import set_account_context
from rwandabill.core.security import strip_bearer
from rwandabill.modules.identity.authz import CallerContext, authorize
from rwandabill.modules.identity.models import UserRole
from rwandabill.modules.identity.service import get_current_identity

bearer_scheme = HTTPBearer(auto_error=False)


def get_optional_caller(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(db_session),
) -> CallerContext | None:
    if credentials:
        token = credentials.credentials
    else:
        # Tolerate a bare token without the "Bearer " scheme.
        token = strip_bearer(request.headers.get("authorization"))
    if not token:
        return None
    account = get_current_identity(session, token=token)
    set_account_context(account.id)
    return CallerContext.from_account(account)


def get_caller(caller: CallerContext | None = Depends(get_optional_caller)) -> CallerContext:
    if caller is None:
        raise InvalidToken("Not authenticated")
    return caller


def require_privilege(required: UserRole):
    def _checker(
        caller: CallerContext = Depends(get_caller),
        session: Session = Depends(db_session),
    ) -> CallerContext:
        account = authorize(session, caller, required)
        return CallerContext.from_account(account)

    return _checker
