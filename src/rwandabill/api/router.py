from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from rwandabill.core.db import db_session
from rwandabill.modules.identity.api import router as identity_router

router = APIRouter()

router.include_router(identity_router, prefix="/api")


@router.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/healthz/db")
def healthz_db(session: Session = Depends(db_session)) -> dict[str, str]:
    session.execute(text("SELECT 1"))
    return {"status": "ok"}
