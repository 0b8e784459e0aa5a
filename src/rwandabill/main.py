from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from rwandabill.api.router import router as api_router
from rwandabill.bootstrap import bootstrap
from rwandabill.core.config import settings
from rwandabill.core.errors import InternalError
from rwandabill.core.logging import RequestContextMiddleware, get_logger, log_exception

logger = get_logger(__name__)


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder({"detail": "Invalid input", "errors": errors}),
    )


async def _database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    # Full detail goes to the log only; callers get the generic body.
    log_exception(
        logger,
        "http.request.database_error",
        method=request.method,
        path=request.url.path,
        error_type=type(exc).__name__,
    )
    error = InternalError()
    return JSONResponse(status_code=error.status_code, content={"detail": error.detail})


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(_: FastAPI):
        bootstrap()
        yield

    app = FastAPI(title="RwandaBill Identity", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestContextMiddleware)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(SQLAlchemyError, _database_error_handler)
    app.include_router(api_router)
    return app


app = create_app()
