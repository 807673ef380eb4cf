import logging
import os
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from scholarchain.core.config import check_serving_settings, get_settings
from scholarchain.core.database import engine
from scholarchain.core.errors import (
    CHECK, NOT_NULL, ConstraintViolation, InvalidStateError, MigrationError, NotFoundError
)
from scholarchain.core.middleware import RequestLoggingMiddleware
from scholarchain.migrations import upgrade_database
from scholarchain.api.v1 import router as api_router

settings = get_settings()

_log_level = (settings.log_level or os.getenv("LOG_LEVEL", "DEBUG" if settings.debug else "INFO")).upper()
logging.basicConfig(
    level=_log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
logging.getLogger("alembic").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    check_serving_settings(settings)
    if settings.run_migrations_on_startup:
        try:
            applied = await upgrade_database(engine)
        except MigrationError as exc:
            logger.critical("Refusing to start: %s", exc)
            raise
        if applied:
            logger.info("Applied %d migration(s): %s", len(applied), ", ".join(applied))
    yield
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    version="1.0.0",
    description="Persistence layer and REST API for on-chain scholarly publishing",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(RequestLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "Accept", "Origin", "X-Requested-With"],
)

app.include_router(api_router, prefix=settings.api_v1_prefix)


@app.exception_handler(ConstraintViolation)
async def constraint_violation_handler(request: Request, exc: ConstraintViolation):
    code = (
        status.HTTP_422_UNPROCESSABLE_ENTITY
        if exc.kind in (CHECK, NOT_NULL)
        else status.HTTP_409_CONFLICT
    )
    return JSONResponse(
        status_code=code,
        content={"detail": exc.message, "kind": exc.kind, "constraint": exc.constraint},
    )


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": str(exc), "kind": "not_found", "constraint": None},
    )


@app.exception_handler(InvalidStateError)
async def invalid_state_handler(request: Request, exc: InvalidStateError):
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": str(exc), "kind": "invalid_state", "constraint": None},
    )


@app.get("/health")
async def health_check():
    return {"status": "healthy", "version": "1.0.0"}
