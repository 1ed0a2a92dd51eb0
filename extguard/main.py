from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s [%(name)s] %(message)s",
    stream=sys.stdout,
)

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError, ProgrammingError

from extguard.routers.extensions import router as extensions_router
from extguard.services.extensions import ExtensionServiceError, seed_default_extensions
from extguard.settings import get_settings

settings = get_settings()
log = logging.getLogger(__name__)


def bootstrap_fixed_extensions() -> None:
    # Migrations create the tables; if they have not run yet, skip seeding.
    from extguard.db.session import SessionLocal

    db = SessionLocal()
    try:
        seeded = seed_default_extensions(db)
    except (OperationalError, ProgrammingError) as e:
        log.warning(f"Skipping default extension seed: {e}")
        return
    finally:
        db.close()

    if seeded:
        log.info(f"Seeded {seeded} default fixed extensions")


@asynccontextmanager
async def lifespan(_: FastAPI):
    if settings.seed_default_extensions:
        bootstrap_fixed_extensions()
    yield


app = FastAPI(title="extguard", version=settings.app_version, lifespan=lifespan)
app.include_router(extensions_router)


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        {"success": False, "status": status_code, "message": message},
        status_code=status_code,
    )


@app.exception_handler(ExtensionServiceError)
async def extension_error_handler(_: Request, exc: ExtensionServiceError):
    return _error_response(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(_: Request, exc: RequestValidationError):
    fields = ", ".join(".".join(str(p) for p in err["loc"][1:]) for err in exc.errors())
    return _error_response(400, f"Invalid request: {fields or 'body'}")


@app.get("/health")
def health():
    return {"ok": True}
