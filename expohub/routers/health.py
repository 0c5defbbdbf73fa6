from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from expohub.core.logging import app_logger
from expohub.infra.db import DatabaseNotConfiguredError, health_check

router = APIRouter(tags=["health"])

@router.get("/healthz")
def healthz():
    return {"status": "ok"}

@router.get("/readyz")
def readyz():
    """Pronto apenas quando o Postgres responde."""
    try:
        return {"status": "ready", "database": health_check()}
    except (DatabaseNotConfiguredError, SQLAlchemyError) as exc:
        app_logger.warning("Readiness check failed", exc=exc)
        return JSONResponse(
            status_code=503,
            content={"status": "not ready", "error": str(exc)},
        )
