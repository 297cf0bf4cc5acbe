"""
Diagnostics endpoints.

``/health`` is a liveness check that also pings the database.
``/api/test`` reports the database time and whether the two required
environment variables are set (their values are never echoed).
"""

import logging
import os
from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from linkshelf_api.app.core.db import Database, get_database
from linkshelf_api.app.core.errors import ServerError

logger = logging.getLogger(__name__)

router = APIRouter()


def _env_flags() -> Dict[str, bool]:
    return {
        "hasDatabaseUrl": bool(os.getenv("DATABASE_URL")),
        "hasJwtSecret": bool(os.getenv("JWT_SECRET")),
    }


@router.get("/health")
async def health(db: Database = Depends(get_database)) -> Any:
    try:
        db.ping()
    except ServerError as exc:
        logger.error("DB health check failed: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"ok": False, "error": "db_failed"},
        )
    return {"ok": True}


@router.get("/api/test")
async def connection_test(db: Database = Depends(get_database)) -> Any:
    try:
        current_time = db.ping()
    except ServerError as exc:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"ok": False, "error": exc.message, "env": _env_flags()},
        )
    return {
        "ok": True,
        "message": "Database connection successful",
        "time": current_time,
        "env": _env_flags(),
    }
