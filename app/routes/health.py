"""
Blogline Health Check Routes
"""
import os
import sys
import time
from datetime import datetime, timezone
from typing import Any, Dict

import psutil
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import get_settings
from ..database import get_db
from ..logging_config import db_logger

settings = get_settings()

router = APIRouter(prefix="/api/health", tags=["health"])

START_TIME = datetime.now(timezone.utc)
VERSION = "1.0.0"


def get_uptime() -> str:
    """Get service uptime as human-readable string"""
    delta = datetime.now(timezone.utc) - START_TIME
    hours, remainder = divmod(delta.seconds, 3600)
    minutes, seconds = divmod(remainder, 60)

    if delta.days > 0:
        return f"{delta.days}d {hours}h {minutes}m"
    elif hours > 0:
        return f"{hours}h {minutes}m {seconds}s"
    else:
        return f"{minutes}m {seconds}s"


def check_database(db: Session) -> Dict[str, Any]:
    """Round-trip a trivial query to the store"""
    start = time.perf_counter()
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        db_logger.error("Health check query failed", error=e)
        return {
            "status": "unhealthy",
            "error": type(e).__name__,
        }
    return {
        "status": "healthy",
        "dialect": db.get_bind().dialect.name,
        "latency_ms": round((time.perf_counter() - start) * 1000, 2),
    }


def check_process() -> Dict[str, Any]:
    """Resource usage of this worker process"""
    process = psutil.Process(os.getpid())
    memory = process.memory_info()
    return {
        "status": "healthy",
        "rss_mb": round(memory.rss / (1024 * 1024), 2),
        "threads": process.num_threads(),
        "python_version": sys.version.split()[0],
    }


@router.get("")
def health(db: Session = Depends(get_db)):
    """Health check for load balancers and monitoring; 503 when the store is unreachable."""
    database = check_database(db)
    healthy = database["status"] == "healthy"

    body = {
        "success": healthy,
        "data": {
            "status": "healthy" if healthy else "unhealthy",
            "environment": settings.environment,
            "version": VERSION,
            "uptime": get_uptime(),
            "checks": {
                "database": database,
                "process": check_process(),
            },
        },
    }
    return JSONResponse(status_code=200 if healthy else 503, content=body)
