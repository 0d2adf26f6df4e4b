"""
Liveness and readiness checks.

`/health` says the process is up; `/api/health` also checks the database.
"""
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session

from compintel.db.session import get_db

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """Liveness only: answers without touching the competitor database."""
    return {"status": "ok"}


@router.get("/api/health")
def api_health_check(db: Session = Depends(get_db)):
    """
    Readiness: can we reach the database holding the competitor inventory
    and snapshot tables?

    Returns 200 with services.database.status "ok" when a trivial query
    succeeds, 503 with the driver error otherwise.
    """
    health_status = {
        "status": "ok",
        "services": {}
    }
    is_healthy = True

    try:
        db.execute(text("SELECT 1"))
        health_status["services"]["database"] = {"status": "ok"}
    except Exception as e:
        health_status["services"]["database"] = {"status": "error", "message": str(e)}
        is_healthy = False

    if not is_healthy:
        health_status["status"] = "unhealthy"
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=health_status
        )

    return health_status
