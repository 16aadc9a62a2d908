from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from expense_tracker.services.timestamps import utc_now

router = APIRouter(tags=["system"])


@router.get("/health", summary="Service and database health")
async def health(request: Request):
    settings = request.app.state.settings
    database = getattr(request.app.state, "database", None)
    connected = database is not None and database.ping()
    body = {
        "status": "OK" if connected else "ERROR",
        "timestamp": utc_now().isoformat(),
        "database": "connected" if connected else "disconnected",
        "environment": settings.environment,
        "version": settings.version,
    }
    return JSONResponse(status_code=200 if connected else 503, content=body)


@router.get("/api/ping", summary="Liveness check")
async def ping():
    return {"message": "pong"}
