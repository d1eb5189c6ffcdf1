"""Health check endpoints."""
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse, PlainTextResponse
import redis
from kstats.config import settings
from kstats.deps import get_database, get_redis
from kstats.models import Database

router = APIRouter()


@router.get("/healthz", response_class=PlainTextResponse)
async def healthz():
    """Liveness probe - always OK once the app is serving."""
    return "OK"


@router.get("/health/ready")
def readiness(
    database: Database = Depends(get_database),
    client: redis.Redis = Depends(get_redis),
):
    """
    Readiness probe - returns 200 only if:
    - the configured database type is supported
    - the message store is reachable and has its schema
    - the cache answers a PING
    """
    if not settings.validate_database_type():
        return not_ready(f"unsupported database type: {settings.database_type}")

    if not database.check_ready():
        return not_ready("database not ready")

    try:
        client.ping()
    except redis.RedisError:
        return not_ready("cache not reachable")

    return {"status": "ready"}


def not_ready(reason: str) -> JSONResponse:
    return JSONResponse(
        content={"status": "not ready", "reason": reason},
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
    )
