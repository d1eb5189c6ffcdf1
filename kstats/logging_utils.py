"""Structured JSON logging utilities."""
import json
import time
import uuid
from datetime import datetime, timezone
from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
import logging

# Root logger writes one JSON object per line
logger = logging.getLogger()
handler = logging.StreamHandler()

EXTRA_FIELDS = (
    "request_id",
    "method",
    "path",
    "status",
    "latency_ms",
    "channel",
    "cache",
    "error",
)


def configure_logging(level: str = "INFO"):
    """Configure logging level."""
    log_level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(log_level)
    handler.setLevel(log_level)


configure_logging()


class JSONFormatter(logging.Formatter):
    """Custom formatter that outputs JSON logs."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "message": record.getMessage(),
        }

        for field in EXTRA_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        if record.exc_info:
            log_data["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


handler.setFormatter(JSONFormatter())
logger.addHandler(handler)
logger.propagate = False


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log requests in JSON format."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = str(uuid.uuid4())
        start_time = time.time()

        request.state.request_id = request_id

        response = await call_next(request)

        latency_ms = int((time.time() - start_time) * 1000)

        from kstats.routes.metrics import http_requests_total, request_latency_ms
        http_requests_total.labels(
            path=metrics_path(request.scope["path"]),
            status=response.status_code,
        ).inc()
        request_latency_ms.observe(latency_ms)

        logging.getLogger("http").info(
            "Request handled",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.scope["path"],
                "status": response.status_code,
                "latency_ms": latency_ms,
            },
        )

        return response


def metrics_path(path: str) -> str:
    """Collapse per-channel and asset paths so metric labels stay bounded."""
    if path.startswith("/assets/"):
        return "/assets"
    if path in ("/healthz", "/metrics"):
        return path
    return "/{channel}"
