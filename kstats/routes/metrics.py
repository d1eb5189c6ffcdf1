"""Prometheus metrics endpoint."""
from fastapi import APIRouter, Response
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

router = APIRouter()

http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["path", "status"]
)

cache_lookups_total = Counter(
    "cache_lookups_total",
    "Channel statistics cache lookups",
    ["result"]
)

channel_builds_total = Counter(
    "channel_builds_total",
    "Channel statistics recomputations after a cache miss",
    ["outcome"]
)

request_latency_ms = Histogram(
    "request_latency_ms",
    "Request latency in milliseconds",
    buckets=[5, 25, 100, 250, 1000, 5000, float("inf")]
)

# Only recomputations are timed; cache hits never reach the store
channel_build_seconds = Histogram(
    "channel_build_seconds",
    "Time spent running the aggregation queries for one channel",
    buckets=[0.01, 0.05, 0.1, 0.5, 1, 5, float("inf")]
)


@router.get("/metrics")
async def metrics():
    """Expose Prometheus-style metrics in text format."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )
