"""FastAPI application entry point."""
from fastapi import FastAPI
from fastapi.templating import Jinja2Templates
import redis
from kstats.assembler import ChannelDataAssembler
from kstats.cache import ChannelCache
from kstats.config import settings
from kstats.logging_utils import LoggingMiddleware, configure_logging
from kstats.models import Database
from kstats.routes import health, metrics, dashboard
from kstats.routes.assets import CachedStaticFiles
import logging

logger = logging.getLogger(__name__)

configure_logging(settings.log_level)

app = FastAPI(
    title="kstats",
    description="Read-only usage statistics dashboard for IRC channels",
    version="1.0.0",
)

app.add_middleware(LoggingMiddleware)

app.mount("/assets", CachedStaticFiles(directory=settings.assets_dir, check_dir=False), name="assets")

# The dashboard catches every remaining path, so it goes last
app.include_router(health.router)
app.include_router(metrics.router)
app.include_router(dashboard.router)


@app.on_event("startup")
async def startup_event():
    """Create the shared store, cache and template handles."""
    if not settings.validate_database_type():
        logger.error("Unsupported KSTATS_DATABASE_TYPE %r; only sqlite is available.", settings.database_type)

    host, port = settings.redis_host_port()
    app.state.database = Database(settings.database_url)
    app.state.redis = redis.Redis(host=host, port=port, password=settings.redis_password)
    app.state.channel_cache = ChannelCache(
        app.state.redis,
        ChannelDataAssembler(app.state.database),
        ttl_seconds=settings.cache_ttl_seconds,
    )
    app.state.templates = Jinja2Templates(directory=settings.template_dir)
    logger.info("Application started")


@app.on_event("shutdown")
async def shutdown_event():
    app.state.redis.close()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "kstats.main:app",
        host="0.0.0.0",
        port=8080,
        log_config=None,  # We use our own JSON logging
    )
