"""Channel statistics dashboard."""
from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import PlainTextResponse
from fastapi.templating import Jinja2Templates
import jinja2
import logging
from kstats.cache import ChannelCache
from kstats.config import settings
from kstats.deps import get_channel_cache, get_templates
from kstats.errors import ChannelNotFoundError, RenderError, StatsError
from kstats.schemas import ChannelData

logger = logging.getLogger(__name__)
router = APIRouter()

TEMPLATE_NAME = "statistics.html"


def channel_token(path: str) -> str:
    """Last segment of the request path, e.g. ``#python`` for ``/x/%23python``."""
    return path.rpartition("/")[2]


def render_statistics(templates: Jinja2Templates, request: Request, data: ChannelData) -> Response:
    """Render the statistics template, raising RenderError on any template failure."""
    try:
        return templates.TemplateResponse(
            request,
            TEMPLATE_NAME,
            {"channel": data},
        )
    except jinja2.TemplateError as e:
        raise RenderError(f"{TEMPLATE_NAME}: {e}") from e


def error_status(error: StatsError) -> int:
    if isinstance(error, ChannelNotFoundError):
        return status.HTTP_404_NOT_FOUND
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@router.get("/{path:path}")
def dashboard(
    path: str,
    request: Request,
    cache: ChannelCache = Depends(get_channel_cache),
    templates: Jinja2Templates = Depends(get_templates),
):
    """
    Render the statistics page for the channel named by the last path segment.

    Only tokens starting with ``#`` are channels; anything else is a 404.
    The page is rendered only once the record has been served from the cache
    or built and successfully written back to it.
    """
    token = channel_token(path)
    if not token.startswith("#"):
        return Response(status_code=status.HTTP_404_NOT_FOUND)

    try:
        data, hit = cache.get_or_build(token)
        response = render_statistics(templates, request, data)
    except StatsError as e:
        status_code = error_status(e)
        logger.error(
            "Dashboard request failed",
            exc_info=settings.debug,
            extra={
                "request_id": getattr(request.state, "request_id", "unknown"),
                "channel": token,
                "status": status_code,
                "error": str(e),
            },
        )
        return PlainTextResponse(str(e), status_code=status_code)

    logger.info(
        "Dashboard rendered",
        extra={
            "request_id": getattr(request.state, "request_id", "unknown"),
            "channel": token,
            "cache": "hit" if hit else "miss",
        },
    )
    return response
