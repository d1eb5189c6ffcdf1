"""Static asset serving with long-lived caching headers."""
from starlette.staticfiles import StaticFiles

CACHE_HEADERS = {
    "Cache-Control": "public, max-age=31536000",
    "Vary": "Accept-Encoding",
}


class CachedStaticFiles(StaticFiles):
    """StaticFiles that marks every response as cacheable for a year."""

    async def get_response(self, path, scope):
        response = await super().get_response(path, scope)
        response.headers.update(CACHE_HEADERS)
        return response
