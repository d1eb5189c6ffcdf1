"""Error kinds raised by the statistics pipeline.

Every layer raises one of these; the HTTP boundary in
``kstats.routes.dashboard`` turns them into a status code.
"""


class StatsError(Exception):
    """Base class for request-terminal failures."""


class ChannelNotFoundError(StatsError):
    def __init__(self, channel: str):
        super().__init__(f"channel not found: {channel}")
        self.channel = channel


class QueryError(StatsError):
    """An aggregation query failed against the message store."""

    def __init__(self, query: str, cause: Exception):
        super().__init__(f"{query} failed: {cause}")
        self.query = query
        self.cause = cause


class CacheWriteError(StatsError):
    """The freshly built record could not be written to the cache."""


class RenderError(StatsError):
    """The dashboard template is missing or failed to render."""
