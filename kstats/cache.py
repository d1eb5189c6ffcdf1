"""Cache-aside access to channel statistics backed by Redis.

Entries are keyed by the literal channel token and expire after a fixed TTL;
nothing invalidates them early. Concurrent misses for the same channel each
rebuild and overwrite the entry.
"""
import logging
from typing import Optional, Tuple
import redis
from pydantic import ValidationError
from kstats.assembler import ChannelDataAssembler
from kstats.errors import CacheWriteError
from kstats.routes.metrics import cache_lookups_total, channel_build_seconds, channel_builds_total
from kstats.schemas import ChannelData

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300


class ChannelCache:
    def __init__(self, client: redis.Redis, assembler: ChannelDataAssembler, ttl_seconds: int = DEFAULT_TTL_SECONDS):
        self.client = client
        self.assembler = assembler
        self.ttl_seconds = ttl_seconds

    def get(self, token: str) -> Optional[ChannelData]:
        """Return the cached record, or None on a miss.

        Read errors and undecodable entries count as misses.
        """
        try:
            payload = self.client.get(token)
        except redis.RedisError as e:
            cache_lookups_total.labels(result="error").inc()
            logger.warning("Cache read failed", extra={"channel": token, "error": str(e)})
            return None

        if payload is None:
            cache_lookups_total.labels(result="miss").inc()
            return None

        try:
            data = ChannelData.model_validate_json(payload)
        except ValidationError as e:
            cache_lookups_total.labels(result="error").inc()
            logger.warning("Cached entry could not be decoded", extra={"channel": token, "error": str(e)})
            return None

        cache_lookups_total.labels(result="hit").inc()
        return data

    def store(self, token: str, data: ChannelData):
        try:
            self.client.set(token, data.model_dump_json(), ex=self.ttl_seconds)
        except redis.RedisError as e:
            raise CacheWriteError(f"could not cache {token}: {e}") from e

    def get_or_build(self, token: str) -> Tuple[ChannelData, bool]:
        """
        Serve ``token`` from the cache, building and storing it on a miss.

        Returns:
            (data, hit) where hit is True if the record came from the cache
        """
        data = self.get(token)
        if data is not None:
            return data, True

        try:
            with channel_build_seconds.time():
                data = self.assembler.build(token)
        except Exception:
            channel_builds_total.labels(outcome="error").inc()
            raise
        channel_builds_total.labels(outcome="ok").inc()

        self.store(token, data)
        return data, False
