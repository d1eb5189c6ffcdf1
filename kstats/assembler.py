"""Builds the full statistics record for one channel."""
import logging
import time
from kstats import storage
from kstats.models import Database
from kstats.schemas import ChannelData
from kstats.storage import PercentageStat

logger = logging.getLogger(__name__)


class ChannelDataAssembler:
    """
    Runs every aggregation query for a channel and collects the results.

    The channel is resolved first; the queries then run one after another on
    a single connection. The first failure propagates and nothing partial is
    returned.
    """

    def __init__(self, database: Database):
        self.database = database

    def build(self, token: str) -> ChannelData:
        start_time = time.time()

        with self.database.connection() as conn:
            channel_id, name = storage.get_channel(conn, token)

            data = ChannelData(id=channel_id, name=name, **storage.get_totals(conn, channel_id))
            data.hour_usage = storage.get_hour_usage(conn, channel_id)
            data.users = storage.get_users(conn, channel_id)
            data.questions = storage.get_percentage_stats(conn, channel_id, PercentageStat.QUESTION)
            data.exclamations = storage.get_percentage_stats(conn, channel_id, PercentageStat.EXCLAMATION)
            data.caps = storage.get_percentage_stats(conn, channel_id, PercentageStat.CAPS)
            data.emoji_happy = storage.get_percentage_stats(conn, channel_id, PercentageStat.EMOJI_HAPPY)
            data.emoji_sad = storage.get_percentage_stats(conn, channel_id, PercentageStat.EMOJI_SAD)
            data.longest_lines = storage.get_longest_lines(conn, channel_id)
            data.shortest_lines = storage.get_shortest_lines(conn, channel_id)
            data.total_words = storage.get_total_words(conn, channel_id)
            data.references = storage.get_references(conn, channel_id)
            data.average_words = storage.get_average_words(conn, channel_id)

        logger.info(
            "Channel statistics built",
            extra={"channel": name, "latency_ms": int((time.time() - start_time) * 1000)},
        )
        return data
