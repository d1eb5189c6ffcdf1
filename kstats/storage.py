"""Aggregation queries against the message store.

Every per-group statistic merges senders through the channel's ``groups``
aliases (falling back to the raw sender) and resolves the resulting group
to a display nick through ``users``, defaulting to ``[Unknown]``.
"""
import sqlite3
from contextlib import contextmanager
from enum import Enum
from typing import Dict, List, Tuple
from pydantic import ValidationError
from kstats.errors import ChannelNotFoundError, QueryError
from kstats.schemas import FloatEntry, ReferenceData, TotalEntry, UserData

UNKNOWN_NICK = "[Unknown]"

CATEGORY_LIMIT = 2
USERS_LIMIT = 20
REFERENCES_LIMIT = 5


class PercentageStat(str, Enum):
    """Message flags that get a per-group percentage ranking."""

    QUESTION = "question"
    EXCLAMATION = "exclamation"
    CAPS = "caps"
    EMOJI_HAPPY = "emoji_happy"
    EMOJI_SAD = "emoji_sad"


PERCENTAGE_QUERIES: Dict[PercentageStat, str] = {
    PercentageStat.QUESTION: """
        SELECT coalesce(u.nick, '[Unknown]') AS name, t.value AS value
        FROM (
            SELECT coalesce(g."group", m.sender) AS sender_group,
                   round(count(nullif(m.question, 0)) * 100.0 / count(*)) AS value
            FROM messages m
            LEFT JOIN "groups" g ON m.sender = g.nick AND g.channel = :channel
            WHERE m.channel = :channel
            GROUP BY sender_group
        ) t
        LEFT JOIN users u ON t.sender_group = u.hash
        WHERE t.value > 0
        ORDER BY t.value ASC, name ASC
        LIMIT :limit
    """,
    PercentageStat.EXCLAMATION: """
        SELECT coalesce(u.nick, '[Unknown]') AS name, t.value AS value
        FROM (
            SELECT coalesce(g."group", m.sender) AS sender_group,
                   round(count(nullif(m.exclamation, 0)) * 100.0 / count(*)) AS value
            FROM messages m
            LEFT JOIN "groups" g ON m.sender = g.nick AND g.channel = :channel
            WHERE m.channel = :channel
            GROUP BY sender_group
        ) t
        LEFT JOIN users u ON t.sender_group = u.hash
        WHERE t.value > 0
        ORDER BY t.value ASC, name ASC
        LIMIT :limit
    """,
    PercentageStat.CAPS: """
        SELECT coalesce(u.nick, '[Unknown]') AS name, t.value AS value
        FROM (
            SELECT coalesce(g."group", m.sender) AS sender_group,
                   round(count(nullif(m.caps, 0)) * 100.0 / count(*)) AS value
            FROM messages m
            LEFT JOIN "groups" g ON m.sender = g.nick AND g.channel = :channel
            WHERE m.channel = :channel
            GROUP BY sender_group
        ) t
        LEFT JOIN users u ON t.sender_group = u.hash
        WHERE t.value > 0
        ORDER BY t.value ASC, name ASC
        LIMIT :limit
    """,
    PercentageStat.EMOJI_HAPPY: """
        SELECT coalesce(u.nick, '[Unknown]') AS name, t.value AS value
        FROM (
            SELECT coalesce(g."group", m.sender) AS sender_group,
                   round(count(nullif(m.emoji_happy, 0)) * 100.0 / count(*)) AS value
            FROM messages m
            LEFT JOIN "groups" g ON m.sender = g.nick AND g.channel = :channel
            WHERE m.channel = :channel
            GROUP BY sender_group
        ) t
        LEFT JOIN users u ON t.sender_group = u.hash
        WHERE t.value > 0
        ORDER BY t.value ASC, name ASC
        LIMIT :limit
    """,
    PercentageStat.EMOJI_SAD: """
        SELECT coalesce(u.nick, '[Unknown]') AS name, t.value AS value
        FROM (
            SELECT coalesce(g."group", m.sender) AS sender_group,
                   round(count(nullif(m.emoji_sad, 0)) * 100.0 / count(*)) AS value
            FROM messages m
            LEFT JOIN "groups" g ON m.sender = g.nick AND g.channel = :channel
            WHERE m.channel = :channel
            GROUP BY sender_group
        ) t
        LEFT JOIN users u ON t.sender_group = u.hash
        WHERE t.value > 0
        ORDER BY t.value ASC, name ASC
        LIMIT :limit
    """,
}

# casefold() is registered on every connection by kstats.models.Database
CHANNEL_QUERY = "SELECT id, channel FROM channels WHERE casefold(channel) = casefold(:channel)"

TOTALS_QUERY = """
    SELECT COUNT(*) AS lines,
           coalesce(SUM(words), 0) AS words,
           coalesce(AVG(words), 0) AS words_per_line,
           coalesce(AVG(characters), 0) AS characters_per_line
    FROM messages
    WHERE channel = :channel
"""

HOUR_USAGE_QUERY = """
    WITH RECURSIVE series(hour) AS (
        SELECT 0
        UNION ALL
        SELECT hour + 1 FROM series WHERE hour < 23
    )
    SELECT coalesce(results.count, 0) AS count
    FROM series
    LEFT OUTER JOIN (
        SELECT CAST(strftime('%H', time) AS INTEGER) AS hour, COUNT(*) AS count
        FROM messages
        WHERE channel = :channel
        GROUP BY hour
    ) results ON series.hour = results.hour
    ORDER BY series.hour
"""

AVERAGE_CHARACTERS_QUERY = """
    SELECT coalesce(u.nick, '[Unknown]') AS name, t.average AS value
    FROM (
        SELECT coalesce(g."group", m.sender) AS sender_group,
               AVG(m.characters) AS average
        FROM messages m
        LEFT JOIN "groups" g ON m.sender = g.nick AND g.channel = :channel
        WHERE m.channel = :channel
        GROUP BY sender_group
    ) t
    LEFT JOIN users u ON t.sender_group = u.hash
"""

LONGEST_LINES_QUERY = AVERAGE_CHARACTERS_QUERY + " ORDER BY value DESC, name ASC LIMIT :limit"
SHORTEST_LINES_QUERY = AVERAGE_CHARACTERS_QUERY + " ORDER BY value ASC, name ASC LIMIT :limit"

TOTAL_WORDS_QUERY = """
    SELECT coalesce(u.nick, '[Unknown]') AS name, t.words AS value
    FROM (
        SELECT coalesce(g."group", m.sender) AS sender_group,
               SUM(m.words) AS words
        FROM messages m
        LEFT JOIN "groups" g ON m.sender = g.nick AND g.channel = :channel
        WHERE m.channel = :channel
        GROUP BY sender_group
    ) t
    LEFT JOIN users u ON t.sender_group = u.hash
    ORDER BY value DESC, name ASC
    LIMIT :limit
"""

AVERAGE_WORDS_QUERY = """
    SELECT coalesce(u.nick, '[Unknown]') AS name, t.words AS value
    FROM (
        SELECT coalesce(g."group", m.sender) AS sender_group,
               AVG(m.words) AS words
        FROM messages m
        LEFT JOIN "groups" g ON m.sender = g.nick AND g.channel = :channel
        WHERE m.channel = :channel
        GROUP BY sender_group
    ) t
    LEFT JOIN users u ON t.sender_group = u.hash
    ORDER BY value DESC, name ASC
    LIMIT :limit
"""

USERS_QUERY = """
    SELECT coalesce(u.nick, '[Unknown]') AS name,
           t.lines AS lines,
           t.words AS words,
           t.words_per_line AS words_per_line,
           t.last_seen AS last_seen
    FROM (
        SELECT coalesce(g."group", m.sender) AS sender_group,
               COUNT(*) AS lines,
               SUM(m.words) AS words,
               AVG(m.words) AS words_per_line,
               MAX(m.time) AS last_seen
        FROM messages m
        LEFT JOIN "groups" g ON m.sender = g.nick AND g.channel = :channel
        WHERE m.channel = :channel
        GROUP BY sender_group
    ) t
    LEFT JOIN users u ON t.sender_group = u.hash
    ORDER BY t.lines DESC, name ASC
    LIMIT :limit
"""

# The most recent reference is the one with the highest id; its source is
# resolved through the groups like any other sender.
REFERENCES_QUERY = """
    SELECT coalesce(u1.nick, '[Unknown]') AS name,
           t.refs AS refs,
           coalesce(u2.nick, '[Unknown]') AS last_used
    FROM (
        SELECT r.target_group AS target_group,
               r.refs AS refs,
               coalesce(g2."group", latest.source) AS last_referrer
        FROM (
            SELECT coalesce(g1."group", ref.target) AS target_group,
                   COUNT(*) AS refs,
                   MAX(ref.id) AS last_id
            FROM "references" ref
            LEFT JOIN "groups" g1 ON ref.target = g1.nick AND g1.channel = :channel
            WHERE ref.channel = :channel
            GROUP BY target_group
        ) r
        JOIN "references" latest ON latest.id = r.last_id
        LEFT JOIN "groups" g2 ON latest.source = g2.nick AND g2.channel = :channel
    ) t
    LEFT JOIN users u1 ON t.target_group = u1.hash
    LEFT JOIN users u2 ON t.last_referrer = u2.hash
    ORDER BY t.refs DESC, name ASC
    LIMIT :limit
"""


def _fetch_all(conn: sqlite3.Connection, name: str, query: str, params: dict) -> List[sqlite3.Row]:
    try:
        return conn.execute(query, params).fetchall()
    except sqlite3.Error as e:
        raise QueryError(name, e) from e


def _fetch_one(conn: sqlite3.Connection, name: str, query: str, params: dict):
    try:
        return conn.execute(query, params).fetchone()
    except sqlite3.Error as e:
        raise QueryError(name, e) from e


@contextmanager
def _converting(name: str):
    """Report rows the record models reject as a failure of query ``name``."""
    try:
        yield
    except (ValidationError, TypeError, ValueError) as e:
        raise QueryError(name, e) from e


def get_channel(conn: sqlite3.Connection, token: str) -> Tuple[int, str]:
    """Resolve a channel token (case-insensitive) to its id and stored name."""
    row = _fetch_one(conn, "channel", CHANNEL_QUERY, {"channel": token})
    if row is None:
        raise ChannelNotFoundError(token)
    return row["id"], row["channel"]


def get_totals(conn: sqlite3.Connection, channel_id: int) -> Dict:
    """Line and word totals for the whole channel."""
    row = _fetch_one(conn, "totals", TOTALS_QUERY, {"channel": channel_id})
    with _converting("totals"):
        return {
            "lines": int(row["lines"]),
            "words": int(row["words"]),
            "words_per_line": float(row["words_per_line"]),
            "characters_per_line": float(row["characters_per_line"]),
        }


def get_hour_usage(conn: sqlite3.Connection, channel_id: int) -> List[float]:
    """
    Messages per hour of day, scaled so the busiest hour is 100.

    Always returns 24 values. A channel without messages yields all zeros.
    """
    rows = _fetch_all(conn, "hour usage", HOUR_USAGE_QUERY, {"channel": channel_id})
    counts = [row["count"] for row in rows]
    busiest = max(counts, default=0)
    if busiest == 0:
        return [0.0] * len(counts)
    return [count / busiest * 100.0 for count in counts]


def get_percentage_stats(
    conn: sqlite3.Connection,
    channel_id: int,
    stat: PercentageStat,
    limit: int = CATEGORY_LIMIT,
) -> List[FloatEntry]:
    """Percentage of each group's lines carrying ``stat``, lowest first."""
    stat = PercentageStat(stat)
    name = f"{stat.value} percentage"
    rows = _fetch_all(conn, name, PERCENTAGE_QUERIES[stat], {"channel": channel_id, "limit": limit})
    with _converting(name):
        return [FloatEntry(name=row["name"], value=row["value"]) for row in rows]


def get_longest_lines(conn: sqlite3.Connection, channel_id: int, limit: int = CATEGORY_LIMIT) -> List[FloatEntry]:
    rows = _fetch_all(conn, "longest lines", LONGEST_LINES_QUERY, {"channel": channel_id, "limit": limit})
    with _converting("longest lines"):
        return [FloatEntry(name=row["name"], value=row["value"]) for row in rows]


def get_shortest_lines(conn: sqlite3.Connection, channel_id: int, limit: int = CATEGORY_LIMIT) -> List[FloatEntry]:
    rows = _fetch_all(conn, "shortest lines", SHORTEST_LINES_QUERY, {"channel": channel_id, "limit": limit})
    with _converting("shortest lines"):
        return [FloatEntry(name=row["name"], value=row["value"]) for row in rows]


def get_total_words(conn: sqlite3.Connection, channel_id: int, limit: int = CATEGORY_LIMIT) -> List[TotalEntry]:
    """Most words written, each entry pointing at the name ranked above it."""
    rows = _fetch_all(conn, "total words", TOTAL_WORDS_QUERY, {"channel": channel_id, "limit": limit})
    entries = []
    previous = ""
    with _converting("total words"):
        for row in rows:
            entries.append(TotalEntry(name=row["name"], value=row["value"], previous=previous))
            previous = row["name"]
    return entries


def get_average_words(conn: sqlite3.Connection, channel_id: int, limit: int = CATEGORY_LIMIT) -> List[FloatEntry]:
    rows = _fetch_all(conn, "average words", AVERAGE_WORDS_QUERY, {"channel": channel_id, "limit": limit})
    with _converting("average words"):
        return [FloatEntry(name=row["name"], value=row["value"]) for row in rows]


def get_users(conn: sqlite3.Connection, channel_id: int, limit: int = USERS_LIMIT) -> List[UserData]:
    """Most active sender groups by line count."""
    rows = _fetch_all(conn, "users", USERS_QUERY, {"channel": channel_id, "limit": limit})
    with _converting("users"):
        return [
            UserData(
                name=row["name"],
                lines=row["lines"],
                words=row["words"],
                words_per_line=row["words_per_line"],
                last_seen=row["last_seen"],
            )
            for row in rows
        ]


def get_references(conn: sqlite3.Connection, channel_id: int, limit: int = REFERENCES_LIMIT) -> List[ReferenceData]:
    """Most referenced groups and who mentioned them last."""
    rows = _fetch_all(conn, "references", REFERENCES_QUERY, {"channel": channel_id, "limit": limit})
    with _converting("references"):
        return [
            ReferenceData(name=row["name"], count=row["refs"], last_used=row["last_used"])
            for row in rows
        ]
