"""Pytest configuration and fixtures."""
import pytest
import os
import tempfile
from pathlib import Path
import redis
from fastapi.templating import Jinja2Templates
from fastapi.testclient import TestClient
from kstats.assembler import ChannelDataAssembler
from kstats.cache import ChannelCache
from kstats.deps import get_channel_cache, get_database, get_redis, get_templates
from kstats.main import app
from kstats.models import Database

REPO_ROOT = Path(__file__).resolve().parent.parent


class InMemoryRedis:
    """The slice of the redis.Redis API the cache layer uses, kept in a dict."""

    def __init__(self):
        self.values = {}
        self.expiry = {}

    def get(self, key):
        return self.values.get(key)

    def set(self, key, value, ex=None):
        if isinstance(value, str):
            value = value.encode()
        self.values[key] = value
        self.expiry[key] = ex
        return True

    def ttl(self, key):
        if key not in self.values:
            return -2
        return self.expiry[key] if self.expiry[key] is not None else -1

    def ping(self):
        return True

    def close(self):
        pass


class UnreachableRedis(InMemoryRedis):
    """Every call fails the way redis-py does when the server is down."""

    def get(self, key):
        raise redis.ConnectionError("Error 111 connecting to localhost:6379. Connection refused.")

    def set(self, key, value, ex=None):
        raise redis.ConnectionError("Error 111 connecting to localhost:6379. Connection refused.")

    def ping(self):
        raise redis.ConnectionError("Error 111 connecting to localhost:6379. Connection refused.")


class Seeder:
    """Inserts channels, messages and aliases into a test database."""

    def __init__(self, database: Database):
        self.database = database

    def channel(self, name: str) -> int:
        with self.database.connection(writable=True) as conn:
            cursor = conn.execute("INSERT INTO channels (channel) VALUES (?)", (name,))
            conn.commit()
            return cursor.lastrowid

    def message(
        self,
        channel: int,
        sender: str,
        time: str = "2025-01-15 10:00:00",
        words: int = 5,
        characters: int = 25,
        question: bool = False,
        exclamation: bool = False,
        caps: bool = False,
        emoji_happy: bool = False,
        emoji_sad: bool = False,
        count: int = 1,
    ):
        row = (
            channel, sender, time, words, characters,
            question, exclamation, caps, emoji_happy, emoji_sad,
        )
        with self.database.connection(writable=True) as conn:
            conn.executemany(
                """
                INSERT INTO messages (
                    channel, sender, time, words, characters,
                    question, exclamation, caps, emoji_happy, emoji_sad
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [row] * count,
            )
            conn.commit()

    def user(self, hash: str, nick: str):
        with self.database.connection(writable=True) as conn:
            conn.execute("INSERT INTO users (hash, nick) VALUES (?, ?)", (hash, nick))
            conn.commit()

    def group(self, channel: int, nick: str, group: str):
        with self.database.connection(writable=True) as conn:
            conn.execute(
                'INSERT INTO "groups" (channel, nick, "group") VALUES (?, ?, ?)',
                (channel, nick, group),
            )
            conn.commit()

    def reference(self, channel: int, source: str, target: str):
        with self.database.connection(writable=True) as conn:
            conn.execute(
                'INSERT INTO "references" (channel, source, target) VALUES (?, ?, ?)',
                (channel, source, target),
            )
            conn.commit()


@pytest.fixture(scope="function")
def database():
    """Create a temporary message store for each test."""
    fd, db_path = tempfile.mkstemp(suffix='.db')
    os.close(fd)

    database = Database(f"sqlite:///{db_path}")
    database.init_schema()

    yield database

    try:
        os.unlink(db_path)
    except OSError:
        pass


@pytest.fixture
def seed(database):
    return Seeder(database)


@pytest.fixture
def fake_redis():
    return InMemoryRedis()


@pytest.fixture
def unreachable_redis():
    return UnreachableRedis()


@pytest.fixture
def channel_cache(database, fake_redis):
    return ChannelCache(fake_redis, ChannelDataAssembler(database))


@pytest.fixture
def templates():
    return Jinja2Templates(directory=str(REPO_ROOT / "templates"))


@pytest.fixture
def client(database, fake_redis, channel_cache, templates):
    """Test client wired to the temporary store and in-memory cache."""
    app.dependency_overrides[get_database] = lambda: database
    app.dependency_overrides[get_redis] = lambda: fake_redis
    app.dependency_overrides[get_channel_cache] = lambda: channel_cache
    app.dependency_overrides[get_templates] = lambda: templates
    yield TestClient(app)
    app.dependency_overrides.clear()
