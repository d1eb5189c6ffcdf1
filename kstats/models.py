"""Message store connection handling and schema."""
import os
import sqlite3
from contextlib import contextmanager
from urllib.parse import quote
from kstats.errors import QueryError

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS channels (
        id INTEGER PRIMARY KEY,
        channel TEXT NOT NULL UNIQUE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS messages (
        id INTEGER PRIMARY KEY,
        channel INTEGER NOT NULL REFERENCES channels (id),
        sender TEXT NOT NULL,
        time TEXT NOT NULL,
        words INTEGER NOT NULL DEFAULT 0,
        characters INTEGER NOT NULL DEFAULT 0,
        question INTEGER NOT NULL DEFAULT 0,
        exclamation INTEGER NOT NULL DEFAULT 0,
        caps INTEGER NOT NULL DEFAULT 0,
        emoji_happy INTEGER NOT NULL DEFAULT 0,
        emoji_sad INTEGER NOT NULL DEFAULT 0
    )
    """,
    "CREATE INDEX IF NOT EXISTS messages_channel ON messages (channel)",
    """
    CREATE TABLE IF NOT EXISTS "groups" (
        channel INTEGER NOT NULL REFERENCES channels (id),
        nick TEXT NOT NULL,
        "group" TEXT NOT NULL,
        PRIMARY KEY (channel, nick)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS users (
        hash TEXT PRIMARY KEY,
        nick TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS "references" (
        id INTEGER PRIMARY KEY,
        channel INTEGER NOT NULL REFERENCES channels (id),
        source TEXT NOT NULL,
        target TEXT NOT NULL
    )
    """,
)


def db_path_from_url(url: str) -> str:
    """Extract database path from a sqlite URL."""
    # sqlite:////data/kstats.db -> /data/kstats.db
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "", 1)
    return url.replace("sqlite://", "", 1)


class Database:
    """Handle on the read-only message store.

    Connections are opened per unit of work and always closed; the object
    itself holds no open handles, so one instance is shared by all requests.
    """

    def __init__(self, url: str):
        self.url = url
        self.path = db_path_from_url(url)

    @contextmanager
    def connection(self, writable: bool = False):
        """
        Context manager for database connections.

        Connections are read-only unless ``writable`` is set, so a wrong path
        fails to open instead of creating an empty database.
        """
        try:
            if writable:
                conn = sqlite3.connect(self.path, check_same_thread=False)
            else:
                conn = sqlite3.connect(
                    f"file:{quote(self.path)}?mode=ro", uri=True, check_same_thread=False
                )
        except sqlite3.Error as e:
            raise QueryError(f"open {self.path}", e) from e
        conn.row_factory = sqlite3.Row
        # SQLite NOCASE only folds ASCII
        conn.create_function("casefold", 1, str.casefold, deterministic=True)
        try:
            yield conn
        finally:
            conn.close()

    def init_schema(self):
        """Create the message store tables if they do not exist yet."""
        db_dir = os.path.dirname(self.path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

        with self.connection(writable=True) as conn:
            for statement in SCHEMA:
                conn.execute(statement)
            conn.commit()

    def check_ready(self) -> bool:
        """Check if database is accessible and schema exists."""
        try:
            with self.connection() as conn:
                cursor = conn.execute(
                    "SELECT name FROM sqlite_master WHERE type='table' AND name='messages'"
                )
                return cursor.fetchone() is not None
        except (sqlite3.Error, QueryError):
            return False
