#!/usr/bin/env python3
"""Helper script to create a demo channel in a local SQLite message store."""
import random
import sys
from datetime import datetime, timedelta
from kstats.models import Database

if len(sys.argv) < 3:
    print("Usage (after pip install -e .): python scripts/seed_channel.py <database_url> <channel> [messages]")
    print("Example: python scripts/seed_channel.py 'sqlite:///kstats.db' '#kstats' 500")
    sys.exit(1)

database = Database(sys.argv[1])
channel = sys.argv[2]
count = int(sys.argv[3]) if len(sys.argv) > 3 else 200

nicks = ["alice", "bob", "carol", "dave"]
start = datetime.now() - timedelta(days=7)

database.init_schema()
with database.connection(writable=True) as conn:
    cursor = conn.execute("INSERT INTO channels (channel) VALUES (?)", (channel,))
    channel_id = cursor.lastrowid

    conn.executemany(
        "INSERT OR IGNORE INTO users (hash, nick) VALUES (?, ?)",
        [(nick, nick) for nick in nicks],
    )
    # "bobby" is another client of bob's and is counted with him
    conn.execute(
        'INSERT INTO "groups" (channel, nick, "group") VALUES (?, ?, ?)',
        (channel_id, "bobby", "bob"),
    )

    for _ in range(count):
        sender = random.choice(nicks + ["bobby"])
        words = random.randint(1, 25)
        conn.execute(
            """
            INSERT INTO messages (
                channel, sender, time, words, characters,
                question, exclamation, caps, emoji_happy, emoji_sad
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                channel_id,
                sender,
                (start + timedelta(minutes=random.randint(0, 7 * 24 * 60))).strftime("%Y-%m-%d %H:%M:%S"),
                words,
                words * random.randint(3, 7),
                random.random() < 0.2,
                random.random() < 0.1,
                random.random() < 0.05,
                random.random() < 0.15,
                random.random() < 0.05,
            ),
        )
        if random.random() < 0.1:
            conn.execute(
                'INSERT INTO "references" (channel, source, target) VALUES (?, ?, ?)',
                (channel_id, sender, random.choice(nicks)),
            )
    conn.commit()

print(f"Seeded {count} messages into {channel} (id {channel_id})")
