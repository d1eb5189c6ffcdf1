"""Tests for building the full channel record."""
import pytest
from kstats.assembler import ChannelDataAssembler
from kstats.errors import ChannelNotFoundError, QueryError


@pytest.fixture
def assembler(database):
    return ChannelDataAssembler(database)


def test_single_sender_scenario(assembler, seed):
    """Three unflagged lines from one sender."""
    chan = seed.channel("#test")
    seed.user("alice", "alice")
    for words in (10, 12, 14):
        seed.message(chan, "alice", words=words)

    data = assembler.build("#test")

    assert data.id == chan
    assert data.name == "#test"
    assert data.lines == 3
    assert data.words == 36
    assert data.words_per_line == 12.0
    assert [(u.name, u.lines, u.words) for u in data.users] == [("alice", 3, 36)]
    assert data.questions == []
    assert data.exclamations == []
    assert data.caps == []
    assert data.emoji_happy == []
    assert data.emoji_sad == []


def test_every_statistic_is_populated(assembler, seed):
    chan = seed.channel("#busy")
    seed.user("alice", "alice")
    seed.user("bob", "bob")
    seed.message(chan, "alice", time="2025-01-15 08:00:00", words=8, characters=40, question=True)
    seed.message(chan, "alice", time="2025-01-15 08:30:00", words=4, characters=20, emoji_happy=True)
    seed.message(chan, "bob", time="2025-01-15 21:00:00", words=2, characters=9, caps=True, exclamation=True)
    seed.message(chan, "bob", time="2025-01-15 21:10:00", words=3, characters=12, emoji_sad=True)
    seed.reference(chan, "bob", "alice")

    data = assembler.build("#BUSY")

    assert data.name == "#busy"
    assert len(data.hour_usage) == 24
    assert data.hour_usage[8] == 100.0
    assert data.hour_usage[21] == 100.0
    assert [e.name for e in data.questions] == ["alice"]
    assert [e.name for e in data.exclamations] == ["bob"]
    assert [e.name for e in data.caps] == ["bob"]
    assert [e.name for e in data.emoji_happy] == ["alice"]
    assert [e.name for e in data.emoji_sad] == ["bob"]
    assert [e.name for e in data.longest_lines] == ["alice", "bob"]
    assert [e.name for e in data.shortest_lines] == ["bob", "alice"]
    assert [(e.name, e.previous) for e in data.total_words] == [("alice", ""), ("bob", "alice")]
    assert [e.name for e in data.average_words] == ["alice", "bob"]
    assert [(r.name, r.count, r.last_used) for r in data.references] == [("alice", 1, "bob")]


def test_top_users_account_for_every_line(assembler, seed):
    chan = seed.channel("#sum")
    for i in range(7):
        seed.message(chan, f"nick{i}", count=i + 1)

    data = assembler.build("#sum")

    assert sum(u.lines for u in data.users) == data.lines


def test_empty_channel(assembler, seed):
    seed.channel("#quiet")

    data = assembler.build("#quiet")

    assert data.lines == 0
    assert data.hour_usage == [0.0] * 24
    assert data.users == []


def test_unknown_channel(assembler, seed):
    seed.channel("#test")
    with pytest.raises(ChannelNotFoundError):
        assembler.build("#nope")


def test_failing_query_aborts_build(assembler, seed, database):
    chan = seed.channel("#broken")
    seed.message(chan, "alice")
    with database.connection(writable=True) as conn:
        conn.execute('DROP TABLE "references"')
        conn.commit()

    with pytest.raises(QueryError) as excinfo:
        assembler.build("#broken")

    assert excinfo.value.query == "references"
