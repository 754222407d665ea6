import asyncio
from typing import List

import pytest

import schemas
from leaderboard import (
    Leaderboard,
    MemoryRankedStore,
    qualifies,
    sanitize_name,
    validate_submission,
)


def entries(*scores) -> List[schemas.LeaderboardEntry]:
    return [
        schemas.LeaderboardEntry(name=f"P{i}", moves=moves, time=time, timestamp=i)
        for i, (moves, time) in enumerate(scores)
    ]


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("a1!b2@", "A1B"),
        ("toolongname", "TOO"),
        ("ab", "AB"),
        ("  x-y  ", "XY"),
        ("!!!", ""),
        ("", ""),
    ],
)
def test_sanitize_name(raw: str, expected: str) -> None:
    assert sanitize_name(raw) == expected


@pytest.mark.parametrize(
    "disks, moves, time, reason",
    [
        (3, 7, 0, None),
        (10, 1023, 86400, None),
        (2, 7, 10, "Invalid disk count"),
        (11, 5000, 10, "Invalid disk count"),
        (3.0, 7, 10, "Invalid disk count"),
        (3, 6, 10, "Invalid move count"),
        (4, 14.5, 10, "Invalid move count"),
        (3, 7, -1, "Invalid time"),
        (3, 7, 86401, "Invalid time"),
        (3, 7, 1.5, "Invalid time"),
    ],
)
def test_validate_submission(disks, moves, time, reason) -> None:
    result = validate_submission(disks, moves, time)
    assert result.valid is (reason is None)
    assert result.reason == reason


def test_short_list_always_qualifies() -> None:
    top = entries(*[(7, t) for t in range(1, 10)])
    assert qualifies(top, 10, 50) == (True, 10)
    assert qualifies([], 500, 500) == (True, 1)


def test_full_list_requires_beating_the_last_entry() -> None:
    top = entries(*[(m, 50) for m in range(10, 20)])
    assert qualifies(top, 10, 50) == (True, 2)
    assert qualifies(top, 9, 99) == (True, 1)
    assert qualifies(top, 19, 49) == (True, 10)
    assert qualifies(top, 19, 50) == (False, None)
    assert qualifies(top, 25, 1) == (False, None)


def test_full_list_of_equal_scores_rejects_a_tie() -> None:
    top = entries(*[(10, 50)] * 10)
    assert qualifies(top, 10, 50) == (False, None)
    assert qualifies(top, 10, 49) == (True, 1)


def test_submit_inserts_in_order() -> None:
    store = MemoryRankedStore()
    board = Leaderboard(store, clock=lambda: 42)

    async def scenario():
        await board.submit(3, "slow", 9, 30)
        await board.submit(3, "fast", 7, 30)
        return await board.submit(3, "mid!", 7, 45)

    result = asyncio.run(scenario())
    assert result.accepted
    assert result.name == "MID"
    assert result.rank == 2
    assert [(e.name, e.moves, e.time) for e in store.lists[3]] == [
        ("FAS", 7, 30), ("MID", 7, 45), ("SLO", 9, 30)]
    assert store.lists[3][1].timestamp == 42


def test_submit_rejections_write_nothing() -> None:
    store = MemoryRankedStore()
    board = Leaderboard(store)

    empty = asyncio.run(board.submit(3, "?!", 7, 10))
    invalid = asyncio.run(board.submit(3, "abc", 6, 10))

    assert not empty.accepted
    assert invalid.reason == "Invalid move count"
    assert store.lists == {}


def test_submit_trims_to_ten() -> None:
    store = MemoryRankedStore()
    store.lists[4] = entries(*[(15 + i, 10) for i in range(10)])
    board = Leaderboard(store)

    result = asyncio.run(board.submit(4, "new", 15, 5))

    assert result.rank == 1
    assert len(store.lists[4]) == 10
    assert store.lists[4][0].name == "NEW"
    assert store.lists[4][-1].moves == 23


def test_concurrent_submissions_can_drop_a_qualifier() -> None:
    store = MemoryRankedStore()
    store.lists[3] = entries(*[(7, t) for t in range(1, 10)])
    board = Leaderboard(store)

    async def scenario():
        first = await board.check_qualification(3, 8, 10)
        second = await board.check_qualification(3, 8, 20)
        a = await board.submit(3, "aaa", 8, 10)
        b = await board.submit(3, "bbb", 8, 20)
        return first, second, a, b

    first, second, a, b = asyncio.run(scenario())
    assert first == (True, 10)
    assert second == (True, 10)
    assert a.rank == 10
    # accepted by the store, but trimmed away by the earlier write
    assert b.accepted and b.rank is None
    assert [e.name for e in store.lists[3]][-1] == "AAA"


def test_unreachable_store_degrades() -> None:
    store = MemoryRankedStore()
    store.lists[3] = entries((7, 1))
    store.available = False
    board = Leaderboard(store)

    assert asyncio.run(board.fetch(3)) == []
    assert asyncio.run(board.check_qualification(3, 7, 10)) == (False, None)
    result = asyncio.run(board.submit(3, "abc", 7, 10))
    assert not result.accepted
    assert len(store.lists[3]) == 1


def test_invalid_run_never_qualifies() -> None:
    board = Leaderboard(MemoryRankedStore())
    assert asyncio.run(board.check_qualification(3, 5, 10)) == (False, None)


def test_fetch_sorts_and_limits() -> None:
    store = MemoryRankedStore()
    store.lists[5] = entries(*[(40 - i, 10) for i in range(12)])
    top = asyncio.run(Leaderboard(store).fetch(5))
    assert len(top) == 10
    assert [e.moves for e in top] == sorted(e.moves for e in top)
    assert top[0].moves == 29
