"""Global top-K leaderboard per disk count.

The ranked store is remote and offers no transaction across a read and the
following write. Two sessions submitting at the same moment can therefore
overwrite each other, and a run that qualified may be dropped. That race is
accepted; a store with compare-and-swap would be needed to close it.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

import schemas
from config import LEADERBOARD_SIZE, MAX_TIME_SECONDS, NAME_LENGTH, minimal_moves, valid_disk_count
from errors import RemoteUnavailable
from ledger import now_ms

logger = logging.getLogger(__name__)

UNAVAILABLE = "Leaderboard unavailable"

_NAME_STRIP_RE = re.compile(r"[^a-zA-Z0-9]")


def sanitize_name(name: str) -> str:
    return _NAME_STRIP_RE.sub("", name or "").upper()[:NAME_LENGTH]


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass
class Validation:
    valid: bool
    reason: Optional[str] = None


def validate_submission(disk_count, moves, time_seconds) -> Validation:
    if not valid_disk_count(disk_count):
        return Validation(False, "Invalid disk count")
    if not _is_int(moves) or moves < minimal_moves(disk_count):
        return Validation(False, "Invalid move count")
    if not _is_int(time_seconds) or time_seconds < 0 or time_seconds > MAX_TIME_SECONDS:
        return Validation(False, "Invalid time")
    return Validation(True)


def entry_key(entry: schemas.LeaderboardEntry) -> Tuple[int, int]:
    return entry.moves, entry.time


def sort_entries(entries: List[schemas.LeaderboardEntry]) -> List[schemas.LeaderboardEntry]:
    # stable, so equal scores keep their submission order
    return sorted(entries, key=entry_key)


def qualifies(top_k: List[schemas.LeaderboardEntry], moves: int, time_seconds: int,
              size: int = LEADERBOARD_SIZE) -> Tuple[bool, Optional[int]]:
    """Whether (moves, time) would enter ``top_k`` and at which 1-based rank."""
    if len(top_k) < size:
        return True, len(top_k) + 1
    if (moves, time_seconds) >= entry_key(top_k[-1]):
        return False, None
    rank = 1
    for entry in top_k:
        if (moves, time_seconds) < entry_key(entry):
            break
        rank += 1
    return True, rank


class RankedStore:
    """Remote mapping of disk count to an ordered list of at most K entries."""

    async def fetch_top_k(self, disk_count: int) -> List[schemas.LeaderboardEntry]:
        raise NotImplementedError

    async def write_top_k(self, disk_count: int, entries: List[schemas.LeaderboardEntry]) -> None:
        raise NotImplementedError


class MemoryRankedStore(RankedStore):
    def __init__(self):
        self.lists: Dict[int, List[schemas.LeaderboardEntry]] = {}
        self.available = True

    def _check(self):
        if not self.available:
            raise RemoteUnavailable("leaderboard store offline")

    async def fetch_top_k(self, disk_count):
        self._check()
        return list(self.lists.get(disk_count, []))

    async def write_top_k(self, disk_count, entries):
        self._check()
        self.lists[disk_count] = list(entries)


@dataclass
class SubmitResult:
    accepted: bool
    name: str = ""
    rank: Optional[int] = None
    reason: Optional[str] = None
    entries: List[schemas.LeaderboardEntry] = field(default_factory=list)


class Leaderboard:
    def __init__(self, store: RankedStore, size: int = LEADERBOARD_SIZE,
                 clock: Callable[[], int] = now_ms):
        self.store = store
        self.size = size
        self._clock = clock

    async def fetch(self, disk_count: int) -> List[schemas.LeaderboardEntry]:
        """Ordered top list; empty when the store cannot be reached."""
        try:
            entries = await self.store.fetch_top_k(disk_count)
        except RemoteUnavailable as e:
            logger.error("Error fetching leaderboard for %d disks: %s", disk_count, e)
            return []
        return sort_entries(entries)[:self.size]

    async def check_qualification(self, disk_count: int, moves: int,
                                  time_seconds: int) -> Tuple[bool, Optional[int]]:
        if not validate_submission(disk_count, moves, time_seconds).valid:
            return False, None
        try:
            entries = await self.store.fetch_top_k(disk_count)
        except RemoteUnavailable as e:
            logger.error("Leaderboard unavailable, run does not qualify: %s", e)
            return False, None
        return qualifies(sort_entries(entries)[:self.size], moves, time_seconds, self.size)

    async def submit(self, disk_count: int, raw_name: str, moves: int,
                     time_seconds: int) -> SubmitResult:
        validation = validate_submission(disk_count, moves, time_seconds)
        if not validation.valid:
            logger.warning("Leaderboard submission rejected: %s", validation.reason)
            return SubmitResult(False, reason=validation.reason)
        name = sanitize_name(raw_name)
        if not name:
            logger.warning("Leaderboard submission rejected: Empty name after sanitization")
            return SubmitResult(False, reason="Empty name")

        new_entry = schemas.LeaderboardEntry(
            name=name, moves=moves, time=time_seconds, timestamp=self._clock())
        try:
            entries = await self.store.fetch_top_k(disk_count)
            trimmed = sort_entries(entries + [new_entry])[:self.size]
            await self.store.write_top_k(disk_count, trimmed)
        except RemoteUnavailable as e:
            logger.error("Error submitting to leaderboard: %s", e)
            return SubmitResult(False, name=name, reason=UNAVAILABLE)

        rank = next((i for i, entry in enumerate(trimmed, 1) if entry is new_entry), None)
        logger.info("%s submitted %d moves / %ds for %d disks (rank %s)",
                    name, moves, time_seconds, disk_count, rank)
        return SubmitResult(True, name=name, rank=rank, entries=trimmed)
