import enum
import logging
import time
from typing import Callable, List, Optional

from config import MAX_DISKS, MIN_DISKS, valid_disk_count
from errors import InputRejected, MoveError

logger = logging.getLogger(__name__)

POLE_COUNT = 3
TARGET_POLE = 2


class Phase(enum.Enum):
    IDLE = "idle"
    SOURCE_SELECTED = "source_selected"
    WON = "won"


class Selection(enum.Enum):
    SELECTED = "selected"
    CANCELLED = "cancelled"
    MOVED = "moved"
    WON = "won"
    IGNORED = "ignored"


def move_error(towers: List[List[int]], source: int, destination: int) -> Optional[MoveError]:
    """Return why moving the top disk of ``source`` onto ``destination`` is illegal, or None."""
    from_disks = towers[source]
    to_disks = towers[destination]
    if not from_disks:
        return MoveError.EMPTY_SOURCE
    if to_disks and to_disks[-1] < from_disks[-1]:
        return MoveError.SIZE_VIOLATION
    return None


def is_valid_move(state: "PuzzleState", source: int, destination: int) -> bool:
    return move_error(state.towers, source, destination) is None


class PuzzleState:
    """One puzzle instance: three towers, a selection cursor, the move count and the clock.

    Towers are stored bottom to top, so ``towers[i][-1]`` is the top disk.
    """

    def __init__(self, disk_count: int, clock: Callable[[], float] = time.monotonic):
        if not valid_disk_count(disk_count):
            raise ValueError(f"disk count must be between {MIN_DISKS} and {MAX_DISKS}")
        self.disk_count = disk_count
        self.towers: List[List[int]] = [list(range(disk_count, 0, -1)), [], []]
        self.selected: Optional[int] = None
        self.move_count = 0
        self.won = False
        self._clock = clock
        self.started_at: Optional[float] = None
        self.finished_at: Optional[float] = None

    @property
    def phase(self) -> Phase:
        if self.won:
            return Phase.WON
        if self.selected is None:
            return Phase.IDLE
        return Phase.SOURCE_SELECTED

    @property
    def started(self) -> bool:
        return self.started_at is not None

    def elapsed_seconds(self) -> int:
        if self.started_at is None:
            return 0
        end = self.finished_at if self.finished_at is not None else self._clock()
        return max(0, int(end - self.started_at))

    def select_pole(self, index: int) -> Selection:
        """Feed one pole selection into the state machine.

        Raises InputRejected for an empty source or an illegal move; the
        selection is cleared and the towers are left untouched.
        """
        if not 0 <= index < POLE_COUNT:
            raise ValueError(f"pole index out of range: {index}")
        if self.won:
            return Selection.IGNORED

        if self.selected is None:
            if not self.towers[index]:
                raise InputRejected(MoveError.EMPTY_SOURCE, "Can't select an empty tower")
            if self.started_at is None:
                self.started_at = self._clock()
            self.selected = index
            logger.debug("pole %d selected", index)
            return Selection.SELECTED

        source = self.selected
        self.selected = None
        if source == index:
            logger.debug("selection of pole %d cancelled", index)
            return Selection.CANCELLED

        error = move_error(self.towers, source, index)
        if error is not None:
            raise InputRejected(error)

        self.towers[index].append(self.towers[source].pop())
        self.move_count += 1
        logger.debug("moved disk %d from %d to %d (move %d)",
                     self.towers[index][-1], source, index, self.move_count)

        if self.check_win():
            self.won = True
            self.finished_at = self._clock()
            return Selection.WON
        return Selection.MOVED

    def cancel_selection(self) -> bool:
        if self.selected is None or self.won:
            return False
        self.selected = None
        return True

    def check_win(self) -> bool:
        return len(self.towers[TARGET_POLE]) == self.disk_count

    def __repr__(self):
        return f"<PuzzleState {self.disk_count} disks: {self.towers}, moves={self.move_count}, {self.phase.value}>"
