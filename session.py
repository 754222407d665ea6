import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from config import MAX_DISKS, MIN_DISKS, POLE_KEYS, THEME_ORDER, THEMES
from errors import ImportValidationError, InputRejected
from leaderboard import Leaderboard, SubmitResult
from ledger import RecordOutcome, RecordType, ScoreLedger
from puzzle import PuzzleState, Selection
from storage import KeyValueStore, Preferences

logger = logging.getLogger(__name__)

IDLE_PROMPT = "Press 1/F, 2/J, or 3/K to select a tower"

# (disk_count, moves, time_seconds, rank) -> name, or None when the player cancels
NamePrompt = Callable[[int, int, int, int], Awaitable[Optional[str]]]


def format_time(total_seconds: int) -> str:
    minutes, seconds = divmod(int(total_seconds), 60)
    return f"{minutes:02d}:{seconds:02d}"


@dataclass
class Message:
    text: str
    kind: str = ""  # "", "error", "win", "record", "perfect"


@dataclass
class WinSummary:
    disk_count: int
    moves: int
    time_seconds: int
    outcome: RecordOutcome
    qualifies: bool = False
    rank: Optional[int] = None
    submission: Optional[SubmitResult] = None


def win_message(moves: int, time_seconds: int, outcome: RecordOutcome) -> Message:
    text = f"YOU WIN! Time: {format_time(time_seconds)} | Moves: {moves}"
    if outcome.type is RecordType.PERFECT:
        return Message(text + " | PERFECT SCORE!", "perfect")
    if outcome.type is RecordType.MOVES:
        return Message(text + " | NEW RECORD!", "record")
    if outcome.type is RecordType.TIME:
        return Message(text + " | FASTER TIME!", "record")
    if outcome.type is RecordType.FIRST:
        return Message(text + " | FIRST COMPLETION!", "record")
    if outcome.is_perfect:
        return Message(text + " | PERFECT SCORE!", "perfect")
    return Message(text, "win")


class SessionController:
    """Owns one player's session: the live puzzle, preferences, local scores
    and the optional global leaderboard.

    Input arrives as key presses or direct control calls, time as ``tick()``.
    Nothing here renders; a front-end reads ``puzzle``, ``message`` and
    ``timer_display`` after each call.
    """

    def __init__(self, store: KeyValueStore, leaderboard: Optional[Leaderboard] = None,
                 name_prompt: Optional[NamePrompt] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.preferences = Preferences(store)
        self.ledger = ScoreLedger(store)
        self.leaderboard = leaderboard
        self.name_prompt = name_prompt
        self._clock = clock

        self.theme = self.preferences.load_theme()
        self.scores_visible = self.preferences.load_scores_visible()
        self.desired_disk_count = self.preferences.load_disk_count()
        self.last_win: Optional[WinSummary] = None
        self.new_game(self.desired_disk_count)

    # -- game lifecycle -------------------------------------------------

    def new_game(self, disk_count: Optional[int] = None, sync_desired: bool = True) -> PuzzleState:
        if disk_count is None:
            disk_count = self.desired_disk_count
        disk_count = max(MIN_DISKS, min(MAX_DISKS, disk_count))
        if sync_desired:
            self.desired_disk_count = disk_count
        self.puzzle = PuzzleState(disk_count, clock=self._clock)
        self.last_win = None
        self.timer_display = self.tick()
        self.message = Message(IDLE_PROMPT)
        logger.debug("new game with %d disks", disk_count)
        return self.puzzle

    def tick(self) -> str:
        self.timer_display = f"TIME: {format_time(self.puzzle.elapsed_seconds())}"
        return self.timer_display

    def select_pole(self, index: int) -> Selection:
        try:
            result = self.puzzle.select_pole(index)
        except InputRejected as e:
            self.message = Message(str(e), "error")
            return Selection.IGNORED

        if result is Selection.SELECTED:
            self.message = Message(f"Tower {index + 1} selected. Choose destination tower.")
        elif result in (Selection.CANCELLED, Selection.MOVED):
            self.message = Message(IDLE_PROMPT)
        elif result is Selection.WON:
            self._record_win()
        return result

    def cancel_selection(self) -> bool:
        if self.puzzle.cancel_selection():
            self.message = Message(IDLE_PROMPT)
            return True
        return False

    def _record_win(self) -> WinSummary:
        puzzle = self.puzzle
        elapsed = puzzle.elapsed_seconds()
        self.tick()
        outcome = self.ledger.record_outcome(puzzle.disk_count, puzzle.move_count, elapsed)
        self.message = win_message(puzzle.move_count, elapsed, outcome)
        self.last_win = WinSummary(puzzle.disk_count, puzzle.move_count, elapsed, outcome)
        return self.last_win

    async def offer_leaderboard(self) -> Optional[WinSummary]:
        """Check the finished run against the global board and submit it if
        the player names themselves. A cancelled prompt submits nothing."""
        summary = self.last_win
        if summary is None or self.leaderboard is None or summary.submission is not None:
            return summary
        summary.qualifies, summary.rank = await self.leaderboard.check_qualification(
            summary.disk_count, summary.moves, summary.time_seconds)
        if not summary.qualifies or self.name_prompt is None:
            return summary

        name = await self.name_prompt(
            summary.disk_count, summary.moves, summary.time_seconds, summary.rank)
        if not name or not name.strip():
            logger.debug("name prompt cancelled, nothing submitted")
            return summary
        summary.submission = await self.leaderboard.submit(
            summary.disk_count, name.strip(), summary.moves, summary.time_seconds)
        return summary

    # -- controls -------------------------------------------------------

    def increment_disk_count(self) -> int:
        if self.desired_disk_count < MAX_DISKS:
            self.desired_disk_count += 1
            self.preferences.save_disk_count(self.desired_disk_count)
        return self.desired_disk_count

    def decrement_disk_count(self) -> int:
        if self.desired_disk_count > MIN_DISKS:
            self.desired_disk_count -= 1
            self.preferences.save_disk_count(self.desired_disk_count)
        return self.desired_disk_count

    def toggle_scores(self) -> bool:
        self.scores_visible = not self.scores_visible
        self.preferences.save_scores_visible(self.scores_visible)
        return self.scores_visible

    def set_theme(self, theme_id: str) -> bool:
        if theme_id not in THEMES:
            return False
        self.theme = theme_id
        self.preferences.save_theme(theme_id)
        return True

    def cycle_theme(self) -> str:
        index = THEME_ORDER.index(self.theme) if self.theme in THEME_ORDER else -1
        self.set_theme(THEME_ORDER[(index + 1) % len(THEME_ORDER)])
        return self.theme

    def clear_scores(self, confirm: Callable[[str], bool]) -> bool:
        if not confirm("Clear all high scores? This cannot be undone."):
            return False
        self.ledger.clear()
        self.message = Message("High scores cleared")
        return True

    def export_scores(self) -> Optional[str]:
        exported = self.ledger.export_json()
        if exported is None:
            self.message = Message("No high scores to export")
            return None
        self.message = Message("High scores exported")
        return exported

    def import_scores(self, text: str) -> bool:
        try:
            self.ledger.import_json(text)
        except ImportValidationError as e:
            logger.warning("Import rejected: %s", e)
            if str(e).startswith("Could not read file"):
                self.message = Message(str(e), "error")
            else:
                self.message = Message("Invalid file format", "error")
            return False
        self.message = Message("High scores imported and merged")
        return True

    # -- keyboard -------------------------------------------------------

    def handle_key(self, key: str) -> Optional[Selection]:
        if key in ("n", "N"):
            self.new_game()
        elif key in ("+", "="):
            self.increment_disk_count()
        elif key in ("-", "_"):
            self.decrement_disk_count()
        elif key in ("h", "H"):
            self.toggle_scores()
        elif key in ("t", "T"):
            self.cycle_theme()
        elif key == "Escape":
            self.cancel_selection()
        elif key in POLE_KEYS and not self.puzzle.won:
            return self.select_pole(POLE_KEYS[key])
        return None

    async def press(self, key: str) -> Optional[Selection]:
        result = self.handle_key(key)
        if result is Selection.WON:
            await self.offer_leaderboard()
        return result
