"""Per-disk-count best scores, kept in a key-value store.

Records compare by moves first and elapsed time second; lower is better on
both. The whole mapping is written back after every change.
"""
import enum
import json
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Tuple

from pydantic import ValidationError

import schemas
from config import EXPORT_VERSION, MAX_DISKS, MIN_DISKS, STORAGE_KEYS, minimal_moves, valid_disk_count
from errors import ImportValidationError, PersistenceUnavailable
from storage import KeyValueStore

logger = logging.getLogger(__name__)


class RecordType(enum.Enum):
    NONE = "none"
    FIRST = "first"
    MOVES = "moves"
    TIME = "time"
    PERFECT = "perfect"


@dataclass
class RecordOutcome:
    type: RecordType
    is_perfect: bool


def now_ms() -> int:
    return int(time.time() * 1000)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def is_better(moves, time_seconds, other_moves, other_time) -> bool:
    return (moves, time_seconds) < (other_moves, other_time)


def _parse_disk_key(key) -> int:
    if isinstance(key, bool):
        raise ValueError(key)
    return int(str(key).strip(), 10)


def validate_record(key, value) -> Tuple[str, dict]:
    """Check one ``disk count -> record`` pair; returns the normalised key and record."""
    try:
        disk_count = _parse_disk_key(key)
    except ValueError:
        raise ImportValidationError(f"invalid disk count key: {key!r}")
    if not valid_disk_count(disk_count):
        raise ImportValidationError(f"disk count out of range: {key!r}")
    try:
        record = schemas.ScoreRecord.model_validate(value)
    except ValidationError as e:
        raise ImportValidationError(f"invalid record for {key}: {e.errors()[0]['msg']}")
    if record.moves < minimal_moves(disk_count):
        raise ImportValidationError(
            f"{record.moves} moves is below the minimum for {disk_count} disks")
    return str(disk_count), record.model_dump(exclude_none=True)


def validate_import_payload(raw) -> Dict[str, dict]:
    """Extract and check the score mapping of an imported document.

    Accepts the export wrapper ``{"version": 1, "scores": {...}}`` or a bare
    ``{"5": {"moves": 31, "time": 120}, ...}`` mapping. Any bad entry
    rejects the whole payload with ImportValidationError.
    """
    if not isinstance(raw, dict):
        raise ImportValidationError("payload is not an object")
    if raw.get("version") and raw.get("scores"):
        scores = raw["scores"]
    else:
        scores = raw
    if not isinstance(scores, dict):
        raise ImportValidationError("scores is not an object")

    validated = {}
    for key, value in scores.items():
        disk_key, record = validate_record(key, value)
        validated[disk_key] = record
    return validated


class ScoreLedger:
    def __init__(self, store: KeyValueStore, clock: Callable[[], int] = now_ms,
                 export_clock: Callable[[], datetime] = utc_now):
        self.store = store
        self._clock = clock
        self._export_clock = export_clock
        # False once the store has failed; the ledger then lives in memory only
        self.persistent = True
        self.scores: Dict[str, dict] = self._load()

    def _load(self) -> Dict[str, dict]:
        try:
            stored = self.store.get(STORAGE_KEYS["high_scores"])
        except PersistenceUnavailable as e:
            logger.warning("Could not load high scores: %s", e)
            self.persistent = False
            return {}
        if not stored:
            return {}
        try:
            data = json.loads(stored)
        except json.JSONDecodeError as e:
            logger.warning("Ignoring unreadable high scores: %s", e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring high scores that are not a mapping")
            return {}

        scores = {}
        for key, value in data.items():
            try:
                disk_key, record = validate_record(key, value)
            except ImportValidationError as e:
                logger.warning("Dropping stored high score: %s", e)
                continue
            scores[disk_key] = record
        return scores

    def _save(self) -> None:
        if not self.persistent:
            return
        try:
            self.store.set(STORAGE_KEYS["high_scores"], json.dumps(self.scores))
        except PersistenceUnavailable as e:
            logger.warning("Could not save high scores: %s", e)
            self.persistent = False

    def get(self, disk_count: int) -> Optional[dict]:
        return self.scores.get(str(disk_count))

    def record_outcome(self, disk_count: int, moves: int, time_seconds: int) -> RecordOutcome:
        if not valid_disk_count(disk_count):
            raise ValueError(f"invalid disk count: {disk_count}")
        min_moves = minimal_moves(disk_count)
        if moves < min_moves:
            raise ValueError(f"{moves} moves is impossible with {disk_count} disks")

        key = str(disk_count)
        is_perfect = moves == min_moves
        current = self.scores.get(key)
        record_type = RecordType.NONE

        if current is None:
            self.scores[key] = {"moves": moves, "time": time_seconds, "timestamp": self._clock()}
            record_type = RecordType.PERFECT if is_perfect else RecordType.FIRST
        elif moves < current["moves"]:
            current.update(moves=moves, time=time_seconds, timestamp=self._clock())
            record_type = RecordType.PERFECT if is_perfect else RecordType.MOVES
        elif moves == current["moves"] and time_seconds < current["time"]:
            current.update(time=time_seconds, timestamp=self._clock())
            record_type = RecordType.TIME

        if record_type is not RecordType.NONE:
            logger.info("%s record for %d disks: %d moves, %ds",
                        record_type.value, disk_count, moves, time_seconds)
            self._save()
        return RecordOutcome(record_type, is_perfect)

    def merge_imported(self, imported: Dict[str, dict]) -> List[str]:
        """Keep the better of local and imported record per disk count.

        Returns the keys that changed. An exact tie leaves the local record.
        """
        changed = []
        for key, record in imported.items():
            current = self.scores.get(key)
            if current is not None and not is_better(
                    record["moves"], record["time"], current["moves"], current["time"]):
                continue
            adopted = dict(record)
            if not adopted.get("timestamp"):
                adopted["timestamp"] = self._clock()
            self.scores[key] = adopted
            changed.append(key)
        if changed:
            self._save()
        return changed

    def import_json(self, text: str) -> List[str]:
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            raise ImportValidationError(f"Could not read file: {e}") from e
        return self.merge_imported(validate_import_payload(raw))

    def export(self) -> Optional[dict]:
        if not self.scores:
            return None
        return schemas.ExportPayload(
            version=EXPORT_VERSION,
            exported_at=self._export_clock().isoformat(),
            scores=self.scores,
        ).model_dump(by_alias=True, exclude_none=True)

    def export_json(self) -> Optional[str]:
        payload = self.export()
        return json.dumps(payload, indent=2) if payload is not None else None

    def clear(self) -> None:
        self.scores = {}
        if not self.persistent:
            return
        try:
            self.store.remove(STORAGE_KEYS["high_scores"])
        except PersistenceUnavailable as e:
            logger.warning("Could not clear high scores: %s", e)
            self.persistent = False

    def rows(self) -> List[Tuple[int, Optional[dict], bool]]:
        """(disk count, record or None, is perfect) for every disk count."""
        out = []
        for disk_count in range(MIN_DISKS, MAX_DISKS + 1):
            record = self.get(disk_count)
            perfect = record is not None and record["moves"] == minimal_moves(disk_count)
            out.append((disk_count, record, perfect))
        return out
