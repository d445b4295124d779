"""
Data Manager for the Rotation Scheduler

Holds the shared data structures (shifts, day schedules, schedule requests)
and the JSON-backed settings store for worker display names and the last
month the user worked on. Generated schedules are never persisted.
"""

import json
import logging
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Any, Tuple
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

logger = logging.getLogger(__name__)


class DataManagerError(Exception):
    """Base exception for DataManager operations"""
    pass


class DataFileCorruptedError(DataManagerError):
    """Raised when the settings file is corrupted"""
    pass


class DataSaveError(DataManagerError):
    """Raised when saving settings fails"""
    pass


class DataValidationError(DataManagerError):
    """Raised when settings validation fails"""
    pass


WORKER_COUNT = 4
SHIFT_HOURS = 8
DEFAULT_NAMES = ("Worker A", "Worker B", "Worker C", "Worker D")


@dataclass(frozen=True)
class Shift:
    """One of the three fixed daily shifts"""
    id: int
    label: str
    time_window: str


# Slot order matters: assignment orderings are mapped onto these in sequence
SHIFTS: Tuple[Shift, ...] = (
    Shift(id=7, label="7AM", time_window="07:00-15:00"),
    Shift(id=9, label="9AM", time_window="09:00-17:00"),
    Shift(id=13, label="1PM", time_window="13:00-21:00"),
)
SHIFT_IDS: Tuple[int, ...] = tuple(shift.id for shift in SHIFTS)


def get_shift(shift_id: int) -> Shift:
    for shift in SHIFTS:
        if shift.id == shift_id:
            return shift
    raise KeyError(f"Unknown shift id: {shift_id}")


@dataclass(frozen=True)
class DaySchedule:
    """Resolved assignments for one day: the off worker and worker -> shift id"""
    off: int
    shifts: Mapping[int, int] = field(default_factory=dict)

    def __post_init__(self):
        # Read-only copy so a committed day cannot change under its owner
        object.__setattr__(self, "shifts", MappingProxyType(dict(self.shifts)))

    def __hash__(self):
        return hash((self.off, tuple(sorted(self.shifts.items()))))

    def shift_for(self, worker: int) -> Optional[int]:
        return self.shifts.get(worker)

    def is_off(self, worker: int) -> bool:
        return worker == self.off

    def worker_for_shift(self, shift_id: int) -> Optional[int]:
        for worker, assigned in self.shifts.items():
            if assigned == shift_id:
                return worker
        return None


# day number (1..days in month) -> DaySchedule
Schedule = Dict[int, DaySchedule]


@dataclass(frozen=True)
class ScheduleRequest:
    """Caller-owned input for one month's generation"""
    year: int
    month: int  # 1-12
    names: Tuple[str, ...] = DEFAULT_NAMES

    @property
    def month_key(self) -> str:
        return f"{self.year}-{self.month:02d}"

    def display_name(self, worker: int) -> str:
        return self.names[worker]

    def shifted(self, delta: int) -> 'ScheduleRequest':
        """Return a request for the month `delta` months away, keeping the names"""
        index = self.year * 12 + (self.month - 1) + delta
        return ScheduleRequest(year=index // 12, month=index % 12 + 1, names=self.names)


class DataManager:
    """Manages persistence of user settings (names and last used month)"""

    def __init__(self, data_file: str = "data/settings.json"):
        if data_file == "data/settings.json":
            # Use path relative to the package directory
            data_file = Path(__file__).parent.parent / "data" / "settings.json"
        self.data_file = Path(data_file)
        self.data = self._load_or_create_data()

    def _load_or_create_data(self) -> Dict[str, Any]:
        """Load existing settings or create defaults, recovering from backup if needed"""
        backup_file = self.data_file.with_suffix('.bak')
        if self.data_file.exists():
            try:
                return self._validate_and_migrate_data(self._read_json(self.data_file))
            except (json.JSONDecodeError, IOError) as e:
                logger.error(f"Error loading settings file {self.data_file}: {e}")
                if not backup_file.exists():
                    raise DataFileCorruptedError(f"Settings file corrupted and no backup available: {e}")
                return self._recover_from_backup(backup_file)
        if backup_file.exists():
            logger.info(f"Settings file missing, attempting recovery from backup {backup_file}")
            return self._recover_from_backup(backup_file)
        logger.info("No settings file found, creating default settings")
        return self._create_default_data()

    def _read_json(self, path: Path) -> Dict[str, Any]:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise json.JSONDecodeError("Settings root must be an object", str(path), 0)
        return data

    def _recover_from_backup(self, backup_file: Path) -> Dict[str, Any]:
        try:
            data = self._read_json(backup_file)
        except (json.JSONDecodeError, IOError) as backup_e:
            logger.error(f"Backup file also corrupted: {backup_e}")
            logger.info("Creating default settings due to corrupted files")
            return self._create_default_data()
        backup_file.replace(self.data_file)
        logger.info("Successfully recovered settings from backup")
        return self._validate_and_migrate_data(data)

    def _validate_and_migrate_data(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Fill in missing keys and repair malformed values"""
        default_data = self._create_default_data()
        for key in default_data:
            if key not in data:
                data[key] = default_data[key]

        names = data.get("names")
        if not isinstance(names, list) or len(names) != WORKER_COUNT:
            logger.warning("Stored names are malformed, resetting to defaults")
            data["names"] = list(DEFAULT_NAMES)
        else:
            data["names"] = self._clean_names(names)

        try:
            self._parse_month_key(data["lastUsedMonth"])
        except ValueError:
            logger.warning(f"Stored month {data['lastUsedMonth']!r} is malformed, resetting")
            data["lastUsedMonth"] = default_data["lastUsedMonth"]

        return data

    def _create_default_data(self) -> Dict[str, Any]:
        return {
            "appVersion": "1.0.0",
            "names": list(DEFAULT_NAMES),
            "lastUsedMonth": datetime.now().strftime("%Y-%m"),
        }

    @staticmethod
    def _clean_names(names: List[Any]) -> List[str]:
        """Non-string or blank entries fall back to the default name for that slot"""
        return [
            (name.strip() if isinstance(name, str) else "") or DEFAULT_NAMES[i]
            for i, name in enumerate(names)
        ]

    @staticmethod
    def _parse_month_key(month_key: str) -> Tuple[int, int]:
        if not isinstance(month_key, str):
            raise ValueError(f"Month key must be a 'YYYY-MM' string, got {month_key!r}")
        year_str, month_str = month_key.split('-')
        year, month = int(year_str), int(month_str)
        if not 1 <= month <= 12:
            raise ValueError(f"Month out of range in {month_key}")
        return year, month

    def save_data(self) -> bool:
        """Save settings atomically, keeping the previous file as a backup"""
        temp_file = self.data_file.with_suffix('.tmp')
        backup_file = self.data_file.with_suffix('.bak')
        try:
            self.data_file.parent.mkdir(parents=True, exist_ok=True)
            with open(temp_file, 'w', encoding='utf-8') as f:
                json.dump(self.data, f, indent=2, ensure_ascii=False)
            if self.data_file.exists():
                self.data_file.replace(backup_file)
            temp_file.replace(self.data_file)
            logger.info(f"Settings saved to {self.data_file}")
            return True
        except OSError as e:
            logger.error(f"Error saving settings: {e}")
            if temp_file.exists():
                temp_file.unlink()
            raise DataSaveError(f"Failed to save settings: {e}") from e

    def get_names(self) -> Tuple[str, ...]:
        return tuple(self.data["names"])

    def set_names(self, names: List[str]):
        """Store display names; blank entries fall back to the default name for that slot"""
        if len(names) != WORKER_COUNT:
            raise DataValidationError(f"Exactly {WORKER_COUNT} names are required, got {len(names)}")
        self.data["names"] = self._clean_names(list(names))

    def get_last_month(self) -> Tuple[int, int]:
        return self._parse_month_key(self.data["lastUsedMonth"])

    def set_last_month(self, year: int, month: int):
        if not 1 <= month <= 12:
            raise DataValidationError(f"Month must be 1-12, got {month}")
        self.data["lastUsedMonth"] = f"{year}-{month:02d}"

    def build_request(self, year: Optional[int] = None, month: Optional[int] = None) -> ScheduleRequest:
        """Build a request from stored settings, overriding the month when given"""
        last_year, last_month = self.get_last_month()
        return ScheduleRequest(
            year=last_year if year is None else year,
            month=last_month if month is None else month,
            names=self.get_names()
        )
