"""Persistence for month entries and settings.

Data is always written to a per-user JSON file in the local cache directory.
When the database is enabled, the same payload is upserted into SQLite and
the database becomes the preferred source on load.  Database or file errors
never propagate to the UI: they are logged and turned into a warning while
the caller keeps its in-memory months.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass, fields
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from .config import CACHE_DIR, DB_PATH, USE_DATABASE, USER_ID, ensure_data_directories
from .models import DEFAULT_CONFIGURATION, MonthRecord, PeriodConfiguration
from .periods import build_period_months

logger = logging.getLogger(__name__)

LOAD_FAILED = "Failed to load data. Using local storage as fallback."
SAVE_FAILED = "Failed to save to database. Data saved locally."
LOCAL_SAVE_FAILED = "Failed to save to local storage."
REFRESH_FAILED = "Failed to load from database."
SETTINGS_SAVE_FAILED = "Failed to save settings to database. Settings saved locally."

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS expense_data (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL UNIQUE,
    period1_months TEXT NOT NULL,
    period2_months TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS user_settings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL UNIQUE,
    period1_name TEXT,
    period2_name TEXT,
    months_per_period INTEGER,
    start_month INTEGER,
    start_year INTEGER,
    period1_salary INTEGER,
    period2_salary INTEGER,
    long_term_savings_target INTEGER,
    short_term_savings_target INTEGER,
    fixed_expenses INTEGER,
    goal_target INTEGER,
    goal_name TEXT,
    currency_symbol TEXT,
    currency_code TEXT,
    updated_at TEXT NOT NULL
);
"""

# Month payloads use the camelCase keys of previously stored data.
_MONTH_KEYS: Dict[str, str] = {
    'id': 'id',
    'month_name': 'monthName',
    'year': 'year',
    'salary': 'salary',
    'fixed_expenses': 'fixedExpenses',
    'planned_long_term_savings': 'plannedLongTermSavings',
    'actual_long_term_savings': 'actualLongTermSavings',
    'planned_short_term_savings': 'plannedShortTermSavings',
    'actual_short_term_savings': 'actualShortTermSavings',
    'additional_income': 'additionalIncome',
    'additional_expense': 'additionalExpense',
    'goal_contribution': 'goalContribution',
    'carryover_from_previous': 'carryoverFromPrevious',
}

_SETTINGS_FIELDS = tuple(f.name for f in fields(PeriodConfiguration))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def month_to_dict(month: MonthRecord) -> Dict[str, Any]:
    """Serialise the raw fields of a month (derived figures are not stored)."""
    return {camel: getattr(month, name) for name, camel in _MONTH_KEYS.items()}


def month_from_dict(data: Dict[str, Any]) -> MonthRecord:
    """Build a month from a stored payload.

    Missing amounts default to zero and unknown keys are ignored.

    Raises:
        ValueError: If the id, month name or year is missing or malformed
    """
    if not isinstance(data, dict):
        raise ValueError("Month entry must be an object")
    values: Dict[str, Any] = {}
    for name, camel in _MONTH_KEYS.items():
        raw = data.get(camel, data.get(name))
        if name in ('id', 'month_name'):
            if not isinstance(raw, str) or not raw:
                raise ValueError(f"Month entry is missing '{camel}'")
            values[name] = raw
            continue
        if raw is None:
            if name == 'year':
                raise ValueError("Month entry is missing 'year'")
            raw = 0
        try:
            values[name] = int(raw)
        except (TypeError, ValueError):
            raise ValueError(f"Month entry has a non-numeric '{camel}': {raw!r}") from None
    return MonthRecord(**values)


def months_from_payload(payload: Any) -> Optional[List[MonthRecord]]:
    """Decode a stored month list, or ``None`` when the payload is unusable."""
    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError:
            return None
    if not isinstance(payload, list):
        return None
    try:
        return [month_from_dict(item) for item in payload]
    except ValueError as exc:
        logger.warning("Discarding stored months: %s", exc)
        return None


def settings_to_dict(configuration: PeriodConfiguration) -> Dict[str, Any]:
    return {name: getattr(configuration, name) for name in _SETTINGS_FIELDS}


def settings_from_dict(data: Optional[Dict[str, Any]]) -> PeriodConfiguration:
    """Merge stored settings over the defaults, ignoring unknown or bad values."""
    if not isinstance(data, dict):
        return DEFAULT_CONFIGURATION
    values: Dict[str, Any] = {}
    for name in _SETTINGS_FIELDS:
        default = getattr(DEFAULT_CONFIGURATION, name)
        raw = data.get(name)
        if raw is None or raw == '':
            continue
        if isinstance(default, int):
            try:
                values[name] = int(raw)
            except (TypeError, ValueError):
                continue
        else:
            values[name] = str(raw)
    return PeriodConfiguration(**{**settings_to_dict(DEFAULT_CONFIGURATION), **values})


class LocalCache:
    """JSON files in the cache directory, one pair per user."""

    def __init__(self, cache_dir: Optional[Path] = None, user_id: str = USER_ID):
        self.cache_dir = Path(cache_dir) if cache_dir else CACHE_DIR
        self.user_id = user_id

    @property
    def expense_path(self) -> Path:
        return self.cache_dir / f"expense-data-{self.user_id}.json"

    @property
    def settings_path(self) -> Path:
        return self.cache_dir / f"settings-{self.user_id}.json"

    def _read(self, target: Path) -> Optional[Dict[str, Any]]:
        if not target.exists():
            return None
        try:
            with target.open('r', encoding='utf-8') as handle:
                data = json.load(handle)
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning("Could not read %s: %s", target, exc)
            return None
        return data if isinstance(data, dict) else None

    def _write(self, target: Path, payload: Dict[str, Any]) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open('w', encoding='utf-8') as handle:
            json.dump(payload, handle, indent=2, sort_keys=True, ensure_ascii=False)

    def load_expense_data(self) -> Optional[Tuple[Optional[List[MonthRecord]], Optional[List[MonthRecord]], Optional[datetime]]]:
        data = self._read(self.expense_path)
        if data is None:
            return None
        return (
            months_from_payload(data.get('period1_months')),
            months_from_payload(data.get('period2_months')),
            _parse_timestamp(data.get('saved_at')),
        )

    def save_expense_data(self, period1: List[MonthRecord], period2: List[MonthRecord], saved_at: datetime) -> None:
        self._write(self.expense_path, {
            'period1_months': [month_to_dict(m) for m in period1],
            'period2_months': [month_to_dict(m) for m in period2],
            'saved_at': saved_at.isoformat(),
        })

    def load_settings(self) -> Optional[Dict[str, Any]]:
        return self._read(self.settings_path)

    def save_settings(self, configuration: PeriodConfiguration) -> None:
        self._write(self.settings_path, settings_to_dict(configuration))


class DatabaseStore:
    """SQLite backed store shared by all users of one installation."""

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = Path(db_path) if db_path else DB_PATH
        self._initialised = False

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        try:
            if not self._initialised:
                conn.executescript(SCHEMA_SQL)
                conn.commit()
                self._initialised = True
            yield conn
        finally:
            conn.close()

    def fetch_expense_data(self, user_id: str) -> Optional[Dict[str, Any]]:
        with self.connect() as conn:
            row = conn.execute(
                "SELECT period1_months, period2_months, updated_at FROM expense_data WHERE user_id = ?",
                (user_id,),
            ).fetchone()
        return dict(row) if row else None

    def upsert_expense_data(self, user_id: str, period1: List[MonthRecord], period2: List[MonthRecord], updated_at: datetime) -> None:
        stamp = updated_at.isoformat()
        with self.connect() as conn:
            conn.execute(
                """
                INSERT INTO expense_data (user_id, period1_months, period2_months, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(user_id) DO UPDATE SET
                    period1_months = excluded.period1_months,
                    period2_months = excluded.period2_months,
                    updated_at = excluded.updated_at
                """,
                (
                    user_id,
                    json.dumps([month_to_dict(m) for m in period1], ensure_ascii=False),
                    json.dumps([month_to_dict(m) for m in period2], ensure_ascii=False),
                    stamp,
                    stamp,
                ),
            )
            conn.commit()

    def fetch_settings(self, user_id: str) -> Optional[Dict[str, Any]]:
        with self.connect() as conn:
            row = conn.execute("SELECT * FROM user_settings WHERE user_id = ?", (user_id,)).fetchone()
        return dict(row) if row else None

    def upsert_settings(self, user_id: str, configuration: PeriodConfiguration, updated_at: datetime) -> None:
        values = settings_to_dict(configuration)
        columns = ['user_id', *values.keys(), 'updated_at']
        placeholders = ', '.join('?' for _ in columns)
        updates = ', '.join(f"{name} = excluded.{name}" for name in [*values.keys(), 'updated_at'])
        with self.connect() as conn:
            conn.execute(
                f"INSERT INTO user_settings ({', '.join(columns)}) VALUES ({placeholders}) "
                f"ON CONFLICT(user_id) DO UPDATE SET {updates}",
                (user_id, *values.values(), updated_at.isoformat()),
            )
            conn.commit()


@dataclass
class LoadResult:
    period1: List[MonthRecord]
    period2: List[MonthRecord]
    last_saved: Optional[datetime] = None
    warning: Optional[str] = None
    source: str = 'generated'


@dataclass
class SaveResult:
    saved_at: Optional[datetime]
    warning: Optional[str] = None


class ExpenseDataStore:
    """Loads and saves both periods, preferring the database when enabled."""

    def __init__(
        self,
        user_id: str = USER_ID,
        local: Optional[LocalCache] = None,
        database: Optional[DatabaseStore] = None,
        use_database: bool = USE_DATABASE,
        clock: Callable[[], datetime] = _utcnow,
    ):
        if local is None:
            ensure_data_directories()
        self.user_id = user_id
        self.local = local or LocalCache(user_id=user_id)
        self.database = database if database is not None else (DatabaseStore() if use_database else None)
        self.clock = clock

    @property
    def use_database(self) -> bool:
        return self.database is not None

    def _from_local(self, configuration: PeriodConfiguration, warning: Optional[str] = None) -> LoadResult:
        generated1, generated2 = build_period_months(configuration)
        cached = self.local.load_expense_data()
        if cached is None:
            return LoadResult(generated1, generated2, warning=warning)
        period1, period2, saved_at = cached
        return LoadResult(
            period1 if period1 is not None else generated1,
            period2 if period2 is not None else generated2,
            last_saved=saved_at,
            warning=warning,
            source='local',
        )

    def _fetch_remote(self) -> Optional[LoadResult]:
        row = self.database.fetch_expense_data(self.user_id)
        if row is None:
            return None
        period1 = months_from_payload(row['period1_months'])
        period2 = months_from_payload(row['period2_months'])
        if period1 is None or period2 is None:
            raise ValueError("Stored months are malformed")
        return LoadResult(period1, period2, last_saved=_parse_timestamp(row['updated_at']), source='database')

    def load(self, configuration: PeriodConfiguration) -> LoadResult:
        """Load both periods for the current user.

        Falls back to the local cache (and then to freshly generated months)
        when the database is disabled, empty for this user, or failing.
        """
        if not self.use_database:
            return self._from_local(configuration)
        try:
            result = self._fetch_remote()
        except (sqlite3.Error, OSError, ValueError) as exc:
            logger.warning("Loading from database failed, using local cache: %s", exc)
            return self._from_local(configuration, warning=LOAD_FAILED)
        if result is None:
            logger.info("No stored months for user %s; generating from settings", self.user_id)
            period1, period2 = build_period_months(configuration)
            return LoadResult(period1, period2)
        logger.debug("Loaded %d + %d months from database", len(result.period1), len(result.period2))
        return result

    def refresh(self) -> Optional[LoadResult]:
        """Reload from the database only; ``None`` when there is nothing to load."""
        if not self.use_database:
            return None
        try:
            return self._fetch_remote()
        except (sqlite3.Error, OSError, ValueError) as exc:
            logger.warning("Refreshing from database failed: %s", exc)
            return LoadResult([], [], warning=REFRESH_FAILED, source='error')

    def save(self, period1: List[MonthRecord], period2: List[MonthRecord]) -> SaveResult:
        """Write the local cache, then the database.

        A database failure still counts as a save because the local copy was
        written.
        """
        saved_at = self.clock()
        try:
            self.local.save_expense_data(period1, period2, saved_at)
        except OSError as exc:
            logger.warning("Writing local cache failed: %s", exc)
            if not self.use_database:
                return SaveResult(saved_at=None, warning=LOCAL_SAVE_FAILED)
            local_ok = False
        else:
            local_ok = True

        if self.use_database:
            try:
                self.database.upsert_expense_data(self.user_id, period1, period2, saved_at)
            except (sqlite3.Error, OSError) as exc:
                logger.warning("Saving to database failed: %s", exc)
                if not local_ok:
                    return SaveResult(saved_at=None, warning=LOCAL_SAVE_FAILED)
                return SaveResult(saved_at=saved_at, warning=SAVE_FAILED)
        logger.info("Saved %d + %d months for user %s", len(period1), len(period2), self.user_id)
        return SaveResult(saved_at=saved_at, warning=None if local_ok else LOCAL_SAVE_FAILED)


class SettingsStore:
    """Loads and saves the user's period configuration."""

    def __init__(
        self,
        user_id: str = USER_ID,
        local: Optional[LocalCache] = None,
        database: Optional[DatabaseStore] = None,
        use_database: bool = USE_DATABASE,
        clock: Callable[[], datetime] = _utcnow,
    ):
        if local is None:
            ensure_data_directories()
        self.user_id = user_id
        self.local = local or LocalCache(user_id=user_id)
        self.database = database if database is not None else (DatabaseStore() if use_database else None)
        self.clock = clock

    def load(self) -> PeriodConfiguration:
        if self.database is not None:
            try:
                row = self.database.fetch_settings(self.user_id)
            except (sqlite3.Error, OSError) as exc:
                logger.warning("Loading settings from database failed: %s", exc)
            else:
                if row is not None:
                    return settings_from_dict(row)
        return settings_from_dict(self.local.load_settings())

    def save(self, configuration: PeriodConfiguration) -> Optional[str]:
        """Persist settings; returns a warning message on partial failure."""
        try:
            self.local.save_settings(configuration)
        except OSError as exc:
            logger.warning("Writing local settings failed: %s", exc)
            if self.database is None:
                return LOCAL_SAVE_FAILED
            local_ok = False
        else:
            local_ok = True
        if self.database is not None:
            try:
                self.database.upsert_settings(self.user_id, configuration, self.clock())
            except (sqlite3.Error, OSError) as exc:
                logger.warning("Saving settings to database failed: %s", exc)
                return SETTINGS_SAVE_FAILED if local_ok else LOCAL_SAVE_FAILED
        return None if local_ok else LOCAL_SAVE_FAILED
