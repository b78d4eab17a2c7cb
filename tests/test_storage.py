from __future__ import annotations

import json
import sqlite3
from dataclasses import replace
from datetime import datetime, timezone

import pytest

from savings_dashboard.models import PeriodConfiguration
from savings_dashboard.periods import build_period_months
from savings_dashboard.storage import (
    LOAD_FAILED,
    LOCAL_SAVE_FAILED,
    REFRESH_FAILED,
    SAVE_FAILED,
    SETTINGS_SAVE_FAILED,
    DatabaseStore,
    ExpenseDataStore,
    LocalCache,
    SettingsStore,
    month_from_dict,
    months_from_payload,
    settings_from_dict,
)

SAVED_AT = datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)
CONFIG = PeriodConfiguration(start_year=2026)


class FailingDatabase:
    def _fail(self, *args, **kwargs):
        raise sqlite3.OperationalError("database is locked")

    fetch_expense_data = upsert_expense_data = fetch_settings = upsert_settings = _fail


def _edited_months():
    period1, period2 = build_period_months(CONFIG)
    period1[0] = replace(period1[0], actual_long_term_savings=120000, goal_contribution=5000)
    return period1, period2


def _store(tmp_path, database=None, use_database=False):
    return ExpenseDataStore(
        user_id='alice',
        local=LocalCache(tmp_path / 'cache', user_id='alice'),
        database=database,
        use_database=use_database,
        clock=lambda: SAVED_AT,
    )


def test_local_only_save_and_load(tmp_path):
    store = _store(tmp_path)
    period1, period2 = _edited_months()
    result = store.save(period1, period2)
    assert result.saved_at == SAVED_AT
    assert result.warning is None

    loaded = store.load(CONFIG)
    assert loaded.source == 'local'
    assert loaded.period1 == period1
    assert loaded.period2 == period2
    assert loaded.last_saved == SAVED_AT
    assert loaded.warning is None


def test_local_file_uses_camel_case_keys(tmp_path):
    store = _store(tmp_path)
    store.save(*_edited_months())
    payload = json.loads(store.local.expense_path.read_text(encoding='utf-8'))
    first = payload['period1_months'][0]
    assert first['monthName'] == 'February'
    assert first['actualLongTermSavings'] == 120000
    assert first['goalContribution'] == 5000
    assert 'surplus' not in first


def test_missing_cache_generates_months(tmp_path):
    loaded = _store(tmp_path).load(CONFIG)
    assert loaded.source == 'generated'
    assert (loaded.period1, loaded.period2) == build_period_months(CONFIG)
    assert loaded.last_saved is None


def test_corrupt_cache_is_ignored(tmp_path):
    store = _store(tmp_path)
    store.local.expense_path.parent.mkdir(parents=True)
    store.local.expense_path.write_text('{not json', encoding='utf-8')
    loaded = store.load(CONFIG)
    assert loaded.source == 'generated'
    assert loaded.warning is None


def test_database_round_trip(tmp_path):
    store = _store(tmp_path, database=DatabaseStore(tmp_path / 'savings.db'), use_database=True)
    assert store.use_database
    period1, period2 = _edited_months()
    assert store.save(period1, period2).warning is None

    loaded = store.load(CONFIG)
    assert loaded.source == 'database'
    assert loaded.period1 == period1
    assert loaded.last_saved == SAVED_AT

    # A second save updates the same row.
    period1[1] = replace(period1[1], additional_income=3000)
    store.save(period1, period2)
    refreshed = store.refresh()
    assert refreshed.period1[1].additional_income == 3000
    with store.database.connect() as conn:
        assert conn.execute("SELECT COUNT(*) FROM expense_data").fetchone()[0] == 1


def test_database_without_row_generates(tmp_path):
    store = _store(tmp_path, database=DatabaseStore(tmp_path / 'savings.db'), use_database=True)
    loaded = store.load(CONFIG)
    assert loaded.source == 'generated'
    assert store.refresh() is None


def test_database_failure_falls_back_to_local(tmp_path):
    _store(tmp_path).save(*_edited_months())
    store = _store(tmp_path, database=FailingDatabase(), use_database=True)
    loaded = store.load(CONFIG)
    assert loaded.warning == LOAD_FAILED
    assert loaded.source == 'local'
    assert loaded.period1[0].goal_contribution == 5000


def test_database_save_failure_keeps_local_copy(tmp_path):
    store = _store(tmp_path, database=FailingDatabase(), use_database=True)
    result = store.save(*_edited_months())
    assert result.saved_at == SAVED_AT
    assert result.warning == SAVE_FAILED
    assert store.local.expense_path.exists()


def test_refresh_failure_reports_warning(tmp_path):
    result = _store(tmp_path, database=FailingDatabase(), use_database=True).refresh()
    assert result.warning == REFRESH_FAILED
    assert result.source == 'error'


def test_refresh_without_database(tmp_path):
    assert _store(tmp_path).refresh() is None


def test_local_save_failure(tmp_path):
    blocker = tmp_path / 'cache'
    blocker.write_text('not a directory', encoding='utf-8')
    result = _store(tmp_path).save(*_edited_months())
    assert result.saved_at is None
    assert result.warning == LOCAL_SAVE_FAILED


def test_month_from_dict_defaults_missing_amounts():
    month = month_from_dict({'id': '2026-1', 'monthName': 'February', 'year': 2026, 'salary': '190000'})
    assert month.salary == 190000
    assert month.fixed_expenses == 0
    assert month.goal_contribution == 0


@pytest.mark.parametrize(
    'payload',
    [
        {'monthName': 'February', 'year': 2026},
        {'id': '2026-1', 'monthName': 'February'},
        {'id': '2026-1', 'monthName': 'February', 'year': 2026, 'salary': 'lots'},
    ],
)
def test_month_from_dict_rejects_malformed(payload):
    with pytest.raises(ValueError):
        month_from_dict(payload)


def test_months_from_payload_malformed():
    assert months_from_payload('[') is None
    assert months_from_payload({'id': 'x'}) is None
    assert months_from_payload([{'monthName': 'May'}]) is None
    assert months_from_payload('[]') == []


def test_settings_from_dict_merges_over_defaults():
    assert settings_from_dict(None) == PeriodConfiguration()
    merged = settings_from_dict({'period1_salary': '200000', 'goal_target': 'abc', 'currency_symbol': '$', 'extra': 1})
    assert merged.period1_salary == 200000
    assert merged.goal_target == PeriodConfiguration().goal_target
    assert merged.currency_symbol == '$'


def test_settings_store_round_trip(tmp_path):
    store = SettingsStore(
        user_id='alice',
        local=LocalCache(tmp_path, user_id='alice'),
        database=DatabaseStore(tmp_path / 'savings.db'),
    )
    configuration = replace(CONFIG, period2_salary=200000, currency_symbol='€', currency_code='EUR')
    assert store.save(configuration) is None
    assert store.load() == configuration


def test_settings_store_database_failure(tmp_path):
    store = SettingsStore(user_id='alice', local=LocalCache(tmp_path, user_id='alice'), database=FailingDatabase())
    configuration = replace(CONFIG, goal_target=500000)
    assert store.save(configuration) == SETTINGS_SAVE_FAILED
    assert store.load() == configuration


def test_settings_store_reports_local_failure_when_database_also_fails(tmp_path):
    blocker = tmp_path / 'cache'
    blocker.write_text('not a directory', encoding='utf-8')
    store = SettingsStore(user_id='alice', local=LocalCache(blocker, user_id='alice'), database=FailingDatabase())
    assert store.save(CONFIG) == LOCAL_SAVE_FAILED


def test_settings_store_reports_local_failure_when_database_succeeds(tmp_path):
    blocker = tmp_path / 'cache'
    blocker.write_text('not a directory', encoding='utf-8')
    store = SettingsStore(
        user_id='alice',
        local=LocalCache(blocker, user_id='alice'),
        database=DatabaseStore(tmp_path / 'savings.db'),
    )
    assert store.save(CONFIG) == LOCAL_SAVE_FAILED
    assert store.load() == CONFIG
