"""Unit tests for savings_dashboard.calculations."""

from __future__ import annotations

from dataclasses import replace
from datetime import date

from savings_dashboard.calculations import (
    aggregate_goal_progress,
    derive_month,
    derive_sequence,
    generate_initial_months,
    month_name,
    project_completion,
    split_goal,
    validate_configuration,
)
from savings_dashboard.models import DEFAULT_GOALS, GoalTarget, MonthRecord, PeriodConfiguration


def _month(**overrides) -> MonthRecord:
    values = dict(
        id='2026-1',
        month_name='February',
        year=2026,
        salary=190000,
        fixed_expenses=40000,
        planned_long_term_savings=120000,
        planned_short_term_savings=30000,
        actual_long_term_savings=120000,
        actual_short_term_savings=30000,
    )
    values.update(overrides)
    return MonthRecord(**values)


def test_derive_month_balanced_month() -> None:
    derived = derive_month(_month())
    assert derived.total_available == 190000
    assert derived.remaining_after_fixed == 150000
    assert derived.long_term_savings_diff == 0
    assert derived.short_term_savings_diff == 0
    assert derived.surplus == 0
    assert derived.carryover_to_next == 0


def test_derive_month_surplus_becomes_carryover() -> None:
    derived = derive_month(_month(actual_short_term_savings=20000))
    assert derived.surplus == 10000
    assert derived.carryover_to_next == 10000
    assert derived.short_term_savings_diff == -10000


def test_derive_month_includes_income_expense_goal_and_carryover() -> None:
    derived = derive_month(
        _month(
            additional_income=15000,
            additional_expense=5000,
            goal_contribution=20000,
            carryover_from_previous=7000,
        )
    )
    assert derived.total_available == 190000 + 15000 + 7000
    assert derived.remaining_after_fixed == derived.total_available - 40000
    assert derived.surplus == 212000 - 40000 - 120000 - 30000 - 20000 - 5000


def test_deficit_is_reported_but_not_carried() -> None:
    derived = derive_month(_month(additional_expense=50000))
    assert derived.surplus == -50000
    assert derived.carryover_to_next == 0


def test_adverse_inputs_do_not_raise() -> None:
    derived = derive_month(_month(salary=-1000, actual_long_term_savings=10 ** 9))
    assert derived.surplus < 0
    assert derived.carryover_to_next == 0


def test_derive_month_is_repeatable_and_keeps_identity() -> None:
    record = _month(actual_short_term_savings=25000)
    first = derive_month(record)
    second = derive_month(record)
    assert first == second
    assert first.id == record.id
    assert first.month_name == record.month_name


def test_derive_sequence_empty() -> None:
    assert derive_sequence([]) == []


def test_derive_sequence_overrides_stale_interior_carryover() -> None:
    months = [
        _month(id='2026-1', actual_short_term_savings=20000),
        _month(id='2026-2', month_name='March', carryover_from_previous=99999),
    ]
    derived = derive_sequence(months)
    assert derived[1].carryover_from_previous == 10000
    assert derived[1].total_available == 190000 + 10000
    # the stored record is untouched
    assert months[1].carryover_from_previous == 99999


def test_derive_sequence_trusts_head_carryover() -> None:
    derived = derive_sequence([_month(carryover_from_previous=3000)])
    assert derived[0].carryover_from_previous == 3000
    assert derived[0].total_available == 193000


def test_fold_chains_carryover_link_by_link() -> None:
    months = [
        _month(id=f'2026-{i}', actual_short_term_savings=30000 - 1000 * i, carryover_from_previous=555)
        for i in range(5)
    ]
    derived = derive_sequence(months)
    for previous, current in zip(derived, derived[1:]):
        assert current.carryover_from_previous == previous.carryover_to_next


def test_total_available_with_no_extras_is_salary_plus_carryover() -> None:
    months = [
        _month(id='2026-1', actual_long_term_savings=100000),
        _month(id='2026-2', salary=180000, actual_long_term_savings=110000),
        _month(id='2026-3', salary=180000),
    ]
    derived = derive_sequence(months)
    for i in range(1, len(derived)):
        assert derived[i].total_available == months[i].salary + derived[i - 1].carryover_to_next


def test_derive_sequence_accepts_derived_records() -> None:
    derived = derive_sequence([_month(actual_short_term_savings=20000), _month(id='2026-2')])
    again = derive_sequence(derived)
    assert again == derived


def test_derive_sequence_does_not_mutate_input_list() -> None:
    months = [_month(), _month(id='2026-2', carryover_from_previous=1)]
    snapshot = list(months)
    derive_sequence(months)
    assert months == snapshot


def test_generate_initial_months_rolls_over_year() -> None:
    months = generate_initial_months(10, 2025, 4, 190000)
    assert [m.id for m in months] == ['2025-10', '2025-11', '2026-0', '2026-1']
    assert [m.month_name for m in months] == ['November', 'December', 'January', 'February']
    assert all(m.actual_long_term_savings == 0 and m.goal_contribution == 0 for m in months)
    assert all(m.carryover_from_previous == 0 for m in months)
    assert months[0].planned_long_term_savings == 120000
    assert months[0].fixed_expenses == 40000


def test_month_name_wraps() -> None:
    assert month_name(0) == 'January'
    assert month_name(13) == 'February'


def test_goal_progress_example() -> None:
    months = derive_sequence([
        _month(id='2026-1', goal_contribution=50000),
        _month(id='2026-2', goal_contribution=25000),
        _month(id='2026-3'),
    ])
    progress = aggregate_goal_progress(months, 300000)
    assert progress.total_contributed == 75000
    assert progress.remaining == 225000
    assert progress.percent_complete == 25.0
    assert progress.monthly_needed == 225000 / 10


def test_goal_progress_caps_at_hundred() -> None:
    months = derive_sequence([_month(goal_contribution=400000)])
    progress = aggregate_goal_progress(months, 300000)
    assert progress.percent_complete == 100.0
    assert progress.remaining == 0


def test_goal_progress_zero_target_is_complete() -> None:
    progress = aggregate_goal_progress(derive_sequence([_month()]), 0)
    assert progress.percent_complete == 100.0
    assert progress.remaining == 0


def test_goal_progress_negative_total_against_zero_target() -> None:
    months = derive_sequence([_month(goal_contribution=-5000)])
    progress = aggregate_goal_progress(months, 0)
    assert progress.total_contributed == -5000
    assert progress.percent_complete == 0.0
    assert progress.remaining == 5000


def test_goal_progress_horizon_exhausted() -> None:
    months = derive_sequence([_month(id=f'm{i}', goal_contribution=1000) for i in range(12)])
    progress = aggregate_goal_progress(months, 300000)
    assert progress.monthly_needed == 0.0
    assert progress.remaining == 288000


def test_goal_progress_available_surplus_ignores_deficits() -> None:
    months = derive_month(_month(actual_short_term_savings=20000)), derive_month(_month(additional_expense=5000))
    progress = aggregate_goal_progress(list(months), 300000)
    assert progress.available_surplus == 10000


def test_goal_progress_empty() -> None:
    progress = aggregate_goal_progress([], 300000)
    assert progress.total_contributed == 0
    assert progress.percent_complete == 0.0
    assert progress.monthly_needed == 300000 / 12


def test_project_completion() -> None:
    months = derive_sequence([
        _month(goal_contribution=50000),
        _month(id='2026-2', goal_contribution=50000),
    ])
    # 200000 remaining at 50000/month -> 4 months out
    assert project_completion(months, 300000, date(2026, 10, 19)) == 'Feb 2027'


def test_project_completion_without_contributions() -> None:
    assert project_completion([], 300000, date(2026, 3, 1)) == 'Mar 2027'


def test_split_goal_evenly() -> None:
    parts = split_goal(150000, DEFAULT_GOALS)
    assert [p.allocated for p in parts] == [50000, 50000, 50000]
    assert all(p.percent_complete == 50.0 for p in parts)
    assert split_goal(1000, []) == []
    capped = split_goal(900000, [GoalTarget('a', 'A', 100000)])
    assert capped[0].percent_complete == 100.0


def test_validate_configuration() -> None:
    assert validate_configuration(PeriodConfiguration()) == []
    problems = validate_configuration(
        replace(PeriodConfiguration(), goal_target=0, months_per_period=5, start_month=12, fixed_expenses=-1)
    )
    assert len(problems) == 4
