"""Month derivation and goal aggregation.

This module is the arithmetic core of the dashboard.  Every function is pure:
inputs are never mutated and repeated calls on the same input return equal
results, so the UI simply recomputes on every rerun instead of caching.
"""

from __future__ import annotations

import math
from dataclasses import fields, replace
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

from .models import (
    DEFAULT_CONFIGURATION,
    MONTH_NAMES,
    DerivedMonthRecord,
    GoalProgress,
    GoalTarget,
    MonthRecord,
    PERIOD_LENGTH_OPTIONS,
    PeriodConfiguration,
    SubGoalProgress,
)

GOAL_HORIZON_MONTHS = 12

_RAW_FIELDS = tuple(f.name for f in fields(MonthRecord))


def month_name(month_index: int) -> str:
    """Return the English month name for a 0-based index (wraps past December)."""
    return MONTH_NAMES[month_index % 12]


def generate_initial_months(
    start_month: int,
    start_year: int,
    count: int,
    salary: int,
    fixed_expenses: int = DEFAULT_CONFIGURATION.fixed_expenses,
    long_term_target: int = DEFAULT_CONFIGURATION.long_term_savings_target,
    short_term_target: int = DEFAULT_CONFIGURATION.short_term_savings_target,
) -> List[MonthRecord]:
    """Create a fresh run of months with every user-entered amount set to zero.

    Args:
        start_month: 0-based month index of the first month. Values above 11
            roll into the following years.
        start_year: Calendar year of ``start_month``
        count: Number of months to generate
        salary: Monthly salary for every generated month
        fixed_expenses: Fixed monthly expenses
        long_term_target: Planned long-term savings per month
        short_term_target: Planned short-term savings per month

    Returns:
        List of ``MonthRecord`` with ids of the form ``"{year}-{month_index}"``

    Example:
        >>> [m.id for m in generate_initial_months(11, 2025, 2, 190000)]
        ['2025-11', '2026-0']
    """
    months: List[MonthRecord] = []
    for offset in range(max(0, count)):
        absolute = start_month + offset
        month_index = absolute % 12
        year = start_year + absolute // 12
        months.append(
            MonthRecord(
                id=f"{year}-{month_index}",
                month_name=month_name(month_index),
                year=year,
                salary=salary,
                fixed_expenses=fixed_expenses,
                planned_long_term_savings=long_term_target,
                planned_short_term_savings=short_term_target,
            )
        )
    return months


def derive_month(
    record: MonthRecord,
    configuration: Optional[PeriodConfiguration] = None,
) -> DerivedMonthRecord:
    """Compute totals, savings variances, surplus and carryover for one month.

    ``record.carryover_from_previous`` is used as given.  ``configuration`` is
    accepted for call-site symmetry with the UI; salary and targets live on
    the record itself.

    A negative surplus is a deficit and is returned as-is; only the carryover
    is clamped at zero.
    """
    total_available = record.salary + record.additional_income + record.carryover_from_previous
    surplus = (
        total_available
        - record.fixed_expenses
        - record.actual_long_term_savings
        - record.actual_short_term_savings
        - record.goal_contribution
        - record.additional_expense
    )
    base = {name: getattr(record, name) for name in _RAW_FIELDS}
    return DerivedMonthRecord(
        **base,
        total_available=total_available,
        remaining_after_fixed=total_available - record.fixed_expenses,
        long_term_savings_diff=record.actual_long_term_savings - record.planned_long_term_savings,
        short_term_savings_diff=record.actual_short_term_savings - record.planned_short_term_savings,
        surplus=surplus,
        carryover_to_next=max(0, surplus),
    )


def derive_sequence(records: Iterable[MonthRecord]) -> List[DerivedMonthRecord]:
    """Derive a run of months left to right, threading the carryover.

    The first month keeps its stored ``carryover_from_previous``.  Every later
    month gets the ``carryover_to_next`` of the month before it, whatever value
    it had stored.

    Example:
        >>> derive_sequence([])
        []
    """
    derived: List[DerivedMonthRecord] = []
    for record in records:
        if derived:
            record = replace(record, carryover_from_previous=derived[-1].carryover_to_next)
        derived.append(derive_month(record))
    return derived


def aggregate_goal_progress(
    months: Sequence[DerivedMonthRecord],
    goal_target: int,
    horizon: int = GOAL_HORIZON_MONTHS,
) -> GoalProgress:
    """Summarise contributions toward the savings goal across both periods.

    ``monthly_needed`` spreads the remaining amount over the months of the
    horizon that have no contribution yet.  A month that already received
    something is counted as used even if later months are still empty.

    Args:
        months: Derived months of every period, in order
        goal_target: Goal amount; zero or negative counts as already reached
        horizon: Number of months the goal is planned over

    Returns:
        ``GoalProgress`` with totals, percentage, monthly pace and the
        unclaimed positive surplus
    """
    total_contributed = sum(m.goal_contribution for m in months)
    remaining = max(0, goal_target - total_contributed)

    if goal_target > 0:
        percent_complete = min(100.0, total_contributed / goal_target * 100.0)
    elif total_contributed >= 0:
        percent_complete = 100.0
    else:
        # Negative contributions against a non-positive target; reported by
        # validate_configuration, not here.
        percent_complete = 0.0

    contributing = sum(1 for m in months if m.goal_contribution > 0)
    months_remaining = horizon - contributing
    monthly_needed = remaining / months_remaining if months_remaining > 0 else 0.0

    return GoalProgress(
        total_contributed=total_contributed,
        remaining=remaining,
        percent_complete=percent_complete,
        monthly_needed=monthly_needed,
        available_surplus=sum(max(0, m.surplus) for m in months),
    )


def project_completion(
    months: Sequence[DerivedMonthRecord],
    goal_target: int,
    today: date,
) -> str:
    """Estimate when the goal is reached at the average contribution so far.

    Returns a label such as ``'Mar 2027'``.  With no contributions yet the
    projection is a full year out.
    """
    contributions = [m.goal_contribution for m in months if m.goal_contribution > 0]
    total = sum(m.goal_contribution for m in months)
    remaining = max(0, goal_target - total)
    average = total / max(1, len(contributions))
    months_to_complete = math.ceil(remaining / average) if average > 0 else GOAL_HORIZON_MONTHS

    absolute = today.month - 1 + months_to_complete
    completion = date(today.year + absolute // 12, absolute % 12 + 1, 1)
    return completion.strftime('%b %Y')


def split_goal(total_contributed: int, goals: Sequence[GoalTarget]) -> List[SubGoalProgress]:
    """Spread the contributed total evenly across the configured sub-goals."""
    if not goals:
        return []
    share = total_contributed / len(goals)
    result: List[SubGoalProgress] = []
    for goal in goals:
        if goal.target_amount > 0:
            percent = min(100.0, max(0.0, share / goal.target_amount * 100.0))
        else:
            percent = 100.0
        result.append(SubGoalProgress(goal=goal, allocated=round(share), percent_complete=percent))
    return result


def validate_configuration(configuration: PeriodConfiguration) -> List[str]:
    """Return human readable problems with a configuration (empty when valid)."""
    problems: List[str] = []
    if configuration.goal_target <= 0:
        problems.append("Goal target must be greater than zero.")
    if configuration.months_per_period not in PERIOD_LENGTH_OPTIONS:
        problems.append("Months per period must be 3, 6 or 12.")
    if not 0 <= configuration.start_month <= 11:
        problems.append("Start month must be between January and December.")
    amounts: Dict[str, int] = {
        'Period 1 salary': configuration.period1_salary,
        'Period 2 salary': configuration.period2_salary,
        'Fixed expenses': configuration.fixed_expenses,
        'Long-term savings target': configuration.long_term_savings_target,
        'Short-term savings target': configuration.short_term_savings_target,
    }
    for label, value in amounts.items():
        if value < 0:
            problems.append(f"{label} cannot be negative.")
    return problems
