"""Two-period plan helpers built on top of :mod:`calculations`.

The calculator only knows about a flat run of months.  This module owns the
notion of two consecutive periods: generating them from the settings, seeding
the second period with the first period's closing carryover, summarising a
period, and applying user edits at the input boundary.
"""

from __future__ import annotations

import re
from dataclasses import fields, replace
from datetime import date
from typing import List, Optional, Sequence, Tuple

from .calculations import derive_sequence, generate_initial_months
from .models import (
    EDITABLE_FIELDS,
    DerivedMonthRecord,
    MonthRecord,
    PeriodConfiguration,
    PeriodSummary,
)

_AMOUNT_PATTERN = re.compile(r"^\d*$")

# Settings whose change invalidates previously generated months.
_MATERIAL_FIELDS = (
    'months_per_period',
    'start_month',
    'start_year',
    'period1_salary',
    'period2_salary',
    'fixed_expenses',
    'long_term_savings_target',
    'short_term_savings_target',
)


def build_period_months(configuration: PeriodConfiguration) -> Tuple[List[MonthRecord], List[MonthRecord]]:
    """Generate the zero-initialised months of both periods."""
    common = dict(
        fixed_expenses=configuration.fixed_expenses,
        long_term_target=configuration.long_term_savings_target,
        short_term_target=configuration.short_term_savings_target,
    )
    period1 = generate_initial_months(
        configuration.start_month,
        configuration.start_year,
        configuration.months_per_period,
        configuration.period1_salary,
        **common,
    )
    period2 = generate_initial_months(
        configuration.start_month + configuration.months_per_period,
        configuration.start_year,
        configuration.months_per_period,
        configuration.period2_salary,
        **common,
    )
    return period1, period2


def derive_periods(
    period1: Sequence[MonthRecord],
    period2: Sequence[MonthRecord],
) -> Tuple[List[DerivedMonthRecord], List[DerivedMonthRecord]]:
    """Derive both periods, carrying period 1's closing balance into period 2.

    The seed is recomputed on every call; whatever carryover period 2's first
    month has stored is replaced.
    """
    derived1 = derive_sequence(period1)
    seeded2 = list(period2)
    if seeded2:
        opening = derived1[-1].carryover_to_next if derived1 else 0
        seeded2[0] = replace(seeded2[0], carryover_from_previous=opening)
    return derived1, derive_sequence(seeded2)


def summarize_period(months: Sequence[DerivedMonthRecord], configuration: PeriodConfiguration) -> PeriodSummary:
    """Totals for the period summary cards."""
    count = len(months)
    return PeriodSummary(
        month_count=count,
        total_salary=sum(m.salary for m in months),
        total_additional_income=sum(m.additional_income for m in months),
        total_long_term_savings=sum(m.actual_long_term_savings for m in months),
        long_term_target=configuration.long_term_savings_target * count,
        total_short_term_savings=sum(m.actual_short_term_savings for m in months),
        short_term_target=configuration.short_term_savings_target * count,
        total_goal_contribution=sum(m.goal_contribution for m in months),
        total_surplus=sum(m.surplus for m in months),
    )


def find_current_month(
    period1: Sequence[DerivedMonthRecord],
    period2: Sequence[DerivedMonthRecord],
    today: date,
) -> Tuple[Optional[DerivedMonthRecord], int]:
    """Locate today's month in either period.

    Returns ``(month, period_number)``.  When today is outside both periods
    the first month of period 1 is returned.
    """
    month_id = f"{today.year}-{today.month - 1}"
    for number, months in ((1, period1), (2, period2)):
        for month in months:
            if month.id == month_id:
                return month, number
    if period1:
        return period1[0], 1
    return None, 1


def apply_month_edit(months: Sequence[MonthRecord], index: int, **updates: int) -> List[MonthRecord]:
    """Return a copy of ``months`` with one month's editable fields changed.

    Raises:
        IndexError: If ``index`` is outside the list
        ValueError: If a non-editable field is named or a value is not an int
    """
    if not 0 <= index < len(months):
        raise IndexError(f"Month index {index} out of range")
    for name, value in updates.items():
        if name not in EDITABLE_FIELDS:
            raise ValueError(f"Field '{name}' cannot be edited")
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"Field '{name}' must be a whole number, got {value!r}")
    edited = list(months)
    # Store the raw record only; derived figures are recomputed on read.
    raw = {f.name: getattr(edited[index], f.name) for f in fields(MonthRecord)}
    raw.update(updates)
    edited[index] = MonthRecord(**raw)
    return edited


def parse_amount(text: str) -> int:
    """Parse a typed amount.

    Empty input counts as zero; anything other than digits is rejected.

    Example:
        >>> parse_amount('')
        0
        >>> parse_amount('12000')
        12000
    """
    cleaned = (text or '').strip()
    if not _AMOUNT_PATTERN.match(cleaned):
        raise ValueError(f"'{text}' is not a whole, non-negative amount")
    return int(cleaned) if cleaned else 0


def requires_regeneration(old: PeriodConfiguration, new: PeriodConfiguration) -> bool:
    """True when a settings change invalidates the generated months."""
    return any(getattr(old, name) != getattr(new, name) for name in _MATERIAL_FIELDS)


def period_label(months: Sequence[MonthRecord]) -> str:
    """Short range label such as ``'Feb - Jul 2026'``."""
    if not months:
        return ''
    first, last = months[0], months[-1]
    if first.year == last.year:
        return f"{first.month_name[:3]} - {last.month_name[:3]} {last.year}"
    return f"{first.month_name[:3]} {first.year} - {last.month_name[:3]} {last.year}"
