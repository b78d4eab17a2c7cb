"""CSV export of derived months.

The column order is relied on by spreadsheets built from earlier exports and
must not change.
"""

from __future__ import annotations

from typing import List, Sequence

import pandas as pd

from .models import DerivedMonthRecord, PeriodConfiguration

EXPORT_COLUMNS: List[str] = [
    'Period',
    'Month',
    'Year',
    'Salary',
    'Fixed Expenses',
    'Planned Long-Term Savings',
    'Actual Long-Term Savings',
    'Planned Short-Term Savings',
    'Actual Short-Term Savings',
    'Goal Contribution',
    'Additional Income',
    'Additional Expense',
    'Carryover From Previous',
    'Total Available',
    'Long-Term Savings Diff',
    'Short-Term Savings Diff',
    'Surplus/Deficit',
    'Carryover To Next',
]


def _row(period_label: str, month: DerivedMonthRecord) -> list:
    return [
        period_label,
        month.month_name,
        month.year,
        month.salary,
        month.fixed_expenses,
        month.planned_long_term_savings,
        month.actual_long_term_savings,
        month.planned_short_term_savings,
        month.actual_short_term_savings,
        month.goal_contribution,
        month.additional_income,
        month.additional_expense,
        month.carryover_from_previous,
        month.total_available,
        month.long_term_savings_diff,
        month.short_term_savings_diff,
        month.surplus,
        month.carryover_to_next,
    ]


def export_rows(
    period1: Sequence[DerivedMonthRecord],
    period2: Sequence[DerivedMonthRecord],
    configuration: PeriodConfiguration,
) -> pd.DataFrame:
    """Build the export table, one row per month, period 1 first."""
    label1 = f"Period 1 ({configuration.period1_name})"
    label2 = f"Period 2 ({configuration.period2_name})"
    rows = [_row(label1, m) for m in period1] + [_row(label2, m) for m in period2]
    return pd.DataFrame(rows, columns=EXPORT_COLUMNS)


def export_csv(
    period1: Sequence[DerivedMonthRecord],
    period2: Sequence[DerivedMonthRecord],
    configuration: PeriodConfiguration,
) -> str:
    """Render the export table as CSV text without an index column."""
    frame = export_rows(period1, period2, configuration)
    return frame.to_csv(index=False, lineterminator='\n').rstrip('\n')


def export_filename(year: int) -> str:
    return f"expense-tracker-{year}.csv"
