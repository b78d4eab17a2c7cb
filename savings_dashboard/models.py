"""Data structures shared by the calculator, storage and UI layers.

All amounts are whole currency units stored as ``int`` so totals never pick
up floating point noise.  Records are frozen; edits produce new instances via
:func:`dataclasses.replace`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Tuple

MONTH_NAMES = [
    'January', 'February', 'March', 'April', 'May', 'June',
    'July', 'August', 'September', 'October', 'November', 'December',
]

# Fields a user may change on a generated month.  Salary, targets and id are
# owned by the configuration that generated the month.
EDITABLE_FIELDS = (
    'actual_long_term_savings',
    'actual_short_term_savings',
    'additional_income',
    'additional_expense',
    'goal_contribution',
)

CURRENCY_OPTIONS: List[Dict[str, str]] = [
    {'symbol': '¥', 'code': 'JPY', 'name': 'Japanese Yen'},
    {'symbol': '₹', 'code': 'INR', 'name': 'Indian Rupee'},
    {'symbol': '$', 'code': 'USD', 'name': 'US Dollar'},
    {'symbol': '€', 'code': 'EUR', 'name': 'Euro'},
    {'symbol': '£', 'code': 'GBP', 'name': 'British Pound'},
    {'symbol': '₩', 'code': 'KRW', 'name': 'Korean Won'},
    {'symbol': 'A$', 'code': 'AUD', 'name': 'Australian Dollar'},
    {'symbol': 'C$', 'code': 'CAD', 'name': 'Canadian Dollar'},
]

PERIOD_LENGTH_OPTIONS = (3, 6, 12)


@dataclass(frozen=True)
class MonthRecord:
    """One calendar month of a period as entered by the user."""

    id: str
    month_name: str
    year: int
    salary: int
    fixed_expenses: int
    planned_long_term_savings: int
    planned_short_term_savings: int
    actual_long_term_savings: int = 0
    actual_short_term_savings: int = 0
    additional_income: int = 0
    additional_expense: int = 0
    goal_contribution: int = 0
    # Only trusted on the first month of a sequence; interior values are
    # recomputed by the fold.
    carryover_from_previous: int = 0


@dataclass(frozen=True)
class DerivedMonthRecord(MonthRecord):
    """A month together with the figures derived from it."""

    total_available: int = 0
    remaining_after_fixed: int = 0
    long_term_savings_diff: int = 0
    short_term_savings_diff: int = 0
    surplus: int = 0
    carryover_to_next: int = 0


@dataclass(frozen=True)
class GoalTarget:
    id: str
    name: str
    target_amount: int
    icon: str = '🎯'


DEFAULT_GOALS: Tuple[GoalTarget, ...] = (
    GoalTarget('smartphone', 'Smartphone', 100000, '📱'),
    GoalTarget('india-trip', 'Trip to India', 100000, '✈️'),
    GoalTarget('moving', 'Moving Expenses', 100000, '📦'),
)


@dataclass(frozen=True)
class PeriodConfiguration:
    """User settings that drive month generation and display."""

    period1_name: str = 'First 6 Months'
    period2_name: str = 'Next 6 Months'
    months_per_period: int = 6
    start_month: int = 1  # 0-11, February
    start_year: int = field(default_factory=lambda: date.today().year)
    period1_salary: int = 190000
    period2_salary: int = 180000
    long_term_savings_target: int = 120000
    short_term_savings_target: int = 30000
    fixed_expenses: int = 40000
    goal_target: int = 300000
    goal_name: str = 'Annual Goal (Phone, Travel, Moving)'
    currency_symbol: str = '¥'
    currency_code: str = 'JPY'


DEFAULT_CONFIGURATION = PeriodConfiguration()


@dataclass(frozen=True)
class GoalProgress:
    total_contributed: int
    remaining: int
    percent_complete: float
    monthly_needed: float
    available_surplus: int


@dataclass(frozen=True)
class SubGoalProgress:
    goal: GoalTarget
    allocated: int
    percent_complete: float


@dataclass(frozen=True)
class PeriodSummary:
    month_count: int
    total_salary: int
    total_additional_income: int
    total_long_term_savings: int
    long_term_target: int
    total_short_term_savings: int
    short_term_target: int
    total_goal_contribution: int
    total_surplus: int

    @property
    def total_income(self) -> int:
        return self.total_salary + self.total_additional_income

    @property
    def long_term_diff(self) -> int:
        return self.total_long_term_savings - self.long_term_target

    @property
    def short_term_diff(self) -> int:
        return self.total_short_term_savings - self.short_term_target
