"""Streamlit components for the savings dashboard.

Rendering only: components read derived months and summaries and hand user
edits back to the page as plain ``{field: amount}`` dictionaries.  Amount
parsing happens here, at the input boundary, so the calculator never sees
malformed values.
"""

from __future__ import annotations

import math
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd
import streamlit as st
from streamlit.errors import StreamlitAPIException

from .calculations import aggregate_goal_progress, project_completion, split_goal
from .formatting import STATUS_COLORS, escape_for_markdown, format_currency, format_signed, progress_status
from .models import DEFAULT_GOALS, DerivedMonthRecord, PeriodConfiguration, PeriodSummary
from .periods import parse_amount
from .visualization import create_goal_breakdown_chart

# (field, label, help) for the month card edit form.
_CARD_FIELDS = (
    ('actual_long_term_savings', 'Long-term Savings', 'Target: {planned_long}'),
    ('actual_short_term_savings', 'Short-term Savings', 'Target: {planned_short}'),
    ('goal_contribution', 'Goal Contribution', 'Extra savings towards your goal'),
    ('additional_income', 'Additional Income', None),
    ('additional_expense', 'Additional Expense', None),
)

# Above this pace per month the goals panel shows a warning tip.
MONTHLY_PACE_WARNING = 25000


def _amount_input(label: str, value: int, key: str, help: Optional[str] = None) -> Optional[int]:
    """Text input that only accepts whole amounts; returns ``None`` when invalid."""
    # Keyed on the stored value so an edit made in another tab resets this widget.
    text = st.text_input(label, value=str(value), key=f"{key}:{value}", help=help)
    try:
        return parse_amount(text)
    except ValueError:
        st.error(f"{label}: please enter digits only.")
        return None


class SavingsDashboardUI:
    """UI components for the two-period savings dashboard."""

    def __init__(self, configuration: PeriodConfiguration, *, configure_page: bool = False):
        self.configuration = configuration
        if configure_page:
            self.setup_page_config()

    def fmt(self, amount: float) -> str:
        return format_currency(amount, self.configuration.currency_symbol)

    def fmt_signed(self, amount: float) -> str:
        return format_signed(amount, self.configuration.currency_symbol)

    def setup_page_config(self) -> None:
        """Configure Streamlit page settings."""
        try:
            st.set_page_config(
                page_title="Savings Dashboard",
                page_icon="💴",
                layout="wide",
                initial_sidebar_state="expanded",
            )
        except StreamlitAPIException:
            # Already configured by another page in this session.
            pass

    def render_header(self) -> None:
        col1, col2 = st.columns([3, 1])
        with col1:
            st.title("💴 Savings Dashboard")
            st.markdown("Track salary, savings and goal contributions month by month")
        with col2:
            st.metric(label="Current Month", value=date.today().strftime("%B %Y"))

    def render_current_month_summary(self, month: DerivedMonthRecord) -> None:
        """Progress of this month against its savings targets."""
        st.subheader(f"📅 {month.month_name} {month.year} - Target Progress")
        col1, col2 = st.columns(2)
        for column, label, actual, planned, diff in (
            (col1, "Long-term Savings", month.actual_long_term_savings, month.planned_long_term_savings, month.long_term_savings_diff),
            (col2, "Short-term Savings", month.actual_short_term_savings, month.planned_short_term_savings, month.short_term_savings_diff),
        ):
            percent = min(100.0, actual / planned * 100.0) if planned > 0 else 100.0
            color = STATUS_COLORS[progress_status(percent)]
            with column:
                st.markdown(f"**{label}** <span style='color:{color}'>{percent:.0f}%</span>", unsafe_allow_html=True)
                st.progress(max(0.0, percent) / 100.0)
                st.caption(escape_for_markdown(f"{self.fmt(actual)} of {self.fmt(planned)} ({self.fmt_signed(diff)} vs target)"))

        col3, col4 = st.columns(2)
        with col3:
            st.metric("Goal Contribution", self.fmt(month.goal_contribution))
        with col4:
            label = "Surplus" if month.surplus >= 0 else "Deficit"
            st.metric(label, self.fmt(abs(month.surplus)))

    def render_period_summary(self, summary: PeriodSummary, period_name: str, salary: int) -> None:
        """Four summary cards for one period."""
        st.subheader(f"{period_name} Summary")
        col1, col2, col3, col4 = st.columns(4)
        with col1:
            st.metric(
                "Total Income",
                self.fmt(summary.total_income),
                help=f"{summary.month_count} months @ {self.fmt(salary)}/mo",
            )
        with col2:
            st.metric(
                "Long-term Savings",
                self.fmt(summary.total_long_term_savings),
                delta=f"{self.fmt_signed(summary.long_term_diff)} vs target",
            )
        with col3:
            st.metric(
                "Short-term Savings",
                self.fmt(summary.total_short_term_savings),
                delta=f"{self.fmt_signed(summary.short_term_diff)} vs target",
            )
        with col4:
            if summary.total_surplus >= 0:
                detail = f"Surplus: {self.fmt(summary.total_surplus)}"
            else:
                detail = f"Deficit: {self.fmt(abs(summary.total_surplus))}"
            st.metric("Goal Fund", self.fmt(summary.total_goal_contribution), help=detail)

    def render_month_card(self, month: DerivedMonthRecord, key_prefix: str) -> Dict[str, int]:
        """Render one month and return the fields the user changed."""
        with st.container(border=True):
            head1, head2 = st.columns([2, 1])
            with head1:
                st.markdown(f"### {month.month_name}")
                st.caption(str(month.year))
            with head2:
                st.metric("Salary", self.fmt(month.salary))

            col1, col2 = st.columns(2)
            with col1:
                st.metric("Long-term", self.fmt(month.actual_long_term_savings), delta=self.fmt_signed(month.long_term_savings_diff))
            with col2:
                st.metric("Short-term", self.fmt(month.actual_short_term_savings), delta=self.fmt_signed(month.short_term_savings_diff))

            status = "Surplus" if month.surplus >= 0 else "Deficit"
            line = f"**{status}:** {self.fmt(abs(month.surplus))}"
            if month.goal_contribution > 0:
                line += f" · Goal: {self.fmt(month.goal_contribution)}"
            st.markdown(escape_for_markdown(line))

            updates: Dict[str, int] = {}
            with st.expander("Edit"):
                st.caption(escape_for_markdown(
                    f"Fixed expenses: {self.fmt(month.fixed_expenses)} · "
                    f"Available: {self.fmt(month.total_available)} "
                    f"(incl. {self.fmt(month.carryover_from_previous)} carried over)"
                ))
                hints = {
                    'planned_long': self.fmt(month.planned_long_term_savings),
                    'planned_short': self.fmt(month.planned_short_term_savings),
                }
                for name, label, help_text in _CARD_FIELDS:
                    value = _amount_input(
                        label,
                        getattr(month, name),
                        key=f"{key_prefix}_{month.id}_{name}",
                        help=help_text.format(**hints) if help_text else None,
                    )
                    if value is not None and value != getattr(month, name):
                        updates[name] = value
            return updates

    def render_goals_panel(
        self,
        period1: Sequence[DerivedMonthRecord],
        period2: Sequence[DerivedMonthRecord],
        today: date,
    ) -> List[Tuple[int, int, int]]:
        """Goal progress, tips and per-month contribution inputs.

        Returns ``(period_number, index, new_contribution)`` for each edit.
        """
        configuration = self.configuration
        all_months = [*period1, *period2]
        progress = aggregate_goal_progress(all_months, configuration.goal_target)

        st.header(f"🎯 Goal: {configuration.goal_name}")
        st.progress(max(0.0, progress.percent_complete) / 100.0)
        st.markdown(escape_for_markdown(
            f"**{self.fmt(progress.total_contributed)}** saved of {self.fmt(configuration.goal_target)} "
            f"({progress.percent_complete:.1f}% complete)"
        ))

        col1, col2, col3, col4 = st.columns(4)
        col1.metric("Remaining", self.fmt(progress.remaining))
        col2.metric("Monthly Needed", self.fmt(progress.monthly_needed))
        col3.metric("Available Surplus", self.fmt(progress.available_surplus))
        col4.metric("Projected Completion", project_completion(all_months, configuration.goal_target, today))

        if progress.remaining > 0 and progress.available_surplus > 0:
            st.info(escape_for_markdown(
                f"You have {self.fmt(progress.available_surplus)} in surplus that could be allocated to your goal!"
            ))
        if progress.remaining > 0 and progress.monthly_needed > MONTHLY_PACE_WARNING:
            st.warning(escape_for_markdown(
                f"To reach your goal within 1 year, you need to save about "
                f"{self.fmt(math.ceil(progress.monthly_needed))} per month."
            ))

        st.subheader("Add Goal Contribution")
        edits: List[Tuple[int, int, int]] = []
        columns = st.columns(4)
        labelled = [(1, i, m) for i, m in enumerate(period1)] + [(2, i, m) for i, m in enumerate(period2)]
        for position, (number, index, month) in enumerate(labelled):
            with columns[position % 4]:
                value = _amount_input(
                    f"{month.month_name[:3]} {month.year}",
                    month.goal_contribution,
                    key=f"goal_{month.id}",
                )
                if month.surplus > 0 and month.goal_contribution == 0:
                    st.caption(escape_for_markdown(f"Surplus: {self.fmt(month.surplus)}"))
                if value is not None and value != month.goal_contribution:
                    edits.append((number, index, value))

        st.subheader("Goal Breakdown")
        st.plotly_chart(create_goal_breakdown_chart(split_goal(progress.total_contributed, DEFAULT_GOALS)), width='stretch')

        st.subheader("Monthly Summary")
        st.dataframe(goal_table(all_months, configuration.currency_symbol), hide_index=True, width='stretch')
        return edits


def goal_table(months: Sequence[DerivedMonthRecord], symbol: str) -> pd.DataFrame:
    """Per-month contribution status rows for the goals panel."""
    rows = []
    for month in months:
        if month.goal_contribution > 0:
            status = 'Added'
        elif month.surplus > 0:
            status = 'Available'
        else:
            status = 'No Surplus'
        rows.append({
            'Month': f"{month.month_name[:3]} {month.year}",
            'Contribution': format_currency(month.goal_contribution, symbol) if month.goal_contribution > 0 else '-',
            'Surplus': format_currency(month.surplus, symbol),
            'Status': status,
        })
    return pd.DataFrame(rows, columns=['Month', 'Contribution', 'Surplus', 'Status'])
