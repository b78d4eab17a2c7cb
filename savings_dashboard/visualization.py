"""Plotly visualisation helpers for the savings dashboard.

Each function accepts derived months (or goal progress records) and returns a
``plotly.graph_objects.Figure`` ready for ``st.plotly_chart``.  Empty input
yields an empty figure titled "No data to display" so pages can render the
chart slot unconditionally.
"""

from __future__ import annotations

from typing import Sequence

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from .models import DerivedMonthRecord, PeriodConfiguration, SubGoalProgress

LONG_TERM_COLOR = '#3B82F6'
SHORT_TERM_COLOR = '#A855F7'
GOAL_COLOR = '#F59E0B'
SURPLUS_COLOR = '#10B981'


def _empty_figure() -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title="No data to display")
    return fig


def months_frame(months: Sequence[DerivedMonthRecord]) -> pd.DataFrame:
    """Tabulate the charted fields of each month, labelled ``'Feb 2026'``."""
    return pd.DataFrame(
        {
            'Month': [f"{m.month_name[:3]} {m.year}" for m in months],
            'Long-term': [m.actual_long_term_savings for m in months],
            'Short-term': [m.actual_short_term_savings for m in months],
            'Goal Fund': [m.goal_contribution for m in months],
            'Surplus': [m.surplus for m in months],
            'Carryover': [m.carryover_to_next for m in months],
        }
    )


def create_savings_breakdown_chart(
    months: Sequence[DerivedMonthRecord],
    configuration: PeriodConfiguration,
    title: str | None = None,
) -> go.Figure:
    """Grouped bars of long-term, short-term and goal savings per month.

    Dashed horizontal lines mark the long- and short-term monthly targets.

    Parameters
    ----------
    months : sequence of DerivedMonthRecord
        Months of one period, in order.
    configuration : PeriodConfiguration
        Supplies the targets and the currency symbol for the axis.
    title : str, optional
        Chart title.

    Returns
    -------
    plotly.graph_objects.Figure
        Grouped bar chart.
    """
    if not months:
        return _empty_figure()
    df = months_frame(months)
    fig = go.Figure()
    fig.add_trace(go.Bar(name='Long-term', x=df['Month'], y=df['Long-term'], marker_color=LONG_TERM_COLOR))
    fig.add_trace(go.Bar(name='Short-term', x=df['Month'], y=df['Short-term'], marker_color=SHORT_TERM_COLOR))
    fig.add_trace(go.Bar(name='Goal Fund', x=df['Month'], y=df['Goal Fund'], marker_color=GOAL_COLOR))
    fig.add_hline(
        y=configuration.long_term_savings_target,
        line_dash='dash',
        line_color=LONG_TERM_COLOR,
        annotation_text='LT Target',
        annotation_position='right',
    )
    fig.add_hline(
        y=configuration.short_term_savings_target,
        line_dash='dash',
        line_color=SHORT_TERM_COLOR,
        annotation_text='ST Target',
        annotation_position='right',
    )
    fig.update_layout(
        title=title or "Monthly Savings Breakdown",
        xaxis_title="Month",
        yaxis_title=f"Amount ({configuration.currency_symbol})",
        barmode='group',
        hovermode='x unified',
    )
    return fig


def create_carryover_chart(
    months: Sequence[DerivedMonthRecord],
    configuration: PeriodConfiguration,
    title: str | None = None,
) -> go.Figure:
    """Surplus bars with the carried-over balance as a line."""
    if not months:
        return _empty_figure()
    df = months_frame(months)
    fig = go.Figure()
    fig.add_trace(go.Bar(name='Surplus/Deficit', x=df['Month'], y=df['Surplus'], marker_color=SURPLUS_COLOR))
    fig.add_trace(
        go.Scatter(name='Carryover', x=df['Month'], y=df['Carryover'], mode='lines+markers', line=dict(color=LONG_TERM_COLOR))
    )
    fig.update_layout(
        title=title or "Surplus and Carryover",
        xaxis_title="Month",
        yaxis_title=f"Amount ({configuration.currency_symbol})",
        hovermode='x unified',
    )
    return fig


def create_goal_breakdown_chart(progress: Sequence[SubGoalProgress], title: str | None = None) -> go.Figure:
    """Horizontal bars of each sub-goal's completion percentage."""
    if not progress:
        return _empty_figure()
    df = pd.DataFrame(
        {
            'Goal': [f"{p.goal.icon} {p.goal.name}" for p in progress],
            'Percent': [p.percent_complete for p in progress],
        }
    )
    fig = px.bar(df, x='Percent', y='Goal', orientation='h', range_x=[0, 100])
    fig.update_traces(marker_color=GOAL_COLOR)
    fig.update_layout(
        title=title or "Goal Breakdown",
        xaxis_title="Complete (%)",
        yaxis_title="",
    )
    return fig
