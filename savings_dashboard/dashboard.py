"""Main Streamlit page for the savings dashboard.

Raw months for both periods live in ``st.session_state``; derived months are
recomputed from them on every rerun.  Saving goes through
:class:`~savings_dashboard.storage.ExpenseDataStore`, whose warnings are
shown in a banner instead of interrupting the page.

Run with ``streamlit run savings_dashboard/Home.py`` or ``python run_dashboard.py``.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Dict, List, Optional, Sequence

import streamlit as st

from .config import LOG_LEVEL, USER_ID
from .export import export_csv, export_filename
from .logging_config import configure_logging
from .models import DerivedMonthRecord, MonthRecord, PeriodConfiguration
from .periods import (
    apply_month_edit,
    build_period_months,
    derive_periods,
    find_current_month,
    period_label,
    requires_regeneration,
    summarize_period,
)
from .storage import ExpenseDataStore, SettingsStore
from .ui import SavingsDashboardUI
from .visualization import create_carryover_chart, create_savings_breakdown_chart

logger = logging.getLogger(__name__)

PERIOD_KEYS = {1: 'period1_months', 2: 'period2_months'}


def _rerun() -> None:
    rerun = getattr(st, 'rerun', None)
    if callable(rerun):
        rerun()
        return
    experimental = getattr(st, 'experimental_rerun', None)
    if callable(experimental):
        experimental()


def get_store() -> ExpenseDataStore:
    state = st.session_state
    if 'expense_store' not in state:
        state['expense_store'] = ExpenseDataStore(user_id=USER_ID)
    return state['expense_store']


def get_settings_store() -> SettingsStore:
    state = st.session_state
    if 'settings_store' not in state:
        state['settings_store'] = SettingsStore(user_id=USER_ID)
    return state['settings_store']


def load_configuration(settings_store: Optional[SettingsStore] = None) -> PeriodConfiguration:
    """Settings for this session, loaded once per session."""
    state = st.session_state
    if 'configuration' not in state:
        state['configuration'] = (settings_store or get_settings_store()).load()
    return state['configuration']


def ensure_month_state(store: ExpenseDataStore, configuration: PeriodConfiguration) -> None:
    """Load both periods into session state on the first run of a session."""
    state = st.session_state
    if PERIOD_KEYS[1] in state and PERIOD_KEYS[2] in state:
        return
    result = store.load(configuration)
    state[PERIOD_KEYS[1]] = result.period1
    state[PERIOD_KEYS[2]] = result.period2
    state['last_saved'] = result.last_saved
    state['store_warning'] = result.warning
    state['has_unsaved_changes'] = False


def update_month(period_number: int, index: int, updates: Dict[str, int]) -> None:
    """Apply edits to one month of a period and flag the session as dirty."""
    state = st.session_state
    key = PERIOD_KEYS[period_number]
    state[key] = apply_month_edit(state[key], index, **updates)
    state['has_unsaved_changes'] = True


def save_months(store: ExpenseDataStore) -> None:
    state = st.session_state
    result = store.save(state[PERIOD_KEYS[1]], state[PERIOD_KEYS[2]])
    state['store_warning'] = result.warning
    if result.saved_at is not None:
        state['last_saved'] = result.saved_at
        state['has_unsaved_changes'] = False


def refresh_months(store: ExpenseDataStore) -> None:
    """Replace the in-memory months with the database copy, if there is one."""
    state = st.session_state
    result = store.refresh()
    if result is None:
        return
    if result.warning:
        state['store_warning'] = result.warning
        return
    state[PERIOD_KEYS[1]] = result.period1
    state[PERIOD_KEYS[2]] = result.period2
    state['last_saved'] = result.last_saved
    state['store_warning'] = None
    state['has_unsaved_changes'] = False


def reset_months(configuration: PeriodConfiguration) -> None:
    """Regenerate both periods from the settings, discarding entered amounts."""
    state = st.session_state
    period1, period2 = build_period_months(configuration)
    state[PERIOD_KEYS[1]] = period1
    state[PERIOD_KEYS[2]] = period2
    state['has_unsaved_changes'] = True


def apply_settings(configuration: PeriodConfiguration, settings_store: Optional[SettingsStore] = None) -> Optional[str]:
    """Persist new settings, regenerating the months when they are invalidated.

    Returns the store's warning, if any.
    """
    state = st.session_state
    previous = state.get('configuration')
    warning = (settings_store or get_settings_store()).save(configuration)
    state['configuration'] = configuration
    if previous is None or requires_regeneration(previous, configuration):
        logger.info("Settings changed materially; regenerating months")
        reset_months(configuration)
    return warning


def render_sidebar(
    store: ExpenseDataStore,
    configuration: PeriodConfiguration,
    derived1: Sequence[DerivedMonthRecord],
    derived2: Sequence[DerivedMonthRecord],
) -> None:
    state = st.session_state
    with st.sidebar:
        st.header("💾 Data")
        if st.button("Save", type="primary", width='stretch'):
            save_months(store)
            _rerun()
        if store.use_database and st.button("Reload from database", width='stretch'):
            refresh_months(store)
            _rerun()

        last_saved = state.get('last_saved')
        if last_saved is not None:
            st.caption(f"Last saved: {last_saved.astimezone().strftime('%Y-%m-%d %H:%M')}")
        if state.get('has_unsaved_changes'):
            st.caption("● Unsaved changes")
        st.caption("Storage: database + local cache" if store.use_database else "Storage: local cache only")

        st.download_button(
            "⬇️ Export CSV",
            data=export_csv(derived1, derived2, configuration),
            file_name=export_filename(date.today().year),
            mime='text/csv',
            width='stretch',
        )


def render_period_tab(
    ui: SavingsDashboardUI,
    number: int,
    derived: Sequence[DerivedMonthRecord],
    current: Optional[DerivedMonthRecord],
    current_period: int,
    opening_carryover: int = 0,
) -> List[tuple]:
    """Render one period; returns ``(period, index, updates)`` edits."""
    configuration = ui.configuration
    name = configuration.period1_name if number == 1 else configuration.period2_name
    salary = configuration.period1_salary if number == 1 else configuration.period2_salary

    if current is not None and current_period == number:
        ui.render_current_month_summary(current)

    if number == 2:
        if opening_carryover > 0 and derived:
            st.info(
                f"Carryover from {configuration.period1_name}: "
                f"{ui.fmt(opening_carryover)} has been added to {derived[0].month_name}."
            )
        if configuration.period2_salary != configuration.period1_salary:
            st.warning(
                f"Monthly salary changes to {ui.fmt(configuration.period2_salary)} "
                f"(from {ui.fmt(configuration.period1_salary)}) starting this period."
            )

    ui.render_period_summary(summarize_period(derived, configuration), name, salary)
    st.plotly_chart(create_savings_breakdown_chart(derived, configuration), width='stretch')
    st.plotly_chart(create_carryover_chart(derived, configuration), width='stretch')

    st.subheader("Monthly Breakdown")
    edits: List[tuple] = []
    columns = st.columns(3)
    for index, month in enumerate(derived):
        with columns[index % 3]:
            updates = ui.render_month_card(month, key_prefix=f"p{number}")
        if updates:
            edits.append((number, index, updates))
    return edits


def main() -> None:
    configure_logging(LOG_LEVEL)
    configuration = load_configuration()
    ui = SavingsDashboardUI(configuration, configure_page=True)
    store = get_store()
    ensure_month_state(store, configuration)
    state = st.session_state

    period1: List[MonthRecord] = state[PERIOD_KEYS[1]]
    period2: List[MonthRecord] = state[PERIOD_KEYS[2]]
    derived1, derived2 = derive_periods(period1, period2)

    ui.render_header()
    render_sidebar(store, configuration, derived1, derived2)
    if state.get('store_warning'):
        st.warning(state['store_warning'])

    today = date.today()
    current, current_period = find_current_month(derived1, derived2, today)
    opening = derived1[-1].carryover_to_next if derived1 else 0

    tab1, tab2, tab3 = st.tabs([
        f"{configuration.period1_name} ({period_label(derived1)})",
        f"{configuration.period2_name} ({period_label(derived2)})",
        "🎯 Goals",
    ])
    edits: List[tuple] = []
    with tab1:
        edits += render_period_tab(ui, 1, derived1, current, current_period)
    with tab2:
        edits += render_period_tab(ui, 2, derived2, current, current_period, opening)
    with tab3:
        for number, index, value in ui.render_goals_panel(derived1, derived2, today):
            edits.append((number, index, {'goal_contribution': value}))

    if edits:
        for number, index, updates in edits:
            update_month(number, index, updates)
        _rerun()
