"""Formatting utilities for currency and text display."""

from __future__ import annotations

from typing import Union

Number = Union[int, float]


def format_currency(amount: Number, symbol: str = '¥') -> str:
    """Format an amount as whole currency units.

    Args:
        amount: The amount to format
        symbol: Currency symbol placed before the number

    Returns:
        Formatted currency string with the sign in front of the symbol

    Example:
        >>> format_currency(190000)
        '¥190,000'
        >>> format_currency(-2500.4, '$')
        '-$2,500'
    """
    rounded = int(round(amount))
    sign = '-' if rounded < 0 else ''
    return f"{sign}{symbol}{abs(rounded):,}"


def format_signed(amount: Number, symbol: str = '¥') -> str:
    """Format a variance with an explicit ``+`` for non-negative values.

    Example:
        >>> format_signed(10000)
        '+¥10,000'
    """
    prefix = '+' if amount >= 0 else ''
    return f"{prefix}{format_currency(amount, symbol)}"


def escape_for_markdown(text: str) -> str:
    """Escape dollar signs so Streamlit markdown does not treat them as LaTeX.

    Example:
        >>> escape_for_markdown('$1,234')
        '\\$1,234'
    """
    return text.replace("$", "\\$")


def progress_status(percent: float) -> str:
    """Bucket a target percentage into the colour bands used by the cards."""
    if percent >= 100:
        return 'complete'
    if percent >= 75:
        return 'on-track'
    if percent >= 50:
        return 'behind'
    return 'at-risk'


STATUS_COLORS = {
    'complete': '#059669',
    'on-track': '#2563EB',
    'behind': '#D97706',
    'at-risk': '#DC2626',
}
