"""
Template Filters

Functions that post-process a substituted token's text. Each filter
is registered by name and referenced in templates with a pipe:

    {{effectiveDate | longDate}}   -> October 5, 2025
    {{amount | money}}             -> $250,000.00
    {{ownershipPct | pct}}         -> 62.5%

Filters never raise; input that cannot be parsed is returned unchanged.
"""

import logging
import math
from datetime import date, datetime
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

# Filters receive the raw looked-up value and its rendered text
FilterFunc = Callable[[Any, str], str]


def _parse_number(text: str) -> Optional[float]:
    cleaned = text.replace('$', '').replace(',', '').replace('%', '').strip()
    if not cleaned or '_' in cleaned:
        return None
    try:
        number = float(cleaned)
    except ValueError:
        return None
    # nan and inf are not amounts
    return number if math.isfinite(number) else None


def filter_long_date(value: Any, text: str) -> str:
    """
    Format an ISO calendar date in long US style.

    Examples:
        "2025-10-02" -> "October 2, 2025"
        "garbage"    -> "garbage"
    """
    if isinstance(value, datetime):
        parsed = value.date()
    elif isinstance(value, date):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = date.fromisoformat(value.strip())
        except ValueError:
            logger.debug(f"longDate: could not parse {value!r}")
            return text
    else:
        return text
    return f"{parsed:%B} {parsed.day}, {parsed.year}"


def filter_money(value: Any, text: str) -> str:
    """
    Format a number as US currency.

    Examples:
        250000   -> "$250,000.00"
        "1234.5" -> "$1,234.50"
        -20      -> "-$20.00"
    """
    num = _parse_number(text)
    if num is None:
        logger.debug(f"money: could not parse {text!r}")
        return text
    sign = '-' if num < 0 else ''
    return f"{sign}${abs(num):,.2f}"


def filter_pct(value: Any, text: str) -> str:
    """
    Format percent points as a percentage with at most two decimals.

    The number is already in hundredths of a whole, so 6.5 renders as 6.5%.

    Examples:
        6       -> "6%"
        "6.5"   -> "6.5%"
        33.333  -> "33.33%"
    """
    num = _parse_number(text)
    if num is None:
        logger.debug(f"pct: could not parse {text!r}")
        return text
    rendered = f"{num:,.2f}".rstrip('0').rstrip('.')
    if rendered in ('-0', ''):
        rendered = '0'
    return f"{rendered}%"


# Registry of available filters
FILTERS: Dict[str, FilterFunc] = {
    'longDate': filter_long_date,
    'money': filter_money,
    'pct': filter_pct,
}


def get_filter(name: str) -> Optional[FilterFunc]:
    """Get a filter function by name."""
    return FILTERS.get(name)


def apply_filter(value: Any, text: str, filter_name: Optional[str]) -> str:
    """
    Apply a named filter to a substituted value.

    If filter_name is None or not registered, returns `text` unchanged.
    """
    if not filter_name:
        return text

    filter_func = get_filter(filter_name)
    if filter_func:
        return filter_func(value, text)

    logger.warning(f"Unknown filter: {filter_name}")
    return text


def register_filter(name: str, func: FilterFunc) -> None:
    """
    Register a custom filter function.

    Use this to add filters without modifying this file:
        from services.resolutions.filters import register_filter
        register_filter('upper', lambda value, text: text.upper())
    """
    FILTERS[name] = func
    logger.debug(f"Registered filter: {name}")
