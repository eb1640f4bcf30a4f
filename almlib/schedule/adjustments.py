"""
Date adjustment functions for schedule generation.
"""

from datetime import date, datetime, timedelta
from typing import Union


def is_end_of_month(dt: Union[date, datetime]) -> bool:
    """Check if date is end of month."""
    if isinstance(dt, datetime):
        dt = dt.date()
    return dt == get_month_end(dt.year, dt.month)


def get_month_end(year: int, month: int) -> date:
    """Get the last calendar day of a given month."""
    if month == 12:
        next_month = date(year + 1, 1, 1)
    else:
        next_month = date(year, month + 1, 1)

    return next_month - timedelta(days=1)


def apply_end_of_month_rule(
    dt: Union[date, datetime], months_to_add: int, apply_eom_rule: bool = True
) -> date:
    """Add months to a date, applying end-of-month rule if applicable."""
    if isinstance(dt, datetime):
        dt = dt.date()

    is_eom_start = is_end_of_month(dt) and apply_eom_rule

    total = dt.year * 12 + (dt.month - 1) + months_to_add
    new_year, new_month = divmod(total, 12)
    new_month += 1

    # If original was EOM, make result EOM too
    if is_eom_start:
        return get_month_end(new_year, new_month)

    # Day doesn't exist in target month (e.g., Jan 31 -> Feb 31): use month end
    return min(date(new_year, new_month, 1) + timedelta(days=dt.day - 1),
               get_month_end(new_year, new_month))
