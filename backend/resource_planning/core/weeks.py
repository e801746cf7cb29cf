from datetime import date, timedelta
from typing import Tuple

WEEK_LENGTH = timedelta(days=7)


def week_bounds(anchor: date) -> Tuple[date, date]:
    """Monday and Sunday of the week containing ``anchor``.

    Weeks start on Monday, so a Sunday belongs to the week that began six
    days earlier.
    """
    start = anchor - timedelta(days=anchor.weekday())
    end = start + timedelta(days=6)
    return start, end


def week_start(anchor: date) -> date:
    return week_bounds(anchor)[0]


def is_week_start(value: date) -> bool:
    return value.weekday() == 0
