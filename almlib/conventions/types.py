"""
Basic types and enums used across the scheduling and pricing system.
"""

from enum import Enum

from almlib.errors import InvalidValueError


def _normalize(text: str) -> str:
    return "".join(ch for ch in str(text).upper() if ch.isalnum())


class ParsableEnum(Enum):
    """Enum that can be built from loosely formatted strings.

    ``"ModifiedFollowing"``, ``"modified_following"`` and
    ``"MODIFIED FOLLOWING"`` all resolve to the same member.
    """

    @classmethod
    def from_str(cls, value):
        if isinstance(value, cls):
            return value
        key = _normalize(value)
        for member in cls:
            if _normalize(member.name) == key or _normalize(member.value) == key:
                return member
        raise InvalidValueError(
            f"Invalid {cls.__name__}: {value!r}. "
            f"Available: {[member.name for member in cls]}"
        )


class Frequency(ParsableEnum):
    """Payment frequencies, valued as periods per year."""

    ONCE = 0
    ANNUAL = 1
    SEMIANNUAL = 2
    EVERY_FOURTH_MONTH = 3
    QUARTERLY = 4
    BIMONTHLY = 6
    MONTHLY = 12
    EVERY_FOURTH_WEEK = 13
    BIWEEKLY = 26
    WEEKLY = 52
    DAILY = 365

    def periods_per_year(self) -> int:
        return self.value


class TimeUnit(ParsableEnum):
    """Units of a Period."""

    DAYS = "D"
    WEEKS = "W"
    MONTHS = "M"
    YEARS = "Y"


class BusinessDayAdjustment(ParsableEnum):
    """Business day adjustment rules."""

    UNADJUSTED = "UNADJUSTED"
    FOLLOWING = "FOLLOWING"
    MODIFIED_FOLLOWING = "MODIFIED_FOLLOWING"
    PRECEDING = "PRECEDING"
    MODIFIED_PRECEDING = "MODIFIED_PRECEDING"


class StubType(ParsableEnum):
    """Stub period types for schedule generation."""

    NO_STUB = "NO_STUB"
    SHORT_INITIAL = "SHORT_INITIAL"
    LONG_INITIAL = "LONG_INITIAL"
    SHORT_FINAL = "SHORT_FINAL"
    LONG_FINAL = "LONG_FINAL"


class DateGenerationRule(ParsableEnum):
    """Direction in which schedule dates are generated."""

    FORWARD = "FORWARD"
    BACKWARD = "BACKWARD"
    ZERO = "ZERO"


class Side(ParsableEnum):
    """Cashflow direction from the holder's point of view."""

    PAY = "PAY"
    RECEIVE = "RECEIVE"

    @property
    def sign(self) -> float:
        return -1.0 if self is Side.PAY else 1.0

    def inverse(self) -> "Side":
        return Side.RECEIVE if self is Side.PAY else Side.PAY
