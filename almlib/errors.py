"""Error kinds raised by the valuation engine.

Every fallible operation in the package raises one of these. Each kind also
subclasses the closest builtin so callers that only know about ``ValueError``
or ``KeyError`` keep working.
"""


class AlmError(Exception):
    """Base class for all engine errors."""


class InvalidValueError(AlmError, ValueError):
    """Raised for unparsable enumerated strings and invalid builder input."""


class InvalidScheduleError(AlmError, ValueError):
    """Raised when a date range or frequency cannot produce a schedule."""


class MissingMarketDataError(AlmError, KeyError):
    """Raised when a curve, index or FX pair is absent from the market data."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the message readable
        return str(self.args[0]) if self.args else ""


class FixingUnavailableError(AlmError, LookupError):
    """Raised when no fixing is published and none can be interpolated."""


class ConvergenceError(AlmError, RuntimeError):
    """Raised when a root-finder exhausts its iteration budget."""


class BracketError(ConvergenceError, ValueError):
    """Raised when a solver bracket does not contain a sign change."""


class ArithmeticInvalidError(AlmError, ArithmeticError):
    """Raised for invalid arithmetic such as a non-positive discount factor."""
