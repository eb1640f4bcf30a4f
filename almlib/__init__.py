"""Asset and liability valuation engine.

This package generates the cashflows of loans, deposits and bonds against a
calendar model and values them with market curve data.

Key modules:
- conventions: Calendars, day counters and market enums
- schedule: Periods, business-day adjustment and schedule generation
- rates: Interest rates, fixing histories and rate indices
- curves: Yield curves, shocks and roll-forward
- instruments: Cashflow-owning instruments and their builders
- market: Immutable market store and market data requests
- valuation: NPV, par rate, accrual and Z-spread visitors
- simulation: Day-by-day rollover of maturing balances
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Main modules are imported via subpackages
    "conventions",
    "schedule",
    "rates",
    "interpolation",
    "curves",
    "cashflows",
    "instruments",
    "market",
    "valuation",
    "simulation",
    "config",
    "errors",
]
