"""Instruments, amortization structures and their builders."""

from .amortization import (
    PeriodPlan,
    Structure,
    amortization_plan,
    equal_payment,
    equal_redemptions,
)
from .builders import (
    MakeFixedRateInstrument,
    MakeFloatingRateInstrument,
    MakeSimpleCashflowInstrument,
)
from .instrument import (
    FixedRateInstrument,
    FloatingRateInstrument,
    Instrument,
    SimpleCashflowInstrument,
)

__all__ = [
    "Structure",
    "PeriodPlan",
    "amortization_plan",
    "equal_payment",
    "equal_redemptions",
    "Instrument",
    "FixedRateInstrument",
    "FloatingRateInstrument",
    "SimpleCashflowInstrument",
    "MakeFixedRateInstrument",
    "MakeFloatingRateInstrument",
    "MakeSimpleCashflowInstrument",
]
