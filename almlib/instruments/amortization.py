"""
Notional amortization plans.

A plan gives, for every schedule period, the outstanding balance the coupon
accrues on, the principal redeemed at the end of the period and any interest
capitalised into the balance. Redemptions are rounded to the currency
precision and the last one absorbs the rounding residual, so the redemptions
always add up to the disbursed amount.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

from almlib.conventions.types import ParsableEnum
from almlib.errors import InvalidValueError


class Structure(ParsableEnum):
    """How the notional is repaid."""

    BULLET = "BULLET"
    EQUAL_REDEMPTIONS = "EQUAL_REDEMPTIONS"
    ZERO = "ZERO"
    EQUAL_PAYMENTS = "EQUAL_PAYMENTS"
    OTHER = "OTHER"


@dataclass(frozen=True)
class PeriodPlan:
    notional: float
    redemption: float
    capitalized: float = 0.0


def equal_redemptions(notional: float, n: int, precision: int) -> List[float]:
    """``n`` equal redemptions of ``notional``; the last absorbs the residual."""
    if n <= 0:
        raise InvalidValueError(f"Need at least one amortizing period, got {n}")
    amount = round(notional / n, precision)
    redemptions = [amount] * (n - 1)
    redemptions.append(notional - sum(redemptions))
    return redemptions


def equal_payment(notional: float, compound_factors: Sequence[float]) -> float:
    """Constant instalment that repays ``notional`` over the given periods.

    With identical periods this is the annuity formula
    ``N r / (1 - (1 + r) ** -n)``. Otherwise the final balance
    ``N * prod(cf) - P * sum_k prod(cf[k+1:])`` is linear in ``P`` and is
    solved directly.
    """
    n = len(compound_factors)
    if n == 0:
        raise InvalidValueError("Need at least one period to compute an instalment")
    if any(cf <= 0 for cf in compound_factors):
        raise InvalidValueError("Compound factors must be positive")

    first = compound_factors[0]
    if all(abs(cf - first) < 1e-14 for cf in compound_factors):
        r = first - 1.0
        if abs(r) < 1e-15:
            return notional / n
        return notional * r / (1.0 - (1.0 + r) ** (-n))

    growth = 1.0
    annuity = 0.0
    for cf in reversed(compound_factors):
        annuity += growth
        growth *= cf
    return notional * growth / annuity


def amortization_plan(
    notional: float,
    periods: int,
    structure: Structure,
    precision: int,
    compound_factors: Optional[Sequence[float]] = None,
    grace_periods: int = 0,
    capitalize_interest: bool = False,
) -> List[PeriodPlan]:
    """Balance, redemption and capitalisation for each of ``periods`` periods.

    ``compound_factors`` (one per period) are needed for equal payments and
    for capitalising interest during the grace periods.

    Raises:
        InvalidValueError: for an unsupported structure, a grace period that
            leaves no amortizing period, or missing compound factors.
    """
    structure = Structure.from_str(structure)
    if structure == Structure.OTHER:
        raise InvalidValueError("Irregular structures use an explicit redemption table")
    if grace_periods < 0:
        raise InvalidValueError(f"Grace periods must be non-negative, got {grace_periods}")
    if grace_periods >= periods:
        raise InvalidValueError(
            f"{grace_periods} grace periods leave no amortizing period out of {periods}"
        )
    needs_factors = structure == Structure.EQUAL_PAYMENTS or (
        capitalize_interest and grace_periods > 0
    )
    if needs_factors and (compound_factors is None or len(compound_factors) != periods):
        raise InvalidValueError(
            f"{structure.name} with capitalised grace needs one compound factor per period"
        )

    plan: List[PeriodPlan] = []
    balance = notional
    for k in range(grace_periods):
        capitalized = 0.0
        if capitalize_interest:
            capitalized = round(balance * (compound_factors[k] - 1.0), precision)
        plan.append(PeriodPlan(balance, 0.0, capitalized))
        balance += capitalized

    remaining = periods - grace_periods
    if structure in (Structure.BULLET, Structure.ZERO):
        redemptions = [0.0] * (remaining - 1) + [balance]
    elif structure == Structure.EQUAL_REDEMPTIONS:
        redemptions = equal_redemptions(balance, remaining, precision)
    else:
        factors = list(compound_factors[grace_periods:])
        payment = equal_payment(balance, factors)
        redemptions = []
        outstanding = balance
        for cf in factors[:-1]:
            principal = round(payment - outstanding * (cf - 1.0), precision)
            redemptions.append(principal)
            outstanding -= principal
        redemptions.append(balance - sum(redemptions))

    for redemption in redemptions:
        plan.append(PeriodPlan(balance, redemption))
        balance -= redemption
    return plan
