"""Par rate of fixed rate instruments and par spread of floating ones.

The par rate is the coupon rate at which the instrument's NPV is zero with
every other term held fixed. When coupon amounts are linear in the rate,
the NPV is ``A + r * B`` and the rate follows directly:

    par_rate = -A / B

where ``A`` is the NPV at a zero rate and ``B`` the NPV of a unit-rate
annuity. Other structures are solved numerically.
"""

import logging
import math
from typing import Tuple

from almlib.errors import InvalidValueError
from almlib.instruments.amortization import Structure
from almlib.market.store import MarketStore
from almlib.rates.interestrate import Compounding

from .base import Visitor
from .npv import NPVVisitor
from .solver import brent, find_bracket

logger = logging.getLogger(__name__)

_CLOSED_FORM_STRUCTURES = (Structure.BULLET, Structure.ZERO)


class ParRateVisitor(Visitor):
    """
    Rate (fixed instruments) or spread (floating instruments) giving zero NPV.

    The NPV includes the flows paid on the reference date, so a loan
    disbursed on the reference date prices at par.

    Args:
        store: Market store used for discounting and forecasting
        tol: Absolute tolerance on the repriced NPV
        max_iter: Iteration cap of the numeric solver
        bracket: Initial search interval for the rate
        max_polish: Cap on the float-grid steps taken after the solver
    """

    def __init__(
        self,
        store: MarketStore,
        tol: float = 1e-10,
        max_iter: int = 100,
        bracket: Tuple[float, float] = (-0.05, 0.5),
        include_settled: bool = True,
        max_polish: int = 32,
    ):
        self.store = store
        self.tol = tol
        self.max_iter = max_iter
        self.bracket = bracket
        self.max_polish = max_polish
        self.npv = NPVVisitor(store, include_settled=include_settled)

    def _polish(self, objective, x: float) -> float:
        """Refine ``x`` with one Newton step, then walk the float grid.

        Stops as soon as ``|NPV| <= tol`` or a step no longer reduces it.
        """
        f = objective(x)
        if abs(f) <= self.tol:
            return x
        h = 1e-9 * max(1.0, abs(x))
        slope = (objective(x + h) - f) / h
        if slope == 0.0:
            return x
        candidate = x - f / slope
        f_candidate = objective(candidate)
        if abs(f_candidate) < abs(f):
            x, f = candidate, f_candidate

        for _ in range(self.max_polish):
            if abs(f) <= self.tol:
                break
            toward = -math.inf if (f > 0) == (slope > 0) else math.inf
            candidate = math.nextafter(x, toward)
            f_candidate = objective(candidate)
            if abs(f_candidate) >= abs(f):
                break
            x, f = candidate, f_candidate
        if abs(f) > self.tol:
            logger.debug("Par rate %s leaves NPV %s above tolerance %s", x, f, self.tol)
        return x

    def _solve(self, instrument, reprice, linear: bool) -> float:
        scale = abs(instrument.notional) or 1.0

        def objective(x: float) -> float:
            return self.npv(reprice(x))

        if linear:
            constant = objective(0.0)
            slope = objective(1.0) - constant
            if slope == 0.0:
                raise InvalidValueError(
                    f"NPV of {instrument.instrument_id} does not depend on its rate"
                )
            return self._polish(objective, -constant / slope)

        # bracket on NPV per unit notional, then polish on the absolute NPV
        def scaled(x: float) -> float:
            return objective(x) / scale

        lower, upper = find_bracket(scaled, *self.bracket)
        result = brent(scaled, lower, upper, tol=1e-12, max_iter=self.max_iter)
        logger.debug(
            "Par rate of %s: %s after %d iterations",
            instrument.instrument_id,
            result.root,
            result.iterations,
        )
        return self._polish(objective, result.root)

    def visit_fixed(self, instrument) -> float:
        linear = (
            instrument.structure in _CLOSED_FORM_STRUCTURES
            and instrument.rate.compounding == Compounding.SIMPLE
        )
        return self._solve(instrument, instrument.with_rate, linear)

    def visit_floating(self, instrument) -> float:
        linear = instrument.rate_definition.compounding == Compounding.SIMPLE
        return self._solve(instrument, instrument.with_spread, linear)

    def visit_simple(self, instrument):
        raise InvalidValueError(
            f"{instrument.instrument_id} pays fixed amounts; it has no rate to solve for"
        )
