"""Z-spread: the constant zero-rate spread that reprices an instrument."""

import logging
from typing import Optional

from almlib.errors import MissingMarketDataError
from almlib.market.store import MarketStore
from almlib.rates.interestrate import RateDefinition

from .base import Visitor
from .npv import NPVVisitor
from .solver import brent

logger = logging.getLogger(__name__)


class ZSpreadVisitor(Visitor):
    """
    Spread ``z`` added to the discount curves' zero rates so that NPV = ``target``.

    The spread applies to zero rates quoted under ``rate_definition``
    (continuously compounded on the curve basis when None) and is searched
    within ``[lower, upper]``.

    Raises:
        BracketError: if the target NPV is not reached inside the interval.
        ConvergenceError: if the solver exhausts ``max_iter``.
    """

    def __init__(
        self,
        store: MarketStore,
        target: float,
        rate_definition: Optional[RateDefinition] = None,
        lower: float = -1.0,
        upper: float = 1.0,
        tol: float = 1e-12,
        max_iter: int = 200,
        include_settled: bool = False,
    ):
        self.store = store
        self.target = float(target)
        self.rate_definition = rate_definition
        self.lower = lower
        self.upper = upper
        self.tol = tol
        self.max_iter = max_iter
        self.include_settled = include_settled

    def _shocked_store(self, curve_ids, spread: float) -> MarketStore:
        store = self.store
        for curve_id in curve_ids:
            if curve_id in self.store.indices:
                # forecasts keep the unshifted curve
                store = store.with_index(self.store.index(curve_id))
            curve = self.store.curve(curve_id)
            store = store.with_curve(curve_id, curve.shifted(spread, self.rate_definition))
        return store

    def visit(self, instrument) -> float:
        curve_ids = sorted({cf.discount_curve_id for cf in instrument.cashflows if cf.discount_curve_id})
        if not curve_ids:
            raise MissingMarketDataError(f"{instrument.instrument_id} has no discount curve")
        scale = abs(instrument.notional) or 1.0

        def objective(spread: float) -> float:
            store = self._shocked_store(curve_ids, spread)
            npv = NPVVisitor(store, include_settled=self.include_settled)(instrument)
            return (npv - self.target) / scale

        result = brent(objective, self.lower, self.upper, tol=self.tol, max_iter=self.max_iter)
        logger.debug(
            "Z-spread of %s to %s: %s (%d iterations)",
            instrument.instrument_id,
            self.target,
            result.root,
            result.iterations,
        )
        return result.root
