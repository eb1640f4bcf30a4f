"""Net present value of an instrument's pending cashflows."""

import logging
import math
from typing import List, Tuple, Union

from almlib.cashflows import Cashflow, FloatingRateCoupon
from almlib.errors import MissingMarketDataError
from almlib.market.requests import MarketDataBundle
from almlib.market.store import MarketStore

from .base import Visitor
from .fixing import fixed_coupon
from .indexing import IndexingVisitor

logger = logging.getLogger(__name__)


class NPVVisitor(Visitor):
    """
    Sum of ``side * amount * DF(payment) / DF(reference)`` over pending flows.

    A cashflow is pending when it pays strictly after the reference date;
    with ``include_settled`` flows paying on the reference date count too.
    The visitor reads either a resolved :class:`MarketDataBundle` or a
    :class:`MarketStore`, from which it resolves exactly what the
    instrument requests. Amounts are not converted between currencies.

    Examples:
        >>> NPVVisitor(store)(loan)
        1002.45
    """

    def __init__(self, data: Union[MarketStore, MarketDataBundle], include_settled: bool = False):
        self.data = data
        self.include_settled = include_settled

    @property
    def reference_date(self):
        return self.data.reference_date

    def _is_pending(self, cashflow) -> bool:
        if cashflow.payment_date > self.reference_date:
            return True
        return self.include_settled and cashflow.payment_date == self.reference_date

    def _bundle(self, instrument) -> MarketDataBundle:
        if isinstance(self.data, MarketDataBundle):
            return self.data
        request = IndexingVisitor(
            reference_date=self.reference_date, include_settled=self.include_settled
        )(instrument)
        return self.data.resolve(request)

    def present_values(self, instrument) -> List[Tuple[Cashflow, float]]:
        """Pending cashflows with their signed present values, in cashflow order."""
        bundle = self._bundle(instrument)
        present_values = []
        for cf in instrument.cashflows:
            if not self._is_pending(cf):
                continue
            if cf.discount_curve_id is None:
                raise MissingMarketDataError(
                    f"{cf.cashflow_type.name} of {instrument.instrument_id} on "
                    f"{cf.payment_date} has no discount curve"
                )
            if isinstance(cf, FloatingRateCoupon):
                cf = fixed_coupon(cf, bundle)
            df = bundle.discount_factor(cf.discount_curve_id, cf.payment_date)
            present_values.append((cf, cf.signed_amount * df))
        return present_values

    def visit(self, instrument) -> float:
        # exactly rounded, so the result does not depend on cashflow order
        npv = math.fsum(pv for _, pv in self.present_values(instrument))
        logger.debug("NPV of %s on %s: %s", instrument.instrument_id, self.reference_date, npv)
        return npv
