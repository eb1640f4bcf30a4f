"""
Risk views built on the present values of pending cashflows.

``DurationVisitor`` gives the present-value weighted average time to
payment. ``NPVByDateVisitor`` and ``NPVByTenorVisitor`` split the NPV into
payment dates and tenor buckets; summing either recovers the NPV.
"""

import logging
import math
from datetime import date
from typing import Iterable, Sequence, Tuple, Union

import pandas as pd

from almlib.conventions.daycount import ACT_365, DayCounter, get_day_counter
from almlib.errors import ArithmeticInvalidError, InvalidValueError
from almlib.schedule.period import Period

from .npv import NPVVisitor

logger = logging.getLogger(__name__)

TenorBucket = Tuple[Union[Period, str], Union[Period, str]]


class DurationVisitor(NPVVisitor):
    """
    Macaulay duration in years: ``sum(t_i * PV_i) / sum(PV_i)``.

    ``t_i`` is the year fraction from the reference date to the payment
    date on ``day_counter`` (ACT/365 by default).

    Raises:
        ArithmeticInvalidError: if the pending cashflows are worth zero.
    """

    def __init__(self, data, include_settled: bool = False, day_counter: DayCounter = ACT_365):
        super().__init__(data, include_settled=include_settled)
        self.day_counter = get_day_counter(day_counter)

    def visit(self, instrument) -> float:
        present_values = self.present_values(instrument)
        total_pv = math.fsum(pv for _, pv in present_values)
        if total_pv == 0.0:
            raise ArithmeticInvalidError(
                f"Duration of {instrument.instrument_id} is undefined: pending cashflows are worth 0"
            )
        weighted = math.fsum(
            self.day_counter.year_fraction(self.reference_date, cf.payment_date) * pv
            for cf, pv in present_values
        )
        duration = weighted / total_pv
        logger.debug("Duration of %s: %s years", instrument.instrument_id, duration)
        return duration


class NPVByDateVisitor(NPVVisitor):
    """Present value per payment date, as a ``pandas.Series`` sorted by date."""

    def visit(self, instrument) -> pd.Series:
        present_values = self.present_values(instrument)
        if not present_values:
            return pd.Series(dtype=float, name="npv").rename_axis("payment_date")
        series = pd.Series(
            [pv for _, pv in present_values],
            index=pd.Index([cf.payment_date for cf, _ in present_values], name="payment_date"),
            name="npv",
        )
        return series.groupby(level=0).sum().sort_index()


class NPVByTenorVisitor(NPVVisitor):
    """
    Present value per tenor bucket.

    Each bucket ``(start, end)`` holds the flows paying on or after
    ``reference + start`` and before ``reference + end``. Buckets may
    overlap; flows outside every bucket are left out.

    Examples:
        >>> NPVByTenorVisitor(store, [("0D", "1Y"), ("1Y", "5Y")])(loan)
        0D-1Y    5021.3
        1Y-5Y    99876.1
        Name: npv, dtype: float64
    """

    def __init__(
        self,
        data,
        buckets: Sequence[TenorBucket],
        include_settled: bool = False,
    ):
        super().__init__(data, include_settled=include_settled)
        if not buckets:
            raise InvalidValueError("Need at least one tenor bucket")
        self.buckets = [(Period.parse(start), Period.parse(end)) for start, end in buckets]

    def _bounds(self) -> Iterable[Tuple[str, date, date]]:
        for start, end in self.buckets:
            lower, upper = start.add_to(self.reference_date), end.add_to(self.reference_date)
            if upper <= lower:
                raise InvalidValueError(f"Tenor bucket {start}-{end} is empty")
            yield f"{start}-{end}", lower, upper

    def visit(self, instrument) -> pd.Series:
        by_date = NPVByDateVisitor(self.data, include_settled=self.include_settled)(instrument)
        values = {}
        for label, lower, upper in self._bounds():
            in_bucket = [lower <= d < upper for d in by_date.index]
            values[label] = float(by_date[in_bucket].sum()) if len(by_date) else 0.0
        return pd.Series(values, name="npv", dtype=float)


def npv_by_date(instruments: Iterable, data, include_settled: bool = False) -> pd.Series:
    """Portfolio present value per payment date, summed over ``instruments``."""
    visitor = NPVByDateVisitor(data, include_settled=include_settled)
    parts = [visitor(instrument) for instrument in instruments]
    parts = [part for part in parts if not part.empty]
    if not parts:
        return pd.Series(dtype=float, name="npv").rename_axis("payment_date")
    return pd.concat(parts).groupby(level=0).sum().sort_index().rename("npv")
