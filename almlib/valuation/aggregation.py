"""Cashflows aggregated by payment date."""

from datetime import date
from typing import Iterable, Optional

import pandas as pd

from almlib.cashflows import CashflowType

from .base import Visitor

COLUMNS = ["disbursement", "redemption", "interest", "other", "net"]

_COLUMN_BY_TYPE = {
    CashflowType.DISBURSEMENT: "disbursement",
    CashflowType.REDEMPTION: "redemption",
    CashflowType.FIXED_RATE_COUPON: "interest",
    CashflowType.FLOATING_RATE_COUPON: "interest",
    CashflowType.SIMPLE: "other",
}


class CashflowAggregationVisitor(Visitor):
    """
    Signed cashflow amounts per payment date and kind.

    Returns a DataFrame indexed by payment date with one column per kind
    (disbursement, redemption, interest, other) and their sum in ``net``.
    Amounts are signed by side. Unfixed floating coupons show as NaN.
    """

    def __init__(self, start: Optional[date] = None, end: Optional[date] = None):
        self.start = start
        self.end = end

    def _in_window(self, dt: date) -> bool:
        if self.start is not None and dt < self.start:
            return False
        return self.end is None or dt <= self.end

    def visit(self, instrument) -> pd.DataFrame:
        rows = []
        for cf in instrument.cashflows:
            if not self._in_window(cf.payment_date):
                continue
            try:
                amount = cf.signed_amount
            except LookupError:
                amount = float("nan")
            row = dict.fromkeys(COLUMNS[:-1], 0.0)
            row["payment_date"] = cf.payment_date
            row[_COLUMN_BY_TYPE[cf.cashflow_type]] = amount
            rows.append(row)

        if not rows:
            return pd.DataFrame(columns=COLUMNS, dtype=float).rename_axis("payment_date")
        frame = pd.DataFrame(rows).set_index("payment_date")[COLUMNS[:-1]]
        # NaN from unfixed coupons must survive the sum
        frame = frame.groupby(level=0).agg(lambda s: s.sum(skipna=False))
        frame["net"] = frame.sum(axis=1, skipna=False)
        return frame.sort_index()


def aggregate_cashflows(
    instruments: Iterable, start: Optional[date] = None, end: Optional[date] = None
) -> pd.DataFrame:
    """Portfolio cashflows per payment date, summed over ``instruments``."""
    visitor = CashflowAggregationVisitor(start, end)
    frames = [visitor(instrument) for instrument in instruments]
    frames = [frame for frame in frames if not frame.empty]
    if not frames:
        return pd.DataFrame(columns=COLUMNS, dtype=float).rename_axis("payment_date")
    combined = pd.concat(frames).groupby(level=0).agg(lambda s: s.sum(skipna=False))
    return combined.sort_index()
