"""Valuation engine.

Visitors computing market requests, NPV, par rates, accrued interest,
Z-spreads, duration and NPV broken down by date or tenor, plus batch
evaluation, cashflow aggregation, currency conversion and the root-finders
they rely on.
"""

from .accrual import AccrualVisitor, accrued_interest
from .aggregation import CashflowAggregationVisitor, aggregate_cashflows
from .base import EvaluationResult, Visitor, evaluate_portfolio, failures, total
from .conversion import CurrencyConverter
from .fixing import FixingVisitor
from .indexing import IndexingVisitor
from .npv import NPVVisitor
from .par_rate import ParRateVisitor
from .risk import DurationVisitor, NPVByDateVisitor, NPVByTenorVisitor, npv_by_date
from .solver import RootResult, bisect, brent, find_bracket
from .zspread import ZSpreadVisitor

__all__ = [
    # Visitors
    "Visitor",
    "IndexingVisitor",
    "FixingVisitor",
    "NPVVisitor",
    "ParRateVisitor",
    "AccrualVisitor",
    "ZSpreadVisitor",
    "CashflowAggregationVisitor",
    "DurationVisitor",
    "NPVByDateVisitor",
    "NPVByTenorVisitor",
    # Batch evaluation
    "EvaluationResult",
    "evaluate_portfolio",
    "total",
    "failures",
    # Helpers
    "accrued_interest",
    "aggregate_cashflows",
    "npv_by_date",
    "CurrencyConverter",
    # Solvers
    "RootResult",
    "bisect",
    "brent",
    "find_bracket",
]
