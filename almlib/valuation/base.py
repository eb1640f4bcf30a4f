"""Visitor protocol and batch evaluation.

A visitor is a pure function of an instrument and the market data it was
created with. Instruments dispatch to it through ``accept``; a batch run
evaluates every instrument on its own so one failure never hides the
results of the others.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional, Union

from almlib.errors import AlmError

logger = logging.getLogger(__name__)


class Visitor:
    """Base visitor; variant hooks fall back to :meth:`visit`."""

    def evaluate(self, instrument):
        return instrument.accept(self)

    __call__ = evaluate

    def visit(self, instrument):
        raise NotImplementedError(
            f"{self.__class__.__name__} does not support {instrument.__class__.__name__}"
        )

    def visit_fixed(self, instrument):
        return self.visit(instrument)

    def visit_floating(self, instrument):
        return self.visit(instrument)

    def visit_simple(self, instrument):
        return self.visit(instrument)


@dataclass(frozen=True)
class EvaluationResult:
    """Outcome of one instrument in a batch: a value or the error raised."""

    instrument_id: str
    value: Any = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self):
        """The value, or re-raise the error."""
        if self.error is not None:
            raise self.error
        return self.value


def _evaluate_one(evaluator: Callable, instrument) -> EvaluationResult:
    try:
        return EvaluationResult(instrument.instrument_id, value=evaluator(instrument))
    except (AlmError, ArithmeticError, LookupError, ValueError) as exc:
        logger.warning("Evaluation of %s failed: %s", instrument.instrument_id, exc)
        return EvaluationResult(instrument.instrument_id, error=exc)


def evaluate_portfolio(
    instruments: Iterable,
    visitor: Union[Visitor, Callable],
    max_workers: Optional[int] = None,
) -> List[EvaluationResult]:
    """
    Evaluate ``visitor`` on every instrument independently.

    Args:
        instruments: Instruments to evaluate
        visitor: A visitor, or any callable taking an instrument
        max_workers: Evaluate in a thread pool of this size; sequential when None

    Returns:
        One :class:`EvaluationResult` per instrument, in input order. Errors
        raised by one instrument are captured in its result.

    Examples:
        >>> results = evaluate_portfolio(loans, NPVVisitor(store))
        >>> total(results)
    """
    instruments = list(instruments)
    if max_workers is None or max_workers <= 1:
        return [_evaluate_one(visitor, instrument) for instrument in instruments]
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        # map keeps input order
        return list(executor.map(lambda inst: _evaluate_one(visitor, inst), instruments))


def total(results: Iterable[EvaluationResult]) -> float:
    """Sum of successful values, added in input order."""
    amount = 0.0
    for result in results:
        if result.ok:
            amount += result.value
    return amount


def failures(results: Iterable[EvaluationResult]) -> List[EvaluationResult]:
    return [result for result in results if not result.ok]
