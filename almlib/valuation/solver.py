"""Root-finding utilities for par rates, spreads and Z-spreads.

Every solver takes an explicit tolerance on the objective and an iteration
cap; running out of iterations raises :class:`ConvergenceError` instead of
looping forever.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Tuple

from almlib.errors import BracketError, ConvergenceError

logger = logging.getLogger(__name__)

Func = Callable[[float], float]


@dataclass
class RootResult:
    root: float
    iterations: int
    converged: bool
    method: str
    value: float = 0.0


def _check_bracket(lower: float, upper: float, f_lower: float, f_upper: float) -> None:
    if f_lower * f_upper > 0:
        raise BracketError(
            f"Bracket does not contain a solution. "
            f"Objective values have same sign: "
            f"f({lower:.6g})={f_lower:.6e}, f({upper:.6g})={f_upper:.6e}."
        )


def bisect(
    func: Func, lower: float, upper: float, tol: float = 1e-10, max_iter: int = 200
) -> RootResult:
    """Bisection on ``[lower, upper]``; converged when ``|f| <= tol``."""
    f_lower = func(lower)
    f_upper = func(upper)
    if abs(f_lower) <= tol:
        return RootResult(lower, 0, True, "bisect", f_lower)
    if abs(f_upper) <= tol:
        return RootResult(upper, 0, True, "bisect", f_upper)
    _check_bracket(lower, upper, f_lower, f_upper)

    for iteration in range(1, max_iter + 1):
        mid = 0.5 * (lower + upper)
        f_mid = func(mid)
        logger.debug("Bisect iter %s: x=%s f=%s", iteration, mid, f_mid)
        if abs(f_mid) <= tol:
            return RootResult(mid, iteration, True, "bisect", f_mid)
        if f_lower * f_mid < 0:
            upper, f_upper = mid, f_mid
        else:
            lower, f_lower = mid, f_mid

    raise ConvergenceError(
        f"Bisection failed to converge within {max_iter} iterations. "
        f"Final bracket: [{lower:.12g}, {upper:.12g}], "
        f"objective values: ({f_lower:.6e}, {f_upper:.6e})."
    )


def brent(
    func: Func, lower: float, upper: float, tol: float = 1e-10, max_iter: int = 100
) -> RootResult:
    """Brent's method: inverse quadratic interpolation safeguarded by bisection."""
    a, b = lower, upper
    f_a, f_b = func(a), func(b)
    if abs(f_a) <= tol:
        return RootResult(a, 0, True, "brent", f_a)
    if abs(f_b) <= tol:
        return RootResult(b, 0, True, "brent", f_b)
    _check_bracket(lower, upper, f_a, f_b)

    if abs(f_a) < abs(f_b):
        a, b, f_a, f_b = b, a, f_b, f_a
    c, f_c = a, f_a
    d = e = b - a

    for iteration in range(1, max_iter + 1):
        if f_a != f_c and f_b != f_c:
            s = (
                a * f_b * f_c / ((f_a - f_b) * (f_a - f_c))
                + b * f_a * f_c / ((f_b - f_a) * (f_b - f_c))
                + c * f_a * f_b / ((f_c - f_a) * (f_c - f_b))
            )
        else:
            s = b - f_b * (b - a) / (f_b - f_a)

        midpoint = 0.5 * (a + b)
        use_bisection = (
            not min(midpoint, b) <= s <= max(midpoint, b)
            or abs(s - b) >= 0.5 * abs(e)
            or abs(e) < 1e-15
        )
        if use_bisection:
            s = midpoint
            e = d = b - a
        else:
            e, d = d, s - b

        f_s = func(s)
        logger.debug("Brent iter %s: x=%s f=%s", iteration, s, f_s)
        if abs(f_s) <= tol:
            return RootResult(s, iteration, True, "brent", f_s)

        c, f_c = b, f_b
        if f_a * f_s < 0:
            b, f_b = s, f_s
        else:
            a, f_a = s, f_s
        if abs(f_a) < abs(f_b):
            a, b, f_a, f_b = b, a, f_b, f_a
        if abs(b - a) < 1e-15:
            return RootResult(b, iteration, abs(f_b) <= tol, "brent", f_b)

    raise ConvergenceError(
        f"Brent solver failed to converge within {max_iter} iterations. "
        f"Last point {b:.12g} with objective {f_b:.6e}."
    )


def find_bracket(
    func: Func,
    lower: float,
    upper: float,
    expansion: float = 1.6,
    max_iter: int = 20,
) -> Tuple[float, float]:
    """Widen ``[lower, upper]`` around its centre until ``func`` changes sign."""
    a, b = lower, upper
    f_a, f_b = func(a), func(b)
    for _ in range(max_iter):
        if f_a * f_b <= 0:
            return a, b
        centre, half = 0.5 * (a + b), 0.5 * (b - a) * expansion
        a, b = centre - half, centre + half
        f_a, f_b = func(a), func(b)
    raise BracketError(f"Failed to bracket the root, last bracket [{a:.6g}, {b:.6g}]")
