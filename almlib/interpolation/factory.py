"""
Interpolator factory.
"""
from typing import Sequence, Union

from almlib.conventions.types import ParsableEnum

from .base import Interpolator
from .linear import (
    LinearInterpolator,
    LogLinearZeroInterpolator,
    PiecewiseConstantInterpolator,
)


class InterpolationMethod(ParsableEnum):
    LINEAR = "LINEAR"
    LINEAR_DF = "LINEAR_DF"
    LOGLINEAR_ZERO = "LOGLINEAR_ZERO"
    PIECEWISE_CONSTANT = "PIECEWISE_CONSTANT"


def create_interpolator(
    method: Union[InterpolationMethod, str],
    pillars: Sequence[float],
    values: Sequence[float],
) -> Interpolator:
    """
    Create an interpolator based on method name.

    ``LOGLINEAR_ZERO`` expects continuously compounded zero rates as values;
    the other methods interpolate the values they are given.
    """
    method = InterpolationMethod.from_str(method)

    if method in (InterpolationMethod.LINEAR, InterpolationMethod.LINEAR_DF):
        return LinearInterpolator(pillars, values)
    if method == InterpolationMethod.LOGLINEAR_ZERO:
        return LogLinearZeroInterpolator(pillars, values)
    return PiecewiseConstantInterpolator(pillars, values)

