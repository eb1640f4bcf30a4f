"""
Interpolation methods for yield curves.
"""

from .base import Interpolator
from .factory import (
    InterpolationMethod,
    create_interpolator,
)
from .linear import (
    LinearInterpolator,
    LogLinearZeroInterpolator,
    PiecewiseConstantInterpolator,
)

__all__ = [
    'Interpolator',
    'InterpolationMethod',
    'LinearInterpolator',
    'LogLinearZeroInterpolator',
    'PiecewiseConstantInterpolator',
    'create_interpolator',
]
