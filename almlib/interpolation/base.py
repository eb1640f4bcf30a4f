"""
Base classes for curve interpolation methods.
"""
from abc import ABC, abstractmethod
from typing import Sequence

import numpy as np

from almlib.errors import InvalidValueError


class Interpolator(ABC):
    """Base class for one-dimensional interpolation on pillar times."""

    def __init__(self, pillars: Sequence[float], values: Sequence[float]):
        """
        Initialize interpolator.

        Args:
            pillars: Pillar times (in years from the curve reference date)
            values: Values to interpolate (discount factors, zero rates, ...)
        """
        if len(pillars) != len(values):
            raise InvalidValueError("Pillars and values must have same length")
        if len(pillars) < 1:
            raise InvalidValueError("Need at least 1 point for interpolation")

        order = np.argsort(np.asarray(pillars, dtype=float), kind="stable")
        self.pillars = np.asarray(pillars, dtype=float)[order]
        self.values = np.asarray(values, dtype=float)[order]

        if len(np.unique(self.pillars)) != len(self.pillars):
            raise InvalidValueError("Duplicate pillars not allowed")

    @abstractmethod
    def interpolate(self, t: float) -> float:
        """Interpolate value at time t."""

    def __call__(self, t: float) -> float:
        return self.interpolate(t)

    def _extrapolate_flat(self, t: float):
        """Flat value outside the pillar range, ``None`` inside it."""
        if t <= self.pillars[0]:
            return float(self.values[0])
        if t >= self.pillars[-1]:
            return float(self.values[-1])
        return None
