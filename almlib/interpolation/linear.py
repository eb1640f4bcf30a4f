"""
Linear-family interpolation methods for yield curves.
"""
import math
from typing import Sequence

import numpy as np

from .base import Interpolator


class LinearInterpolator(Interpolator):
    """Linear interpolation with flat extrapolation.

    Used on discount factors (``LINEAR_DF``) and on zero rates (``LINEAR``).
    """

    def interpolate(self, t: float) -> float:
        flat = self._extrapolate_flat(t)
        if flat is not None:
            return flat

        i = np.searchsorted(self.pillars, t) - 1
        t1, t2 = self.pillars[i], self.pillars[i + 1]
        v1, v2 = self.values[i], self.values[i + 1]

        weight = (t - t1) / (t2 - t1)
        return float(v1 + weight * (v2 - v1))


class LogLinearZeroInterpolator(Interpolator):
    """Log-linear interpolation of discount factors built from zero rates.

    Equivalent to linear interpolation of ``r(t) * t``; forwards are
    piecewise flat between pillars. Beyond the pillars the nearest zero rate
    is held flat.
    """

    def __init__(self, pillars: Sequence[float], zero_rates: Sequence[float]):
        """
        Initialize with zero rates.

        Args:
            pillars: Pillar times (in years)
            zero_rates: Continuously compounded zero rates
        """
        super().__init__(pillars, zero_rates)
        self.log_dfs = -self.values * self.pillars

    def interpolate(self, t: float) -> float:
        """Interpolate zero rate at time t."""
        if t <= 0:
            return float(self.values[0])
        return -self._interpolate_log_df(t) / t

    def interpolate_discount_factor(self, t: float) -> float:
        return math.exp(self._interpolate_log_df(t))

    def _interpolate_log_df(self, t: float) -> float:
        if t <= self.pillars[0]:
            return float(-self.values[0] * t)
        if t >= self.pillars[-1]:
            return float(-self.values[-1] * t)

        i = np.searchsorted(self.pillars, t) - 1
        t1, t2 = self.pillars[i], self.pillars[i + 1]
        log_df1, log_df2 = self.log_dfs[i], self.log_dfs[i + 1]

        weight = (t - t1) / (t2 - t1)
        return float(log_df1 + weight * (log_df2 - log_df1))


class PiecewiseConstantInterpolator(Interpolator):
    """Step function: the value of the last pillar at or before ``t``."""

    def interpolate(self, t: float) -> float:
        flat = self._extrapolate_flat(t)
        if flat is not None:
            return flat

        i = np.searchsorted(self.pillars, t, side="right") - 1
        return float(self.values[i])
