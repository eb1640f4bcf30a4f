"""Rollover simulation and position generation."""

from .positions import (
    BalanceFunction,
    PositionGenerator,
    RateType,
    RolloverPolicy,
    RolloverStrategy,
)
from .rollover import RolloverSimulationEngine, SettledCashflow, SimulationState

__all__ = [
    "BalanceFunction",
    "PositionGenerator",
    "RateType",
    "RolloverPolicy",
    "RolloverStrategy",
    "RolloverSimulationEngine",
    "SettledCashflow",
    "SimulationState",
]
