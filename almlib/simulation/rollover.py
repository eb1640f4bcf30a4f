"""
Day-by-day rollover simulation.

The engine moves a portfolio through time one calendar day at a time. At
each instant ``t`` (the store's reference date) it publishes the fixings
due on ``t``, settles the cashflows paid on ``t``, replaces the instruments
maturing on ``t`` according to their rollover strategies and advances the
market store to ``t + 1``. Steps depend on the fixings published by the
previous ones and are always run in order.
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

from almlib.cashflows import Cashflow
from almlib.config import ReferenceData
from almlib.errors import InvalidValueError
from almlib.instruments import Instrument
from almlib.market.store import MarketStore
from almlib.valuation.aggregation import aggregate_cashflows
from almlib.valuation.fixing import FixingVisitor

from .positions import PositionGenerator, RolloverPolicy, RolloverStrategy

logger = logging.getLogger(__name__)

StrategyInput = Union[RolloverStrategy, Sequence[RolloverStrategy]]


@dataclass(frozen=True)
class SettledCashflow:
    instrument_id: str
    cashflow: Cashflow


@dataclass(frozen=True)
class SimulationState:
    """Portfolio and market as of ``store.reference_date``.

    ``settled`` accumulates every cashflow settled so far; ``matured`` the
    instruments removed from the portfolio after their last payment.
    """

    store: MarketStore
    instruments: Tuple[Instrument, ...]
    settled: Tuple[SettledCashflow, ...] = ()
    matured: Tuple[Instrument, ...] = ()
    step: int = 0
    net_cashflow: float = 0.0

    @property
    def reference_date(self) -> date:
        return self.store.reference_date

    def instrument(self, instrument_id: str) -> Instrument:
        for instrument in self.instruments:
            if instrument.instrument_id == instrument_id:
                return instrument
        raise KeyError(instrument_id)

    def settled_on(self, dt: date) -> List[SettledCashflow]:
        return [s for s in self.settled if s.cashflow.payment_date == dt]


def _as_tuple(strategies: StrategyInput) -> Tuple[RolloverStrategy, ...]:
    if isinstance(strategies, RolloverStrategy):
        return (strategies,)
    return tuple(strategies)


class RolloverSimulationEngine:
    """
    Steps a portfolio and its market store forward in time.

    Args:
        store: Market store at the first simulated instant
        instruments: Initial portfolio
        strategies: Rollover strategies by instrument id; instruments without
            an entry use ``default_strategy``, or are not rolled over
        default_strategy: Strategies for instruments without their own
        reference_data: Currency table for the generated instruments

    Examples:
        >>> engine = RolloverSimulationEngine(store, [loan], {loan.instrument_id: strategy})
        >>> final = engine.run(date(2025, 12, 31))[-1]
    """

    def __init__(
        self,
        store: MarketStore,
        instruments: Sequence[Instrument],
        strategies: Optional[Mapping[str, StrategyInput]] = None,
        default_strategy: Optional[StrategyInput] = None,
        reference_data: Optional[ReferenceData] = None,
    ):
        ids = [instrument.instrument_id for instrument in instruments]
        if len(set(ids)) != len(ids):
            raise InvalidValueError("Instrument ids in a simulation must be unique")
        self.strategies: Dict[str, Tuple[RolloverStrategy, ...]] = {
            instrument_id: _as_tuple(value) for instrument_id, value in (strategies or {}).items()
        }
        self.default_strategy = None if default_strategy is None else _as_tuple(default_strategy)
        self.generator = PositionGenerator(reference_data or store.reference_data)
        self.state = SimulationState(store=store, instruments=tuple(instruments))

    def strategies_for(self, instrument_id: str) -> Tuple[RolloverStrategy, ...]:
        return self.strategies.get(instrument_id, self.default_strategy or ())

    def _publish_fixings(self, store: MarketStore, t: date) -> MarketStore:
        """Store with the forecast fixing of ``t`` published for every index."""
        for index_id in store.indices:
            index = store.index(index_id)
            if t in index.fixings or index.forecast_curve is None:
                continue
            if not index.calendar.is_business_day(t):
                continue
            store = store.with_fixing(index_id, t, index.fixing(t))
        return store

    def _replacements(self, instrument: Instrument, t: date, store: MarketStore) -> List[Instrument]:
        strategies = self.strategies_for(instrument.instrument_id)
        active = [s for s in strategies if s.policy != RolloverPolicy.NONE]
        if not active:
            return []
        generator = self.generator.with_store(store)
        total_weight = sum(s.weight for s in strategies)
        notionals = generator.allocate(
            [s.balance(t, instrument.notional) * s.weight / total_weight for s in active],
            instrument.currency,
        )

        replacements = []
        for k, (strategy, notional) in enumerate(zip(active, notionals)):
            if notional <= 0:
                continue
            instrument_id = f"{instrument.instrument_id}/{t.isoformat()}"
            if len(active) > 1:
                instrument_id = f"{instrument_id}-{k + 1}"
            replacement = generator.build(
                strategy,
                notional,
                t,
                instrument.currency,
                instrument.side,
                instrument_id,
                instrument.discount_curve_id,
            )
            # replacements are rolled over the same way
            self.strategies[instrument_id] = strategies
            replacements.append(replacement)
        return replacements

    def advance_one_step(self) -> SimulationState:
        """Process the current instant and return the state at the next day."""
        state = self.state
        t = state.reference_date

        # (a) due fixings
        store = self._publish_fixings(state.store, t)
        fixer = FixingVisitor(store, up_to=t)

        # (c) replacements for instruments maturing today
        new_instruments = []
        for instrument in state.instruments:
            if instrument.maturity_date == t:
                new_instruments.extend(self._replacements(instrument, t, store))

        # (b) settle today's cashflows, later ones untouched
        active, matured, settled, processed = [], [], [], []
        for instrument in list(state.instruments) + new_instruments:
            instrument = fixer(instrument).settle(t)
            processed.append(instrument)
            settled.extend(
                SettledCashflow(instrument.instrument_id, cf)
                for cf in instrument.cashflows
                if cf.payment_date == t
            )
            if instrument.maturity_date <= t:
                matured.append(instrument)
            else:
                active.append(instrument)

        flows = aggregate_cashflows(processed, t, t)
        net = float(flows["net"].sum()) if not flows.empty else 0.0

        next_state = SimulationState(
            store=store.advance_to_date(t + timedelta(days=1)),
            instruments=tuple(active),
            settled=state.settled + tuple(settled),
            matured=state.matured + tuple(matured),
            step=state.step + 1,
            net_cashflow=net,
        )
        logger.debug(
            "Step %d at %s: %d settled, %d matured, %d new, net cashflow %s",
            next_state.step,
            t,
            len(settled),
            len(matured),
            len(new_instruments),
            net,
        )
        self.state = next_state
        return next_state

    def run(self, until: date) -> List[SimulationState]:
        """Step through every instant up to and including ``until``."""
        if until < self.state.reference_date:
            raise InvalidValueError(
                f"Simulation end {until} precedes the current date {self.state.reference_date}"
            )
        states = []
        while self.state.reference_date <= until:
            states.append(self.advance_one_step())
        return states
