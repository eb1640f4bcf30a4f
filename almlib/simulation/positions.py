"""Strategies for new positions and the generator that builds them."""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, List, Optional, Sequence, Union

from almlib.config import ReferenceData, default_reference_data
from almlib.conventions.types import BusinessDayAdjustment, Frequency, ParsableEnum, Side
from almlib.errors import InvalidValueError
from almlib.instruments import (
    Instrument,
    MakeFixedRateInstrument,
    MakeFloatingRateInstrument,
    Structure,
)
from almlib.rates.interestrate import InterestRate, RateDefinition
from almlib.schedule import Period
from almlib.valuation.par_rate import ParRateVisitor

logger = logging.getLogger(__name__)

BalanceFunction = Callable[[date, float], float]


class RolloverPolicy(ParsableEnum):
    """What happens to a balance when its instrument matures."""

    CONSTANT_BALANCE = "CONSTANT_BALANCE"
    DYNAMIC_BALANCE = "DYNAMIC_BALANCE"
    NONE = "NONE"


class RateType(ParsableEnum):
    FIXED = "FIXED"
    FLOATING = "FLOATING"


@dataclass(frozen=True, kw_only=True)
class RolloverStrategy:
    """
    Template for the instruments that replace a maturing balance.

    A fixed strategy without ``rate`` issues at the market par rate, which
    needs a store. ``weight`` sets the share of the balance this strategy
    receives among the strategies of one instrument. Under the dynamic
    policy ``balance_function(t, notional)`` gives the new balance from the
    maturing instrument's notional.
    """

    policy: RolloverPolicy = RolloverPolicy.CONSTANT_BALANCE
    structure: Structure = Structure.BULLET
    tenor: Union[Period, str] = "1Y"
    payment_frequency: Frequency = Frequency.ANNUAL
    rate_type: RateType = RateType.FIXED
    rate: Optional[Union[InterestRate, float]] = None
    rate_definition: Optional[RateDefinition] = None
    index_id: Optional[str] = None
    spread: float = 0.0
    weight: float = 1.0
    discount_curve_id: Optional[str] = None
    calendar: Optional[str] = None
    convention: BusinessDayAdjustment = BusinessDayAdjustment.UNADJUSTED
    balance_function: Optional[BalanceFunction] = None

    def __post_init__(self):
        object.__setattr__(self, "policy", RolloverPolicy.from_str(self.policy))
        object.__setattr__(self, "structure", Structure.from_str(self.structure))
        object.__setattr__(self, "tenor", Period.parse(self.tenor))
        object.__setattr__(self, "payment_frequency", Frequency.from_str(self.payment_frequency))
        object.__setattr__(self, "rate_type", RateType.from_str(self.rate_type))
        object.__setattr__(self, "convention", BusinessDayAdjustment.from_str(self.convention))
        if self.structure == Structure.OTHER:
            raise InvalidValueError("Rollover strategies need a generated structure, not OTHER")
        if not self.weight > 0:
            raise InvalidValueError(f"Strategy weight must be positive, got {self.weight}")
        if self.policy == RolloverPolicy.DYNAMIC_BALANCE and self.balance_function is None:
            raise InvalidValueError("Dynamic balance policy needs a balance function")
        if self.rate_type == RateType.FLOATING and self.index_id is None:
            raise InvalidValueError("Floating strategies need an index id")

    def balance(self, dt: date, notional: float) -> float:
        """Balance to reissue for an instrument of ``notional`` maturing on ``dt``."""
        if self.policy == RolloverPolicy.NONE:
            return 0.0
        if self.policy == RolloverPolicy.CONSTANT_BALANCE:
            return notional
        return float(self.balance_function(dt, notional))


class PositionGenerator:
    """Builds instruments from strategies.

    Args:
        reference_data: Currency table used for rounding and calendars
        store: Market store for par-rate issuance; optional when every fixed
            strategy carries its own rate
    """

    def __init__(self, reference_data: Optional[ReferenceData] = None, store=None):
        self.reference_data = reference_data or default_reference_data()
        self.store = store

    def with_store(self, store) -> "PositionGenerator":
        return PositionGenerator(self.reference_data, store)

    def allocate(self, amounts: Sequence[float], currency: str) -> List[float]:
        """Round ``amounts`` to the currency; the last absorbs the residual.

        The result adds up to the rounded total of ``amounts``.
        """
        if not amounts:
            raise InvalidValueError("Need at least one amount to allocate")
        info = self.reference_data.currency(currency)
        shares = [info.round(a) for a in amounts[:-1]]
        shares.append(info.round(info.round(sum(amounts)) - sum(shares)))
        return shares

    def split(self, amount: float, weights: Sequence[float], currency: str) -> List[float]:
        """Split ``amount`` by ``weights``; the last share absorbs the rounding."""
        if not weights:
            raise InvalidValueError("Need at least one weight to split an amount")
        total_weight = float(sum(weights))
        return self.allocate([amount * w / total_weight for w in weights], currency)

    def build(
        self,
        strategy: RolloverStrategy,
        notional: float,
        start_date: date,
        currency: str,
        side: Side,
        instrument_id: str,
        discount_curve_id: Optional[str] = None,
    ) -> Instrument:
        """One instrument following ``strategy``."""
        if strategy.rate_type == RateType.FLOATING:
            builder = (
                MakeFloatingRateInstrument()
                .with_index(self._index(strategy.index_id))
                .with_spread(strategy.spread)
            )
            if strategy.rate_definition is not None:
                builder.with_rate_definition(strategy.rate_definition)
        else:
            builder = MakeFixedRateInstrument()

        (
            builder.with_id(instrument_id)
            .with_start_date(start_date)
            .with_tenor(strategy.tenor)
            .with_payment_frequency(strategy.payment_frequency)
            .with_structure(strategy.structure)
            .with_notional(notional)
            .with_currency(currency)
            .with_side(side)
            .with_convention(strategy.convention)
            .with_reference_data(self.reference_data)
        )
        curve_id = strategy.discount_curve_id or discount_curve_id
        if curve_id is not None:
            builder.with_discount_curve_id(curve_id)
        if strategy.calendar is not None:
            builder.with_calendar(strategy.calendar)

        if strategy.rate_type == RateType.FIXED:
            builder.with_rate(self._rate(strategy, builder))
        instrument = builder.build()
        logger.debug(
            "Generated %s %s notional %s from %s", strategy.structure.name,
            instrument_id, notional, start_date,
        )
        return instrument

    def _index(self, index_id: str):
        if self.store is not None and index_id in self.store.indices:
            return self.store.index(index_id)
        return index_id

    def _rate(self, strategy: RolloverStrategy, builder: MakeFixedRateInstrument) -> InterestRate:
        if strategy.rate is not None:
            if isinstance(strategy.rate, InterestRate):
                return strategy.rate
            return InterestRate(float(strategy.rate), strategy.rate_definition or RateDefinition())
        if self.store is None:
            raise InvalidValueError(
                "A fixed strategy without a rate issues at par and needs a market store"
            )
        draft_rate = InterestRate(0.0, strategy.rate_definition or RateDefinition())
        draft = builder.with_rate(draft_rate).build()
        par = ParRateVisitor(self.store)(draft)
        return draft_rate.with_rate(par)

    def generate(
        self,
        strategies: Sequence[RolloverStrategy],
        amount: float,
        start_date: date,
        currency: str,
        side: Side,
        id_prefix: str,
        discount_curve_id: Optional[str] = None,
    ) -> List[Instrument]:
        """Instruments sharing ``amount`` across ``strategies`` by weight."""
        shares = self.split(amount, [s.weight for s in strategies], currency)
        instruments = []
        for k, (strategy, share) in enumerate(zip(strategies, shares)):
            if share <= 0:
                continue
            instrument_id = id_prefix if len(strategies) == 1 else f"{id_prefix}-{k + 1}"
            instruments.append(
                self.build(
                    strategy, share, start_date, currency, side, instrument_id, discount_curve_id
                )
            )
        return instruments
