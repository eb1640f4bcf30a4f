"""
Instrument builders.

Each builder collects its configuration through chained ``with_*`` calls and
validates everything in :meth:`build` before any cashflow is generated::

    loan = (
        MakeFixedRateInstrument()
        .with_start_date(date(2024, 1, 15))
        .with_tenor("2Y")
        .with_payment_frequency(Frequency.MONTHLY)
        .with_rate(InterestRate.from_parts(0.06, Compounding.COMPOUNDED))
        .with_notional(100_000)
        .with_currency("USD")
        .with_side(Side.RECEIVE)
        .equal_payments()
        .build()
    )
"""

import logging
from datetime import date, datetime
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from almlib.cashflows import (
    Cashflow,
    CashflowType,
    FixedRateCoupon,
    FloatingRateCoupon,
    SimpleCashflow,
)
from almlib.config import CurrencyInfo, ReferenceData, default_reference_data
from almlib.conventions.calendars import Calendar, get_calendar
from almlib.conventions.types import (
    BusinessDayAdjustment,
    DateGenerationRule,
    Frequency,
    Side,
    StubType,
)
from almlib.errors import InvalidValueError
from almlib.rates.index import RateIndex
from almlib.rates.interestrate import InterestRate, RateDefinition
from almlib.schedule import Period, Schedule, ScheduleGenerator

from .amortization import PeriodPlan, Structure, amortization_plan
from .instrument import (
    FixedRateInstrument,
    FloatingRateInstrument,
    SimpleCashflowInstrument,
)

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime, str]


def _to_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


def _default_id(prefix: str, currency: str, start: date, end: date, notional: float) -> str:
    """Id derived from the terms, so the same build always yields the same id."""
    return f"{prefix}-{currency}-{start:%Y%m%d}-{end:%Y%m%d}-{notional:.10g}"


class _InstrumentBuilder:
    """Configuration shared by the fixed and floating builders."""

    _prefix = "INSTRUMENT"

    def __init__(self):
        self.instrument_id: Optional[str] = None
        self.start_date: Optional[date] = None
        self.end_date: Optional[date] = None
        self.tenor: Optional[Period] = None
        self.payment_frequency: Optional[Frequency] = None
        self.notional: Optional[float] = None
        self.currency: Optional[str] = None
        self.side: Optional[Side] = None
        self.discount_curve_id: Optional[str] = None
        self.structure = Structure.BULLET
        self.calendar: Optional[Calendar] = None
        self.convention = BusinessDayAdjustment.UNADJUSTED
        self.rule = DateGenerationRule.BACKWARD
        self.stub: Optional[StubType] = None
        self.end_of_month = False
        self.first_coupon_date: Optional[date] = None
        self.grace_periods = 0
        self.capitalize_interest = False
        self.redemptions: Optional[Dict[date, float]] = None
        self.disbursements: Optional[Dict[date, float]] = None
        self.reference_data: Optional[ReferenceData] = None

    def with_id(self, instrument_id: str):
        self.instrument_id = instrument_id
        return self

    def with_start_date(self, start_date: DateLike):
        self.start_date = _to_date(start_date)
        return self

    def with_end_date(self, end_date: DateLike):
        self.end_date = _to_date(end_date)
        return self

    def with_tenor(self, tenor: Union[Period, str]):
        self.tenor = Period.parse(tenor)
        return self

    def with_payment_frequency(self, frequency: Union[Frequency, str]):
        self.payment_frequency = Frequency.from_str(frequency)
        return self

    def with_notional(self, notional: float):
        self.notional = float(notional)
        return self

    def with_currency(self, currency: str):
        self.currency = str(currency).upper()
        return self

    def with_side(self, side: Union[Side, str]):
        self.side = Side.from_str(side)
        return self

    def with_discount_curve_id(self, curve_id: str):
        self.discount_curve_id = curve_id
        return self

    def with_calendar(self, calendar: Union[Calendar, str]):
        self.calendar = get_calendar(calendar)
        return self

    def with_convention(self, convention: Union[BusinessDayAdjustment, str]):
        self.convention = BusinessDayAdjustment.from_str(convention)
        return self

    def with_rule(self, rule: Union[DateGenerationRule, str]):
        self.rule = DateGenerationRule.from_str(rule)
        return self

    def with_stub(self, stub: Union[StubType, str]):
        self.stub = StubType.from_str(stub)
        return self

    def with_end_of_month(self, flag: bool = True):
        self.end_of_month = flag
        return self

    def with_first_coupon_date(self, first_date: Optional[DateLike]):
        self.first_coupon_date = None if first_date is None else _to_date(first_date)
        return self

    def with_grace_periods(self, periods: int, capitalize_interest: bool = False):
        """Defer the first ``periods`` redemptions; the period count is unchanged."""
        self.grace_periods = int(periods)
        self.capitalize_interest = capitalize_interest
        return self

    def with_reference_data(self, reference_data: ReferenceData):
        self.reference_data = reference_data
        return self

    def with_structure(self, structure: Union[Structure, str]):
        self.structure = Structure.from_str(structure)
        return self

    def bullet(self):
        return self.with_structure(Structure.BULLET)

    def equal_redemptions(self):
        return self.with_structure(Structure.EQUAL_REDEMPTIONS)

    def zero(self):
        return self.with_structure(Structure.ZERO)

    def other(self):
        return self.with_structure(Structure.OTHER)

    def with_redemptions(self, redemptions: Mapping[DateLike, float]):
        """Explicit principal table; implies the irregular structure."""
        self.redemptions = {_to_date(d): float(a) for d, a in redemptions.items()}
        self.structure = Structure.OTHER
        return self

    def with_disbursements(self, disbursements: Mapping[DateLike, float]):
        self.disbursements = {_to_date(d): float(a) for d, a in disbursements.items()}
        return self

    def _currency_info(self) -> CurrencyInfo:
        reference_data = self.reference_data or default_reference_data()
        return reference_data.currency(self.currency)

    def _validate(self) -> CurrencyInfo:
        missing = [
            name
            for name, value in (
                ("start date", self.start_date),
                ("notional", self.notional),
                ("currency", self.currency),
                ("side", self.side),
            )
            if value is None
        ]
        if self.structure == Structure.OTHER:
            if self.redemptions is None:
                missing.append("redemptions")
        elif self.end_date is None and self.tenor is None:
            missing.append("end date or tenor")
        if self.structure in (Structure.BULLET, Structure.EQUAL_REDEMPTIONS,
                              Structure.EQUAL_PAYMENTS):
            if self.payment_frequency is None:
                missing.append("payment frequency")
        if missing:
            raise InvalidValueError(
                f"{self.__class__.__name__} is missing: {', '.join(missing)}"
            )
        if self.notional <= 0:
            raise InvalidValueError(f"Notional must be positive, got {self.notional}")
        if self.grace_periods and self.structure in (Structure.ZERO, Structure.OTHER):
            raise InvalidValueError(
                f"Grace periods are not supported for {self.structure.name} structures"
            )
        return self._currency_info()

    def _resolve_end_date(self) -> date:
        if self.end_date is not None:
            return self.end_date
        return self.tenor.add_to(self.start_date)

    def _schedule(self, currency: CurrencyInfo) -> Schedule:
        end_date = self._resolve_end_date()
        calendar = self.calendar or get_calendar(currency.calendar)
        generator = (
            ScheduleGenerator(self.start_date, end_date)
            .with_calendar(calendar)
            .with_convention(self.convention)
            .with_end_of_month(self.end_of_month)
        )
        if self.structure == Structure.ZERO:
            return generator.with_rule(DateGenerationRule.ZERO).build()

        generator = generator.with_frequency(self.payment_frequency).with_rule(self.rule)
        if self.stub is not None:
            generator = generator.with_stub(self.stub)
        if self.first_coupon_date is not None:
            generator = generator.with_first_date(self.first_coupon_date)
        return generator.build()

    def _irregular_dates(self, currency: CurrencyInfo) -> Tuple[List[date], Dict[date, float]]:
        """Period dates and disbursements of an explicit redemption table."""
        disbursements = self.disbursements or {self.start_date: self.notional}
        if not self.redemptions:
            raise InvalidValueError("Irregular instruments need at least one redemption")
        if any(amount < 0 for amount in self.redemptions.values()):
            raise InvalidValueError("Redemption amounts must be non-negative")

        total_redeemed = sum(self.redemptions.values())
        if abs(total_redeemed - self.notional) > currency.tolerance:
            raise InvalidValueError(
                f"Redemptions add up to {total_redeemed}, expected notional {self.notional}"
            )
        total_disbursed = sum(disbursements.values())
        if abs(total_disbursed - self.notional) > currency.tolerance:
            raise InvalidValueError(
                f"Disbursements add up to {total_disbursed}, expected notional {self.notional}"
            )
        first = min(disbursements)
        if first != self.start_date:
            raise InvalidValueError(
                f"First disbursement {first} must be on the start date {self.start_date}"
            )
        if min(self.redemptions) <= self.start_date:
            raise InvalidValueError("Redemptions must be after the start date")

        dates = sorted(set(disbursements) | set(self.redemptions))
        return dates, disbursements

    def _principal_flows(
        self,
        dates: List[date],
        plan: List[PeriodPlan],
        currency: CurrencyInfo,
    ) -> List[Cashflow]:
        flows: List[Cashflow] = [
            self._simple(dates[0], self.notional, CashflowType.DISBURSEMENT, currency)
        ]
        for end, period in zip(dates[1:], plan):
            if period.capitalized:
                flows.append(
                    self._simple(end, period.capitalized, CashflowType.DISBURSEMENT, currency)
                )
            if period.redemption:
                flows.append(
                    self._simple(end, period.redemption, CashflowType.REDEMPTION, currency)
                )
        return flows

    def _irregular_principal_flows(
        self, disbursements: Mapping[date, float], currency: CurrencyInfo
    ) -> List[Cashflow]:
        flows = [
            self._simple(d, amount, CashflowType.DISBURSEMENT, currency)
            for d, amount in sorted(disbursements.items())
        ]
        flows.extend(
            self._simple(d, amount, CashflowType.REDEMPTION, currency)
            for d, amount in sorted(self.redemptions.items())
            if amount
        )
        return flows

    def _irregular_balances(
        self, dates: List[date], disbursements: Mapping[date, float]
    ) -> List[float]:
        balances = []
        balance = 0.0
        for start in dates[:-1]:
            balance += disbursements.get(start, 0.0) - self.redemptions.get(start, 0.0)
            balances.append(balance)
        return balances

    def _simple(
        self, dt: date, amount: float, kind: CashflowType, currency: CurrencyInfo
    ) -> SimpleCashflow:
        side = self.side.inverse() if kind == CashflowType.DISBURSEMENT else self.side
        return SimpleCashflow(
            payment_date=dt,
            currency=currency.code,
            side=side,
            discount_curve_id=self.discount_curve_id,
            value=amount,
            kind=kind,
        )

    def _frequency(self) -> Frequency:
        if self.structure in (Structure.ZERO, Structure.OTHER):
            return self.payment_frequency or Frequency.ONCE
        return self.payment_frequency


class MakeFixedRateInstrument(_InstrumentBuilder):
    """Builder for fixed rate loans, deposits and bonds."""

    _prefix = "FIXED"

    def __init__(self):
        super().__init__()
        self.rate: Optional[InterestRate] = None
        self.interest_amounts: Optional[Dict[date, float]] = None

    def with_rate(self, rate: Union[InterestRate, float], rate_definition=None):
        if not isinstance(rate, InterestRate):
            rate = InterestRate(float(rate), rate_definition or RateDefinition())
        self.rate = rate
        return self

    def equal_payments(self):
        return self.with_structure(Structure.EQUAL_PAYMENTS)

    def with_interest_amounts(self, amounts: Mapping[DateLike, float]):
        """Override coupon amounts by payment date (irregular tables)."""
        self.interest_amounts = {_to_date(d): float(a) for d, a in amounts.items()}
        return self

    def build(self) -> FixedRateInstrument:
        currency = self._validate()
        if self.rate is None:
            raise InvalidValueError("MakeFixedRateInstrument is missing: rate")

        if self.structure == Structure.OTHER:
            dates, disbursements = self._irregular_dates(currency)
            balances = self._irregular_balances(dates, disbursements)
            principal = self._irregular_principal_flows(disbursements, currency)
        else:
            dates = list(self._schedule(currency).dates)
            factors = [self.rate.compound_factor(s, e) for s, e in zip(dates[:-1], dates[1:])]
            plan = amortization_plan(
                self.notional,
                len(dates) - 1,
                self.structure,
                currency.precision,
                compound_factors=factors,
                grace_periods=self.grace_periods,
                capitalize_interest=self.capitalize_interest,
            )
            balances = [period.notional for period in plan]
            principal = self._principal_flows(dates, plan, currency)

        overrides = self.interest_amounts or {}
        coupons = [
            FixedRateCoupon(
                payment_date=end,
                currency=currency.code,
                side=self.side,
                discount_curve_id=self.discount_curve_id,
                notional=balance,
                accrual_start=start,
                accrual_end=end,
                rate=self.rate,
                fixed_amount=overrides.get(end),
            )
            for start, end, balance in zip(dates[:-1], dates[1:], balances)
            if balance > currency.tolerance or end in overrides
        ]

        instrument = FixedRateInstrument(
            instrument_id=self.instrument_id
            or _default_id(self._prefix, currency.code, dates[0], dates[-1], self.notional),
            cashflows=tuple(principal + coupons),
            side=self.side,
            currency=currency.code,
            notional=self.notional,
            start_date=dates[0],
            end_date=dates[-1],
            structure=self.structure,
            payment_frequency=self._frequency(),
            discount_curve_id=self.discount_curve_id,
            rate=self.rate,
        )
        logger.debug(
            "Built %s %s: %d cashflows", self.structure.name, instrument.instrument_id,
            len(instrument.cashflows),
        )
        return instrument


class MakeFloatingRateInstrument(_InstrumentBuilder):
    """Builder for instruments paying an index fixing plus a spread.

    The fixing date of each coupon is its accrual start moved back by the
    index fixing lag (business days on the index calendar), or by a lookback
    period when one is given.
    """

    _prefix = "FLOATING"

    def __init__(self):
        super().__init__()
        self.index_id: Optional[str] = None
        self.forecast_curve_id: Optional[str] = None
        self.spread = 0.0
        self.rate_definition: Optional[RateDefinition] = None
        self.fixing_lag = 0
        self.fixing_calendar: Optional[Calendar] = None
        self.lookback: Optional[Period] = None

    def with_index(self, index: Union[RateIndex, str]):
        if isinstance(index, RateIndex):
            self.index_id = index.index_id
            self.fixing_lag = index.fixing_lag
            self.fixing_calendar = index.calendar
            if self.rate_definition is None:
                self.rate_definition = index.rate_definition
        else:
            self.index_id = index
        return self

    def with_forecast_curve_id(self, curve_id: str):
        self.forecast_curve_id = curve_id
        return self

    def with_spread(self, spread: float):
        self.spread = float(spread)
        return self

    def with_rate_definition(self, rate_definition: RateDefinition):
        self.rate_definition = rate_definition
        return self

    def with_fixing_lag(self, days: int, calendar: Union[Calendar, str, None] = None):
        if days < 0:
            raise InvalidValueError(f"Fixing lag must be non-negative, got {days}")
        self.fixing_lag = int(days)
        if calendar is not None:
            self.fixing_calendar = get_calendar(calendar)
        return self

    def with_lookback(self, lookback: Union[Period, str]):
        self.lookback = Period.parse(lookback)
        return self

    def _fixing_date(self, accrual_start: date, calendar: Calendar) -> date:
        if self.lookback is not None:
            return calendar.adjust(
                (-self.lookback).add_to(accrual_start), BusinessDayAdjustment.PRECEDING
            )
        if self.fixing_lag == 0:
            return accrual_start
        return calendar.add_business_days(accrual_start, -self.fixing_lag)

    def build(self) -> FloatingRateInstrument:
        currency = self._validate()
        if self.index_id is None:
            raise InvalidValueError("MakeFloatingRateInstrument is missing: index")
        if self.structure == Structure.EQUAL_PAYMENTS:
            raise InvalidValueError("Equal payments need a known rate; use a fixed instrument")
        if self.capitalize_interest and self.grace_periods:
            raise InvalidValueError("Floating instruments cannot capitalise unknown interest")

        if self.structure == Structure.OTHER:
            dates, disbursements = self._irregular_dates(currency)
            balances = self._irregular_balances(dates, disbursements)
            principal = self._irregular_principal_flows(disbursements, currency)
        else:
            dates = list(self._schedule(currency).dates)
            plan = amortization_plan(
                self.notional,
                len(dates) - 1,
                self.structure,
                currency.precision,
                grace_periods=self.grace_periods,
            )
            balances = [period.notional for period in plan]
            principal = self._principal_flows(dates, plan, currency)

        rate_definition = self.rate_definition or RateDefinition()
        fixing_calendar = self.fixing_calendar or self.calendar or get_calendar(currency.calendar)
        coupons = [
            FloatingRateCoupon(
                payment_date=end,
                currency=currency.code,
                side=self.side,
                discount_curve_id=self.discount_curve_id,
                notional=balance,
                accrual_start=start,
                accrual_end=end,
                index_id=self.index_id,
                spread=self.spread,
                rate_definition=rate_definition,
                fixing_date=self._fixing_date(start, fixing_calendar),
                fixing_end_date=end,
            )
            for start, end, balance in zip(dates[:-1], dates[1:], balances)
            if balance > currency.tolerance
        ]

        return FloatingRateInstrument(
            instrument_id=self.instrument_id
            or _default_id(self._prefix, currency.code, dates[0], dates[-1], self.notional),
            cashflows=tuple(principal + coupons),
            side=self.side,
            currency=currency.code,
            notional=self.notional,
            start_date=dates[0],
            end_date=dates[-1],
            structure=self.structure,
            payment_frequency=self._frequency(),
            discount_curve_id=self.discount_curve_id,
            forecast_curve_id=self.forecast_curve_id or self.index_id,
            index_id=self.index_id,
            spread=self.spread,
            rate_definition=rate_definition,
        )


class MakeSimpleCashflowInstrument:
    """Builder for an explicit list of dated amounts."""

    def __init__(self):
        self.instrument_id: Optional[str] = None
        self.currency: Optional[str] = None
        self.side = Side.RECEIVE
        self.discount_curve_id: Optional[str] = None
        self.flows: List[Tuple[date, float, CashflowType]] = []
        self.reference_data: Optional[ReferenceData] = None

    def with_id(self, instrument_id: str):
        self.instrument_id = instrument_id
        return self

    def with_currency(self, currency: str):
        self.currency = str(currency).upper()
        return self

    def with_side(self, side: Union[Side, str]):
        self.side = Side.from_str(side)
        return self

    def with_discount_curve_id(self, curve_id: str):
        self.discount_curve_id = curve_id
        return self

    def with_reference_data(self, reference_data: ReferenceData):
        self.reference_data = reference_data
        return self

    def with_cashflow(
        self, payment_date: DateLike, amount: float, kind: Union[CashflowType, str] = CashflowType.SIMPLE
    ):
        self.flows.append((_to_date(payment_date), float(amount), CashflowType.from_str(kind)))
        return self

    def with_cashflows(self, flows: Iterable[Tuple[DateLike, float]]):
        for payment_date, amount in flows:
            self.with_cashflow(payment_date, amount)
        return self

    def build(self) -> SimpleCashflowInstrument:
        if self.currency is None:
            raise InvalidValueError("MakeSimpleCashflowInstrument is missing: currency")
        if not self.flows:
            raise InvalidValueError("MakeSimpleCashflowInstrument needs at least one cashflow")
        reference_data = self.reference_data or default_reference_data()
        currency = reference_data.currency(self.currency)

        cashflows = []
        for payment_date, amount, kind in self.flows:
            # negative amounts flow the other way
            side = self.side if amount >= 0 else self.side.inverse()
            if kind == CashflowType.DISBURSEMENT:
                side = side.inverse()
            cashflows.append(
                SimpleCashflow(
                    payment_date=payment_date,
                    currency=currency.code,
                    side=side,
                    discount_curve_id=self.discount_curve_id,
                    value=abs(amount),
                    kind=kind,
                )
            )

        dates = [cf.payment_date for cf in cashflows]
        redeemed = sum(cf.amount for cf in cashflows if cf.cashflow_type == CashflowType.REDEMPTION)
        return SimpleCashflowInstrument(
            instrument_id=self.instrument_id
            or _default_id("SIMPLE", currency.code, min(dates), max(dates), redeemed),
            cashflows=tuple(cashflows),
            side=self.side,
            currency=currency.code,
            notional=redeemed,
            start_date=min(dates),
            end_date=max(dates),
            discount_curve_id=self.discount_curve_id,
        )
