"""
Static reference data: currencies, their minor units and default calendars.

The tables are loaded once (``ReferenceData.default()`` or
``ReferenceData.from_mapping``) and passed explicitly to builders and the
market store.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional

from almlib.conventions.calendars import Calendar, get_calendar
from almlib.errors import InvalidValueError


@dataclass(frozen=True)
class CurrencyInfo:
    """ISO currency with its minor-unit precision."""

    code: str
    name: str
    precision: int
    calendar: str = "WEEKENDS_ONLY"

    def round(self, amount: float) -> float:
        return round(amount, self.precision)

    @property
    def tolerance(self) -> float:
        """Half a minor unit; differences below it are rounding noise."""
        return 0.5 * 10.0 ** (-self.precision)


_DEFAULT_CURRENCIES = (
    CurrencyInfo("USD", "US Dollar", 2, "UNITED_STATES"),
    CurrencyInfo("EUR", "Euro", 2, "TARGET"),
    CurrencyInfo("GBP", "Pound Sterling", 2, "WEEKENDS_ONLY"),
    CurrencyInfo("JPY", "Japanese Yen", 0, "WEEKENDS_ONLY"),
    CurrencyInfo("CLP", "Chilean Peso", 0, "CHILE"),
    CurrencyInfo("CLF", "Unidad de Fomento", 4, "CHILE"),
    CurrencyInfo("BRL", "Brazilian Real", 2, "BRAZIL"),
)


@dataclass(frozen=True)
class ReferenceData:
    """Read-only currency table plus the reporting (base) currency."""

    currencies: Mapping[str, CurrencyInfo]
    base_currency: str = "USD"

    def __post_init__(self):
        table = {code.upper(): info for code, info in dict(self.currencies).items()}
        object.__setattr__(self, "currencies", MappingProxyType(table))
        object.__setattr__(self, "base_currency", self.base_currency.upper())
        if self.base_currency not in table:
            raise InvalidValueError(
                f"Base currency {self.base_currency} is not in the currency table"
            )

    @classmethod
    def default(cls, base_currency: str = "USD") -> "ReferenceData":
        return cls.from_currencies(_DEFAULT_CURRENCIES, base_currency)

    @classmethod
    def from_currencies(
        cls, currencies: Iterable[CurrencyInfo], base_currency: str = "USD"
    ) -> "ReferenceData":
        return cls({info.code.upper(): info for info in currencies}, base_currency)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ReferenceData":
        """Build from a plain mapping, e.g. parsed from JSON.

        Expected shape::

            {"base_currency": "EUR",
             "currencies": [{"code": "EUR", "name": "Euro", "precision": 2,
                             "calendar": "TARGET"}, ...]}
        """
        try:
            rows = data["currencies"]
        except KeyError as exc:
            raise InvalidValueError("Reference data has no 'currencies' table") from exc

        currencies = []
        for row in rows:
            try:
                currencies.append(
                    CurrencyInfo(
                        code=str(row["code"]).upper(),
                        name=str(row.get("name", row["code"])),
                        precision=int(row["precision"]),
                        calendar=str(row.get("calendar", "WEEKENDS_ONLY")),
                    )
                )
            except (KeyError, TypeError, ValueError) as exc:
                raise InvalidValueError(f"Invalid currency row {row!r}: {exc}") from exc
        return cls.from_currencies(currencies, data.get("base_currency", "USD"))

    def currency(self, code: str) -> CurrencyInfo:
        try:
            return self.currencies[str(code).upper()]
        except KeyError:
            raise InvalidValueError(
                f"Unknown currency: {code}. Available: {sorted(self.currencies)}"
            ) from None

    def precision(self, code: str) -> int:
        return self.currency(code).precision

    def round(self, amount: float, code: str) -> float:
        return self.currency(code).round(amount)

    def calendar(self, code: str) -> Calendar:
        return get_calendar(self.currency(code).calendar)


_DEFAULT: Optional[ReferenceData] = None


def default_reference_data() -> ReferenceData:
    """Shared instance of :meth:`ReferenceData.default`."""
    global _DEFAULT
    if _DEFAULT is None:
        _DEFAULT = ReferenceData.default()
    return _DEFAULT
