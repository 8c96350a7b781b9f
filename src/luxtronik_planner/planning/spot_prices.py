"""This module defines the price and load data the planner works on.

Spot prices are published per interval (hourly or quarter-hourly) and consist of
several components: the wholesale market price, the tax on it, the markup of the
energy supplier and the energy tax. Different decisions care about different
components, so totals are computed over a selectable subset of them.

A price window is simply an ordered list of `SpotPrice` entries, as produced by
the planner for a given load profile.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List

PriceWindow = List["SpotPrice"]


def parse_timestamp(value: Any) -> datetime:
    """Parses a timestamp from YAML into a timezone-aware datetime (UTC if unspecified)."""
    if isinstance(value, datetime):
        timestamp = value
    else:
        timestamp = datetime.fromisoformat(str(value).replace("Z", "+00:00"))

    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)

    return timestamp


def format_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class SpotPrice:
    from_time: datetime
    till_time: datetime
    market_price: float
    market_price_tax: float = 0.0
    sourcing_markup_price: float = 0.0
    energy_tax_price: float = 0.0

    def __post_init__(self) -> None:
        if self.from_time >= self.till_time:
            raise ValueError(f"Spot price from {self.from_time} is not before till {self.till_time}")

    def total_price(
        self,
        include_market_price: bool = True,
        include_market_price_tax: bool = True,
        include_sourcing_markup_price: bool = True,
        include_energy_tax_price: bool = True,
    ) -> float:
        total = 0.0
        if include_market_price:
            total += self.market_price
        if include_market_price_tax:
            total += self.market_price_tax
        if include_sourcing_markup_price:
            total += self.sourcing_markup_price
        if include_energy_tax_price:
            total += self.energy_tax_price
        return total

    def shifted(self, offset: timedelta) -> "SpotPrice":
        return replace(self, from_time=self.from_time + offset, till_time=self.till_time + offset)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SpotPrice":
        return cls(
            from_time=parse_timestamp(data["from"]),
            till_time=parse_timestamp(data["till"]),
            market_price=float(data.get("marketPrice", 0.0)),
            market_price_tax=float(data.get("marketPriceTax", 0.0)),
            sourcing_markup_price=float(data.get("sourcingMarkupPrice", 0.0)),
            energy_tax_price=float(data.get("energyTaxPrice", 0.0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from": format_timestamp(self.from_time),
            "till": format_timestamp(self.till_time),
            "marketPrice": self.market_price,
            "marketPriceTax": self.market_price_tax,
            "sourcingMarkupPrice": self.sourcing_markup_price,
            "energyTaxPrice": self.energy_tax_price,
        }


def total_price(
    spot_prices: PriceWindow,
    include_market_price: bool = True,
    include_market_price_tax: bool = True,
    include_sourcing_markup_price: bool = True,
    include_energy_tax_price: bool = True,
) -> float:
    """Sums the selected price components over all entries of a window."""
    return sum(
        spot_price.total_price(
            include_market_price,
            include_market_price_tax,
            include_sourcing_markup_price,
            include_energy_tax_price,
        )
        for spot_price in spot_prices
    )


@dataclass(frozen=True)
class LoadProfileSection:
    duration_seconds: int
    power_draw_watt: float

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoadProfileSection":
        return cls(
            duration_seconds=int(data["durationSeconds"]),
            power_draw_watt=float(data["powerDrawWatt"]),
        )


@dataclass(frozen=True)
class LoadProfile:
    """Power drawn by the heat pump over the course of one heating cycle."""

    sections: List[LoadProfileSection] = field(default_factory=list)

    @property
    def total_duration(self) -> timedelta:
        return timedelta(seconds=sum(section.duration_seconds for section in self.sections))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoadProfile":
        return cls(
            sections=[LoadProfileSection.from_dict(section) for section in data.get("sections", [])]
        )
