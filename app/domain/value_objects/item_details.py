"""
Value Objects para el payload `details` de un item de cotización.

El payload llega como JSON sin tipo; aquí se convierte en una de tres
variantes según el tipo de item y lo que el proveedor necesita:

- HotelRateDetails: hotel con rate key, reservable en línea.
- FlightOfferDetails: vuelo con oferta completa (id + slices).
- ManualItemDetails: todo lo demás, con el motivo de la gestión manual.
"""

from dataclasses import dataclass, field
from typing import Any, Union

from app.domain.errors import InvalidItemDetailsError

HOTEL = "Hotel"
FLIGHT = "Flight"

REASON_NO_RATE_KEY = "No rate key - local inventory"
REASON_INCOMPLETE_OFFER = "Missing complete flight offer data"


def _date_part(value: Any) -> str | None:
    if not value or not isinstance(value, str):
        return None
    return value.split("T")[0]


def _optional_str(raw: dict[str, Any], key: str, item_type: str) -> str | None:
    value = raw.get(key)
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    if not isinstance(value, str):
        raise InvalidItemDetailsError(item_type, f"'{key}' must be a string")
    return value


@dataclass(frozen=True)
class TravelerCounts:
    """Desglose de pasajeros de una oferta de vuelo."""

    adults: int = 1
    children: int = 0
    seniors: int = 0

    def __post_init__(self) -> None:
        for name in ("adults", "children", "seniors"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise InvalidItemDetailsError(FLIGHT, f"travelers.{name} must be a non-negative integer")
        if self.total == 0:
            raise InvalidItemDetailsError(FLIGHT, "at least one traveler is required")

    @property
    def total(self) -> int:
        return self.adults + self.children + self.seniors

    def passenger_types(self) -> list[str]:
        """Tipo por pasajero en orden: adultos, niños y luego seniors (viajan como adultos)."""
        return ["adult"] * self.adults + ["child"] * self.children + ["adult"] * self.seniors

    @classmethod
    def from_raw(cls, raw: Any) -> "TravelerCounts":
        if raw is None:
            return cls()
        if not isinstance(raw, dict):
            raise InvalidItemDetailsError(FLIGHT, "'travelers' must be an object")
        return cls(
            adults=raw.get("adults", 1),
            children=raw.get("children", 0),
            seniors=raw.get("seniors", 0),
        )


@dataclass(frozen=True)
class HotelRateDetails:
    rate_key: str
    hotel_code: str | None = None
    hotel_name: str | None = None
    check_in: str | None = None
    check_out: str | None = None
    currency: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.rate_key, str) or not self.rate_key.strip():
            raise InvalidItemDetailsError(HOTEL, "'rateKey' must be a non-empty string")

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> "HotelRateDetails":
        return cls(
            rate_key=raw.get("rateKey"),
            hotel_code=_optional_str(raw, "hotelCode", HOTEL),
            hotel_name=_optional_str(raw, "hotelName", HOTEL),
            check_in=raw.get("checkInDate") or _date_part(raw.get("startTime")),
            check_out=raw.get("checkOutDate") or _date_part(raw.get("endTime")),
            currency=_optional_str(raw, "currency", HOTEL),
            raw=raw,
        )


@dataclass(frozen=True)
class FlightOfferDetails:
    offer_id: str
    slices: tuple[dict[str, Any], ...]
    travelers: TravelerCounts = field(default_factory=TravelerCounts)
    total_amount: str | None = None
    total_currency: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.offer_id, str) or not self.offer_id.strip():
            raise InvalidItemDetailsError(FLIGHT, "'id' must be a non-empty string")
        if not self.slices:
            raise InvalidItemDetailsError(FLIGHT, "'slices' must be a non-empty list")
        if not all(isinstance(s, dict) for s in self.slices):
            raise InvalidItemDetailsError(FLIGHT, "every slice must be an object")

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> "FlightOfferDetails":
        slices = raw.get("slices")
        if not isinstance(slices, list):
            raise InvalidItemDetailsError(FLIGHT, "'slices' must be a list")
        return cls(
            offer_id=raw.get("id"),
            slices=tuple(slices),
            travelers=TravelerCounts.from_raw(raw.get("travelers")),
            total_amount=_optional_str(raw, "total_amount", FLIGHT),
            total_currency=_optional_str(raw, "total_currency", FLIGHT),
            raw=raw,
        )


@dataclass(frozen=True)
class ManualItemDetails:
    """Item que un agente debe completar fuera de línea."""

    reason: str
    check_in: str | None = None
    check_out: str | None = None
    currency: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False)


ItemDetails = Union[HotelRateDetails, FlightOfferDetails, ManualItemDetails]


def _manual(reason: str, raw: dict[str, Any]) -> ManualItemDetails:
    currency = raw.get("currency") if isinstance(raw.get("currency"), str) else None
    check_in = raw.get("checkInDate") or _date_part(raw.get("startTime"))
    check_out = raw.get("checkOutDate") or _date_part(raw.get("endTime"))
    return ManualItemDetails(
        reason=reason,
        check_in=check_in if isinstance(check_in, str) else None,
        check_out=check_out if isinstance(check_out, str) else None,
        currency=currency,
        raw=raw,
    )


def parse_item_details(item_type: str, raw: Any) -> ItemDetails:
    """
    Convierte el payload crudo en la variante correspondiente.

    Nunca lanza: un payload con forma inválida se degrada a ManualItemDetails
    con el error de construcción como motivo.
    """
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        return _manual(f"Invalid {item_type} details: expected an object", {})

    try:
        if item_type == HOTEL:
            if not raw.get("rateKey"):
                return _manual(REASON_NO_RATE_KEY, raw)
            return HotelRateDetails.from_raw(raw)

        if item_type == FLIGHT:
            if not raw.get("id") or not raw.get("slices"):
                return _manual(REASON_INCOMPLETE_OFFER, raw)
            return FlightOfferDetails.from_raw(raw)
    except InvalidItemDetailsError as exc:
        return _manual(exc.message, raw)

    return _manual(f"No automated provider integration for {item_type}", raw)
