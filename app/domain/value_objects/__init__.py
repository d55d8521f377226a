"""Value Objects del dominio de reservas."""

from app.domain.value_objects.booking_reference import BookingReference, ManualConfirmationNumber
from app.domain.value_objects.item_details import (
    FlightOfferDetails,
    HotelRateDetails,
    ItemDetails,
    ManualItemDetails,
    TravelerCounts,
    parse_item_details,
)
from app.domain.value_objects.travel_dates import TravelDates

__all__ = [
    "BookingReference",
    "ManualConfirmationNumber",
    "TravelDates",
    "ItemDetails",
    "HotelRateDetails",
    "FlightOfferDetails",
    "ManualItemDetails",
    "TravelerCounts",
    "parse_item_details",
]
