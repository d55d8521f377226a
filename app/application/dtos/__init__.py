"""DTOs (Data Transfer Objects) de la capa de aplicación."""

from app.application.dtos.booking_dto import (
    BookingDetailDTO,
    BookingResultDTO,
    BookingSummaryDTO,
    ItemResult,
)

__all__ = [
    "BookingDetailDTO",
    "BookingResultDTO",
    "BookingSummaryDTO",
    "ItemResult",
]
