"""
Capa de Dominio - Motor de reservas y confirmaciones.

Esta capa contiene la lógica de negocio pura, sin dependencias de frameworks.
Incluye entidades, value objects y excepciones de dominio.

Estructura:
- entities/: Entidades del dominio (Quote, Booking, BookingConfirmation, etc.)
- value_objects/: Objetos de valor inmutables (BookingReference, ItemDetails, etc.)
- errors.py: Excepciones específicas del dominio
"""

from app.domain.entities import (
    Booking,
    BookingConfirmation,
    BookingItem,
    BookingPaymentStatus,
    BookingStatus,
    ConfirmationProvider,
    ConfirmationStatus,
    Customer,
    CustomerPayment,
    ItemType,
    Notification,
    PaymentStatus,
    PaymentWebhookEvent,
    Quote,
    QuoteItem,
    QuoteStatus,
    Subscription,
    SubscriptionStatus,
    SubscriptionTier,
)
from app.domain.errors import (
    BookingNotFoundError,
    DomainError,
    DuplicateBookingError,
    DuplicateConfirmationError,
    InvalidInputError,
    InvalidItemDetailsError,
    InvalidSignatureError,
    PersistenceError,
    ProviderError,
    QuoteAlreadyConvertedError,
    QuoteNotFoundError,
    SubscriptionNotFoundError,
    WebhookProcessingError,
)
from app.domain.value_objects import (
    BookingReference,
    FlightOfferDetails,
    HotelRateDetails,
    ManualConfirmationNumber,
    ManualItemDetails,
    TravelDates,
    TravelerCounts,
    parse_item_details,
)

__all__ = [
    # Entities
    "Quote",
    "QuoteItem",
    "QuoteStatus",
    "ItemType",
    "Customer",
    "Booking",
    "BookingItem",
    "BookingStatus",
    "BookingPaymentStatus",
    "BookingConfirmation",
    "ConfirmationProvider",
    "ConfirmationStatus",
    "CustomerPayment",
    "PaymentStatus",
    "Subscription",
    "SubscriptionStatus",
    "SubscriptionTier",
    "PaymentWebhookEvent",
    "Notification",
    # Value Objects
    "BookingReference",
    "ManualConfirmationNumber",
    "TravelDates",
    "HotelRateDetails",
    "FlightOfferDetails",
    "ManualItemDetails",
    "TravelerCounts",
    "parse_item_details",
    # Errors
    "DomainError",
    "InvalidInputError",
    "InvalidItemDetailsError",
    "QuoteNotFoundError",
    "QuoteAlreadyConvertedError",
    "BookingNotFoundError",
    "ProviderError",
    "PersistenceError",
    "DuplicateConfirmationError",
    "DuplicateBookingError",
    "InvalidSignatureError",
    "WebhookProcessingError",
    "SubscriptionNotFoundError",
]
