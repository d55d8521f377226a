"""
Capa de Aplicación - Motor de reservas y confirmaciones.

Esta capa contiene los casos de uso, DTOs e interfaces (puertos).
Orquesta la lógica de negocio y define los contratos con la infraestructura.

Estructura:
- use_cases/: Casos de uso del sistema
- dtos/: Data Transfer Objects
- interfaces/: Puertos (contratos para adaptadores)
"""

from app.application.dtos import (
    BookingDetailDTO,
    BookingResultDTO,
    BookingSummaryDTO,
    ItemResult,
)
from app.application.interfaces import (
    BookingRepo,
    Clock,
    ConfirmationStore,
    FakeClock,
    FlightProviderGateway,
    HotelProviderGateway,
    NotificationRepo,
    Notifier,
    PaymentRepo,
    QuoteRepo,
    StripeGateway,
    SubscriptionRepo,
    SystemClock,
    TransactionManager,
    WebhookEventRepo,
)

__all__ = [
    # DTOs
    "BookingDetailDTO",
    "BookingResultDTO",
    "BookingSummaryDTO",
    "ItemResult",
    # Interfaces - Repositories
    "QuoteRepo",
    "BookingRepo",
    "ConfirmationStore",
    "PaymentRepo",
    "SubscriptionRepo",
    "WebhookEventRepo",
    "NotificationRepo",
    # Interfaces - Gateways
    "HotelProviderGateway",
    "FlightProviderGateway",
    "StripeGateway",
    "Notifier",
    # Interfaces - Infrastructure
    "TransactionManager",
    # Interfaces - Utilities
    "Clock",
    "SystemClock",
    "FakeClock",
]
