"""
Capa de Infraestructura - Motor de reservas y confirmaciones.

Esta capa contiene las implementaciones concretas de los puertos (interfaces).
Incluye adaptadores para bases de datos, gateways externos y servicios.

Estructura:
- db/: Repositorios SQL y configuración de base de datos
- gateways/: Adaptadores para servicios externos (hoteles, vuelos, Stripe)
- in_memory/: Implementaciones in-memory para desarrollo y testing
- messaging/: Poller de reconfirmaciones
- services/: Servicios de infraestructura (notificaciones)
"""

# Database
from app.infrastructure.db.repositories.booking_repo_sql import BookingRepoSQL
from app.infrastructure.db.repositories.confirmation_store_sql import ConfirmationStoreSQL
from app.infrastructure.db.repositories.notification_repo_sql import NotificationRepoSQL
from app.infrastructure.db.repositories.payment_repo_sql import PaymentRepoSQL
from app.infrastructure.db.repositories.quote_repo_sql import QuoteRepoSQL
from app.infrastructure.db.repositories.subscription_repo_sql import SubscriptionRepoSQL
from app.infrastructure.db.repositories.webhook_event_repo_sql import WebhookEventRepoSQL
from app.infrastructure.db.transaction_manager import SQLAlchemyTransactionManager

# Gateways
from app.infrastructure.gateways.flight_provider_gateway import FlightProviderGatewayHTTP
from app.infrastructure.gateways.hotel_provider_gateway import HotelProviderGatewayHTTP
from app.infrastructure.gateways.stripe_gateway_real import StripeGatewayReal

# In-Memory (for testing)
from app.infrastructure.in_memory import (
    InMemoryBookingRepo,
    InMemoryConfirmationStore,
    InMemoryNotificationRepo,
    InMemoryPaymentRepo,
    InMemoryQuoteRepo,
    InMemoryStripeGateway,
    InMemorySubscriptionRepo,
    InMemoryTransactionManager,
    InMemoryWebhookEventRepo,
)

# Messaging
from app.infrastructure.messaging.reconfirmation_poller import ReconfirmationPoller

# Services
from app.infrastructure.services.notifier import RecordingNotifier

__all__ = [
    # Database - Repositories SQL
    "QuoteRepoSQL",
    "BookingRepoSQL",
    "ConfirmationStoreSQL",
    "PaymentRepoSQL",
    "SubscriptionRepoSQL",
    "WebhookEventRepoSQL",
    "NotificationRepoSQL",
    "SQLAlchemyTransactionManager",
    # Gateways
    "HotelProviderGatewayHTTP",
    "FlightProviderGatewayHTTP",
    "StripeGatewayReal",
    # In-Memory Implementations
    "InMemoryQuoteRepo",
    "InMemoryBookingRepo",
    "InMemoryConfirmationStore",
    "InMemoryPaymentRepo",
    "InMemorySubscriptionRepo",
    "InMemoryWebhookEventRepo",
    "InMemoryNotificationRepo",
    "InMemoryStripeGateway",
    "InMemoryTransactionManager",
    # Messaging
    "ReconfirmationPoller",
    # Services
    "RecordingNotifier",
]
