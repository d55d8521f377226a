"""Implementaciones in-memory para desarrollo y testing."""

from app.infrastructure.in_memory.booking_repo import InMemoryBookingRepo
from app.infrastructure.in_memory.confirmation_store import InMemoryConfirmationStore
from app.infrastructure.in_memory.notification_repo import InMemoryNotificationRepo
from app.infrastructure.in_memory.payment_repo import InMemoryPaymentRepo
from app.infrastructure.in_memory.quote_repo import InMemoryQuoteRepo
from app.infrastructure.in_memory.stripe_gateway import StubStripeGateway as InMemoryStripeGateway
from app.infrastructure.in_memory.subscription_repo import InMemorySubscriptionRepo
from app.infrastructure.in_memory.transaction_manager import NoopTransactionManager as InMemoryTransactionManager
from app.infrastructure.in_memory.webhook_event_repo import InMemoryWebhookEventRepo

__all__ = [
    # Repositories
    "InMemoryQuoteRepo",
    "InMemoryBookingRepo",
    "InMemoryConfirmationStore",
    "InMemoryPaymentRepo",
    "InMemorySubscriptionRepo",
    "InMemoryWebhookEventRepo",
    "InMemoryNotificationRepo",
    # Gateways
    "InMemoryStripeGateway",
    # Infrastructure
    "InMemoryTransactionManager",
]
