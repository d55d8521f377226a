"""Interfaces (Puertos) de la capa de aplicación."""

from app.application.interfaces.booking_repo import BookingRepo
from app.application.interfaces.clock import Clock, FakeClock, SystemClock
from app.application.interfaces.confirmation_store import ConfirmationStore
from app.application.interfaces.notification_repo import NotificationRepo
from app.application.interfaces.notifier import Notifier
from app.application.interfaces.payment_repo import PaymentRepo
from app.application.interfaces.provider_gateway import FlightProviderGateway, HotelProviderGateway
from app.application.interfaces.quote_repo import QuoteRepo
from app.application.interfaces.stripe_gateway import StripeGateway
from app.application.interfaces.subscription_repo import SubscriptionRepo
from app.application.interfaces.transaction_manager import TransactionManager
from app.application.interfaces.webhook_event_repo import WebhookEventRepo

__all__ = [
    # Repositories
    "QuoteRepo",
    "BookingRepo",
    "ConfirmationStore",
    "PaymentRepo",
    "SubscriptionRepo",
    "WebhookEventRepo",
    "NotificationRepo",
    # Gateways
    "HotelProviderGateway",
    "FlightProviderGateway",
    "StripeGateway",
    "Notifier",
    # Infrastructure
    "TransactionManager",
    # Utilities
    "Clock",
    "SystemClock",
    "FakeClock",
]
