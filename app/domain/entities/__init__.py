"""Entidades del dominio de reservas."""

from app.domain.entities.booking import Booking, BookingItem, BookingPaymentStatus, BookingStatus
from app.domain.entities.confirmation import (
    BookingConfirmation,
    ConfirmationProvider,
    ConfirmationStatus,
)
from app.domain.entities.notification import Notification
from app.domain.entities.payment import CustomerPayment, PaymentStatus
from app.domain.entities.quote import Customer, ItemType, Quote, QuoteItem, QuoteStatus
from app.domain.entities.subscription import Subscription, SubscriptionStatus, SubscriptionTier
from app.domain.entities.webhook_event import PaymentWebhookEvent

__all__ = [
    # Quote
    "Quote",
    "QuoteItem",
    "QuoteStatus",
    "ItemType",
    "Customer",
    # Booking
    "Booking",
    "BookingItem",
    "BookingStatus",
    "BookingPaymentStatus",
    # Confirmation
    "BookingConfirmation",
    "ConfirmationProvider",
    "ConfirmationStatus",
    # Payments / Subscriptions
    "CustomerPayment",
    "PaymentStatus",
    "Subscription",
    "SubscriptionStatus",
    "SubscriptionTier",
    "PaymentWebhookEvent",
    "Notification",
]
