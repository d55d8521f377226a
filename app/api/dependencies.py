from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Any, AsyncIterator

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import AsyncSessionLocal
from app.application.interfaces.clock import SystemClock
from app.application.use_cases.create_booking import BookingOrchestrator
from app.application.use_cases.get_booking import GetBookingUseCase
from app.application.use_cases.handle_payment_webhook import HandlePaymentWebhookUseCase
from app.application.use_cases.manage_subscription import ManageSubscriptionUseCase
from app.application.use_cases.manual_fallback import ManualFallbackHandler
from app.application.use_cases.reconfirm_hotel_bookings import ReconfirmHotelBookingsUseCase
from app.config import Settings, get_settings
from app.domain.entities.subscription import SubscriptionTier
from app.infrastructure.db.repositories.booking_repo_sql import BookingRepoSQL
from app.infrastructure.db.repositories.confirmation_store_sql import ConfirmationStoreSQL
from app.infrastructure.db.repositories.notification_repo_sql import NotificationRepoSQL
from app.infrastructure.db.repositories.payment_repo_sql import PaymentRepoSQL
from app.infrastructure.db.repositories.quote_repo_sql import QuoteRepoSQL
from app.infrastructure.db.repositories.subscription_repo_sql import SubscriptionRepoSQL
from app.infrastructure.db.repositories.webhook_event_repo_sql import WebhookEventRepoSQL
from app.infrastructure.db.transaction_manager import SQLAlchemyTransactionManager
from app.infrastructure.gateways.flight_provider_gateway import FlightProviderGatewayHTTP
from app.infrastructure.gateways.hotel_provider_gateway import HotelProviderGatewayHTTP
from app.infrastructure.gateways.stripe_gateway_real import StripeGatewayReal
from app.infrastructure.in_memory.booking_repo import InMemoryBookingRepo
from app.infrastructure.in_memory.confirmation_store import InMemoryConfirmationStore
from app.infrastructure.in_memory.notification_repo import InMemoryNotificationRepo
from app.infrastructure.in_memory.payment_repo import InMemoryPaymentRepo
from app.infrastructure.in_memory.quote_repo import InMemoryQuoteRepo
from app.infrastructure.in_memory.stripe_gateway import StubStripeGateway
from app.infrastructure.in_memory.subscription_repo import InMemorySubscriptionRepo
from app.infrastructure.in_memory.transaction_manager import NoopTransactionManager
from app.infrastructure.in_memory.webhook_event_repo import InMemoryWebhookEventRepo
from app.infrastructure.messaging.reconfirmation_poller import ReconfirmationPoller
from app.infrastructure.services.notifier import RecordingNotifier


async def get_session(settings: Settings = Depends(get_settings)) -> AsyncSession | None:
    if settings.use_in_memory:
        yield None
        return
    async with AsyncSessionLocal() as session:
        yield session


async def get_current_agent_id(
    agent_id: str | None = Header(default=None, alias="X-Agent-Id"),
) -> str:
    """El gateway de autenticación resuelve al agente y lo envía en X-Agent-Id."""
    if not agent_id or not agent_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authenticated agent is required",
        )
    return agent_id.strip()


@lru_cache(maxsize=1)
def _in_memory_bundle() -> dict[str, Any]:
    return {
        "quote_repo": InMemoryQuoteRepo(),
        "booking_repo": InMemoryBookingRepo(),
        "confirmation_store": InMemoryConfirmationStore(),
        "payment_repo": InMemoryPaymentRepo(),
        "subscription_repo": InMemorySubscriptionRepo(),
        "webhook_event_repo": InMemoryWebhookEventRepo(),
        "notification_repo": InMemoryNotificationRepo(),
        "stripe_gateway": StubStripeGateway(),
        "tx_manager": NoopTransactionManager(),
        "clock": SystemClock(),
    }


def _sql_bundle(session: AsyncSession, settings: Settings) -> dict[str, Any]:
    return {
        "quote_repo": QuoteRepoSQL(session),
        "booking_repo": BookingRepoSQL(session),
        "confirmation_store": ConfirmationStoreSQL(session),
        "payment_repo": PaymentRepoSQL(session),
        "subscription_repo": SubscriptionRepoSQL(session),
        "webhook_event_repo": WebhookEventRepoSQL(session),
        "notification_repo": NotificationRepoSQL(session),
        "stripe_gateway": StripeGatewayReal(
            api_key=settings.stripe_api_key,
            webhook_tolerance_seconds=settings.stripe_webhook_tolerance_seconds,
        ),
        "tx_manager": SQLAlchemyTransactionManager(session),
        "clock": SystemClock(),
    }


def _build_use_cases(settings: Settings, bundle: dict[str, Any]) -> dict[str, Any]:
    clock = bundle["clock"]
    hotel_gateway = HotelProviderGatewayHTTP(
        confirmation_store=bundle["confirmation_store"],
        clock=clock,
        api_key=settings.hotel_provider_api_key,
        secret=settings.hotel_provider_secret,
        base_url=settings.hotel_provider_base_url,
        timeout_seconds=settings.hotel_provider_timeout_seconds,
    )
    flight_gateway = FlightProviderGatewayHTTP(
        confirmation_store=bundle["confirmation_store"],
        clock=clock,
        access_token=settings.flight_provider_access_token,
        base_url=settings.flight_provider_base_url,
        api_version=settings.flight_provider_api_version,
        timeout_seconds=settings.flight_provider_timeout_seconds,
    )
    notifier = RecordingNotifier(
        notification_repo=bundle["notification_repo"],
        booking_repo=bundle["booking_repo"],
        quote_repo=bundle["quote_repo"],
        clock=clock,
    )
    price_ids = {
        SubscriptionTier.BASIC: settings.stripe_basic_price_id,
        SubscriptionTier.PROFESSIONAL: settings.stripe_professional_price_id,
        SubscriptionTier.ENTERPRISE: settings.stripe_enterprise_price_id,
    }

    return {
        "create_booking": BookingOrchestrator(
            quote_repo=bundle["quote_repo"],
            booking_repo=bundle["booking_repo"],
            confirmation_store=bundle["confirmation_store"],
            hotel_gateway=hotel_gateway,
            flight_gateway=flight_gateway,
            fallback_handler=ManualFallbackHandler(bundle["confirmation_store"], clock),
            transaction_manager=bundle["tx_manager"],
            clock=clock,
        ),
        "get_booking": GetBookingUseCase(
            booking_repo=bundle["booking_repo"],
            confirmation_store=bundle["confirmation_store"],
            payment_repo=bundle["payment_repo"],
        ),
        "handle_webhook": HandlePaymentWebhookUseCase(
            stripe_gateway=bundle["stripe_gateway"],
            webhook_event_repo=bundle["webhook_event_repo"],
            subscription_repo=bundle["subscription_repo"],
            payment_repo=bundle["payment_repo"],
            booking_repo=bundle["booking_repo"],
            notifier=notifier,
            transaction_manager=bundle["tx_manager"],
            clock=clock,
            stripe_webhook_secret=settings.stripe_webhook_secret,
        ),
        "manage_subscription": ManageSubscriptionUseCase(
            subscription_repo=bundle["subscription_repo"],
            stripe_gateway=bundle["stripe_gateway"],
            transaction_manager=bundle["tx_manager"],
            clock=clock,
            price_ids=price_ids,
            default_trial_days=settings.subscription_trial_days,
        ),
        "reconfirm_hotels": ReconfirmHotelBookingsUseCase(
            confirmation_store=bundle["confirmation_store"],
            hotel_gateway=hotel_gateway,
            notifier=notifier,
            transaction_manager=bundle["tx_manager"],
            clock=clock,
            lookback_days=settings.reconfirmation_lookback_days,
            request_delay_seconds=settings.reconfirmation_request_delay_seconds,
        ),
    }


def get_use_cases(
    settings: Settings = Depends(get_settings),
    session: AsyncSession | None = Depends(get_session),
) -> dict[str, Any]:
    if settings.use_in_memory:
        return _build_use_cases(settings, _in_memory_bundle())

    if not session:
        raise RuntimeError("DB session not available")
    return _build_use_cases(settings, _sql_bundle(session, settings))


def build_reconfirmation_poller(settings: Settings) -> ReconfirmationPoller:
    """Cada ciclo del poller abre su propia sesión; no comparte la del request."""

    @asynccontextmanager
    async def use_case_factory() -> AsyncIterator[ReconfirmHotelBookingsUseCase]:
        if settings.use_in_memory:
            yield _build_use_cases(settings, _in_memory_bundle())["reconfirm_hotels"]
            return
        async with AsyncSessionLocal() as session:
            yield _build_use_cases(settings, _sql_bundle(session, settings))["reconfirm_hotels"]

    return ReconfirmationPoller(
        use_case_factory=use_case_factory,
        clock=SystemClock(),
        interval_seconds=settings.reconfirmation_interval_seconds,
    )


def get_reconfirmation_poller(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> ReconfirmationPoller:
    poller = getattr(request.app.state, "reconfirmation_poller", None)
    if poller is None:
        poller = build_reconfirmation_poller(settings)
        request.app.state.reconfirmation_poller = poller
    return poller
