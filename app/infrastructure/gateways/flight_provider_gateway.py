import logging
from typing import Any

import httpx

from app.application.interfaces.clock import Clock
from app.application.interfaces.confirmation_store import ConfirmationStore
from app.application.interfaces.provider_gateway import FlightProviderGateway
from app.domain.entities.booking import Booking
from app.domain.entities.confirmation import (
    LATE_PROVIDER_CONFIRMATION_NOTE,
    BookingConfirmation,
    ConfirmationProvider,
    ConfirmationStatus,
)
from app.domain.entities.quote import Customer, QuoteItem
from app.domain.errors import DuplicateConfirmationError, ProviderError
from app.domain.value_objects.item_details import FlightOfferDetails
from app.infrastructure.circuit_breaker import async_provider_breaker, flight_breaker

PROVIDER = ConfirmationProvider.FLIGHT.value
ORDERS_PATH = "/air/orders"

# Valores de relleno cuando el cliente no trae el dato
DEFAULT_TITLE = "mr"
DEFAULT_GIVEN_NAME = "TRAVELER"
DEFAULT_EMAIL = "customer@example.com"
DEFAULT_PHONE = "+1234567890"
DEFAULT_GENDER = "m"
CHILD_BORN_ON = "2015-01-01"
ADULT_BORN_ON = "1985-01-01"


def build_passengers(details: FlightOfferDetails, customer: Customer | None) -> list[dict[str, Any]]:
    """Un pasajero por viajero: adultos, niños y seniors (como adultos), con ids pas_00000001..."""
    passengers = []
    for index, passenger_type in enumerate(details.travelers.passenger_types(), start=1):
        passengers.append(
            {
                "type": passenger_type,
                "title": DEFAULT_TITLE,
                "given_name": (customer.first_name if customer else "") or DEFAULT_GIVEN_NAME,
                "family_name": (customer.last_name if customer else "") or str(index),
                "born_on": CHILD_BORN_ON if passenger_type == "child" else ADULT_BORN_ON,
                "email": (customer.email if customer else None) or DEFAULT_EMAIL,
                "phone_number": (customer.phone if customer else None) or DEFAULT_PHONE,
                "gender": DEFAULT_GENDER,
                "id": f"pas_{index:08d}",
            }
        )
    return passengers


def _error_message(response: httpx.Response) -> str:
    message = "Failed to create flight order"
    try:
        data = response.json()
    except ValueError:
        return message
    errors = data.get("errors") if isinstance(data, dict) else None
    if isinstance(errors, list) and errors and isinstance(errors[0], dict) and errors[0].get("message"):
        return errors[0]["message"]
    return message


def _flight_number(order: dict[str, Any]) -> str:
    try:
        segment = order["slices"][0]["segments"][0]
        return f"{segment['marketing_carrier']['iata_code']}{segment['marketing_carrier_flight_number']}"
    except (KeyError, IndexError, TypeError):
        return "N/A"


def _first_segment(order: dict[str, Any]) -> dict[str, Any]:
    try:
        return order["slices"][0]["segments"][0] or {}
    except (KeyError, IndexError, TypeError):
        return {}


class FlightProviderGatewayHTTP(FlightProviderGateway):
    """
    Gateway para el proveedor de vuelos: orden instantánea sobre una oferta.

    Auth: Bearer token + header de versión de la API.
    """

    def __init__(
        self,
        confirmation_store: ConfirmationStore,
        clock: Clock,
        access_token: str | None,
        base_url: str,
        api_version: str = "v2",
        timeout_seconds: float = 30.0,
    ) -> None:
        self._confirmation_store = confirmation_store
        self._clock = clock
        self._access_token = access_token
        self._base_url = base_url.rstrip("/")
        self._api_version = api_version
        self._timeout = timeout_seconds
        self._logger = logging.getLogger(__name__)

    async def book_flight(
        self,
        booking: Booking,
        item: QuoteItem,
        customer: Customer | None,
        details: FlightOfferDetails,
    ) -> BookingConfirmation:
        request_body: dict[str, Any] | None = None
        try:
            if not self._access_token:
                raise ProviderError(PROVIDER, "Flight provider credentials not configured")
            request_body = self._build_request(item, customer, details)
            data = await self._create_order(request_body)
            order = data.get("data") if isinstance(data, dict) else None
            if not isinstance(order, dict) or not order.get("id"):
                raise ProviderError(PROVIDER, "Flight provider error: response has no order id")
        except ProviderError as exc:
            self._logger.error(
                "Flight booking failed",
                extra={
                    "booking_id": booking.id,
                    "quote_item_id": item.id,
                    "http_status": exc.http_status,
                    "error": exc.message,
                },
            )
            await self._confirmation_store.record(
                BookingConfirmation.failed_attempt(
                    booking_id=booking.id,
                    quote_item_id=item.id,
                    provider=ConfirmationProvider.FLIGHT,
                    error=exc.message,
                    amount=item.line_total,
                    now=self._clock.now(),
                    currency=details.total_currency or "USD",
                    raw_request=request_body,
                )
            )
            raise

        return await self._record_success(booking, item, customer, details, request_body, data)

    def _build_request(
        self,
        item: QuoteItem,
        customer: Customer | None,
        details: FlightOfferDetails,
    ) -> dict[str, Any]:
        return {
            "data": {
                "type": "instant",
                "selected_offers": [details.offer_id],
                "passengers": build_passengers(details, customer),
                "payments": [
                    {
                        "type": "balance",
                        "currency": details.total_currency or "USD",
                        "amount": details.total_amount or f"{item.line_total:.2f}",
                    }
                ],
            }
        }

    @async_provider_breaker(flight_breaker, PROVIDER)
    async def _create_order(self, request_body: dict[str, Any]) -> dict[str, Any]:
        url = f"{self._base_url}{ORDERS_PATH}"
        headers = {
            "Authorization": f"Bearer {self._access_token}",
            "Duffel-Version": self._api_version,
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(url, json=request_body, headers=headers)
        except httpx.TimeoutException as exc:
            raise ProviderError(PROVIDER, "Flight provider error: request timed out") from exc
        except httpx.HTTPError as exc:
            raise ProviderError(PROVIDER, f"Flight provider error: {exc}") from exc

        if not response.is_success:
            raise ProviderError(
                PROVIDER,
                f"Flight provider error: {_error_message(response)}",
                http_status=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError(
                PROVIDER,
                "Flight provider error: invalid JSON response",
                http_status=response.status_code,
            ) from exc

    async def _record_success(
        self,
        booking: Booking,
        item: QuoteItem,
        customer: Customer | None,
        details: FlightOfferDetails,
        request_body: dict[str, Any],
        response_body: dict[str, Any],
    ) -> BookingConfirmation:
        order = response_body["data"]
        order_id = order["id"]
        pnr = order.get("booking_reference")
        segment = _first_segment(order)
        now = self._clock.now()

        booking_details = {
            "flight_name": item.item_name,
            "pnr": pnr,
            "confirmation_number": order_id,
            "booking_reference": pnr,
            "flight_number": _flight_number(order),
            "departure": segment.get("departing_at"),
            "arrival": segment.get("arriving_at"),
        }
        if customer and customer.full_name:
            booking_details["passenger_name"] = customer.full_name

        attempt = BookingConfirmation(
            booking_id=booking.id,
            quote_item_id=item.id,
            provider=ConfirmationProvider.FLIGHT,
            provider_booking_id=order_id,
            confirmation_number=order_id,
            booking_reference=pnr,
            status=ConfirmationStatus.CONFIRMED,
            raw_request=request_body,
            raw_response=response_body,
            booking_details=booking_details,
            amount=item.line_total,
            currency=details.total_currency or "USD",
            created_at=now,
            updated_at=now,
        )
        try:
            confirmation = await self._confirmation_store.record(attempt)
        except DuplicateConfirmationError:
            self._logger.warning(
                "Item already confirmed, keeping flight order for agent review",
                extra={"booking_id": booking.id, "quote_item_id": item.id, "order_id": order_id, "pnr": pnr},
            )
            return await self._confirmation_store.record(
                attempt.pending_review(LATE_PROVIDER_CONFIRMATION_NOTE)
            )
        self._logger.info(
            "Flight order recorded",
            extra={"booking_id": booking.id, "quote_item_id": item.id, "order_id": order_id, "pnr": pnr},
        )
        return confirmation
