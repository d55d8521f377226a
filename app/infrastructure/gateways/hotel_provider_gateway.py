import hashlib
import logging
from typing import Any

import httpx

from app.application.interfaces.clock import Clock
from app.application.interfaces.confirmation_store import ConfirmationStore
from app.application.interfaces.provider_gateway import HotelProviderGateway
from app.domain.entities.booking import Booking
from app.domain.entities.confirmation import (
    LATE_PROVIDER_CONFIRMATION_NOTE,
    BookingConfirmation,
    ConfirmationProvider,
    ConfirmationStatus,
)
from app.domain.entities.quote import Customer, QuoteItem
from app.domain.errors import DuplicateConfirmationError, ProviderError
from app.domain.value_objects.item_details import HotelRateDetails
from app.infrastructure.circuit_breaker import async_provider_breaker, hotel_breaker

PROVIDER = ConfirmationProvider.HOTEL.value
BOOKINGS_PATH = "/hotel-api/1.0/bookings"


def generate_signature(api_key: str, secret: str, timestamp: int) -> str:
    """X-Signature: SHA-256 hex de api_key + secret + timestamp (segundos epoch)."""
    return hashlib.sha256(f"{api_key}{secret}{timestamp}".encode("utf-8")).hexdigest()


def _error_message(response: httpx.Response) -> str:
    message = f"Hotel provider booking failed with status {response.status_code}"
    try:
        data = response.json()
    except ValueError:
        return message
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return error["message"]
        if data.get("message"):
            return data["message"]
    return message


class HotelProviderGatewayHTTP(HotelProviderGateway):
    """
    Gateway para el proveedor de hoteles (API de reservas con rate key).

    Auth: header Api-key + X-Signature calculada por request.
    Todo intento queda registrado en el ConfirmationStore: la confirmación
    exitosa o una fila `failed` antes de propagar el ProviderError. Si el
    item ya tiene una fila `confirmed`, la reserva del proveedor se guarda
    como `pending` para revisión del agente.
    """

    def __init__(
        self,
        confirmation_store: ConfirmationStore,
        clock: Clock,
        api_key: str | None,
        secret: str | None,
        base_url: str,
        timeout_seconds: float = 30.0,
    ) -> None:
        self._confirmation_store = confirmation_store
        self._clock = clock
        self._api_key = api_key
        self._secret = secret
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._logger = logging.getLogger(__name__)

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key and self._secret)

    async def book_hotel(
        self,
        booking: Booking,
        item: QuoteItem,
        customer: Customer | None,
        details: HotelRateDetails,
    ) -> BookingConfirmation:
        request_body: dict[str, Any] | None = None
        try:
            if not self.is_configured:
                raise ProviderError(PROVIDER, "Hotel provider credentials not configured")
            request_body = self._build_request(booking, customer, details)
            data = await self._post_booking(request_body)
            provider_booking = data.get("booking") if isinstance(data, dict) else None
            if not isinstance(provider_booking, dict) or not provider_booking.get("reference"):
                raise ProviderError(PROVIDER, "Hotel provider response has no booking reference")
        except ProviderError as exc:
            self._logger.error(
                "Hotel booking failed",
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
                    provider=ConfirmationProvider.HOTEL,
                    error=exc.message,
                    amount=item.line_total,
                    now=self._clock.now(),
                    raw_request=request_body,
                )
            )
            raise

        return await self._record_success(booking, item, customer, details, request_body, provider_booking)

    async def get_booking(self, provider_booking_id: str) -> dict[str, Any]:
        if not self.is_configured:
            raise ProviderError(PROVIDER, "Hotel provider credentials not configured")
        return await self._get_booking(provider_booking_id)

    # === HTTP ===

    def _headers(self) -> dict[str, str]:
        timestamp = int(self._clock.now().timestamp())
        return {
            "Api-key": self._api_key or "",
            "X-Signature": generate_signature(self._api_key or "", self._secret or "", timestamp),
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

    @async_provider_breaker(hotel_breaker, PROVIDER)
    async def _post_booking(self, request_body: dict[str, Any]) -> dict[str, Any]:
        url = f"{self._base_url}{BOOKINGS_PATH}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(url, json=request_body, headers=self._headers())
        except httpx.TimeoutException as exc:
            raise ProviderError(PROVIDER, "Hotel provider booking failed: request timed out") from exc
        except httpx.HTTPError as exc:
            raise ProviderError(PROVIDER, f"Hotel provider booking failed: {exc}") from exc

        if not response.is_success:
            raise ProviderError(
                PROVIDER,
                f"Hotel provider booking failed: {_error_message(response)}",
                http_status=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError(
                PROVIDER,
                "Invalid JSON response from hotel provider booking API",
                http_status=response.status_code,
            ) from exc

    @async_provider_breaker(hotel_breaker, PROVIDER)
    async def _get_booking(self, provider_booking_id: str) -> dict[str, Any]:
        url = f"{self._base_url}{BOOKINGS_PATH}/{provider_booking_id}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(url, headers=self._headers())
        except httpx.HTTPError as exc:
            raise ProviderError(PROVIDER, f"Hotel provider lookup failed: {exc}") from exc

        if not response.is_success:
            raise ProviderError(
                PROVIDER,
                f"Hotel provider lookup failed with status {response.status_code}",
                http_status=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError(PROVIDER, "Invalid JSON response from hotel provider lookup") from exc

    # === Mapeo ===

    def _build_request(
        self,
        booking: Booking,
        customer: Customer | None,
        details: HotelRateDetails,
    ) -> dict[str, Any]:
        name = (customer.first_name if customer else "") or "Guest"
        surname = (customer.last_name if customer else "") or "Traveler"
        millis = str(int(self._clock.now().timestamp() * 1000))
        return {
            "holder": {"name": name, "surname": surname},
            "rooms": [
                {
                    "rateKey": details.rate_key,
                    "paxes": [{"roomId": 1, "type": "AD", "name": name, "surname": surname}],
                }
            ],
            "clientReference": f"BK{booking.id}-{millis[-8:]}",
        }

    async def _record_success(
        self,
        booking: Booking,
        item: QuoteItem,
        customer: Customer | None,
        details: HotelRateDetails,
        request_body: dict[str, Any],
        provider_booking: dict[str, Any],
    ) -> BookingConfirmation:
        reference = provider_booking["reference"]
        provider_status = str(provider_booking.get("status") or "CONFIRMED")
        status = (
            ConfirmationStatus.CONFIRMED
            if provider_status.lower() == "confirmed"
            else ConfirmationStatus.PENDING
        )
        now = self._clock.now()
        booking_details = {
            "hotel_name": item.item_name,
            "check_in": details.check_in,
            "check_out": details.check_out,
            "confirmation_number": reference,
            "rate_key_used": details.rate_key,
            "hotel_code": details.hotel_code,
        }
        if customer and customer.full_name:
            booking_details["guest_name"] = customer.full_name

        attempt = BookingConfirmation(
            booking_id=booking.id,
            quote_item_id=item.id,
            provider=ConfirmationProvider.HOTEL,
            provider_booking_id=reference,
            confirmation_number=reference,
            booking_reference=provider_booking.get("clientReference") or request_body["clientReference"],
            status=status,
            raw_request=request_body,
            raw_response={"booking": provider_booking},
            booking_details=booking_details,
            amount=item.line_total,
            currency=details.currency or "EUR",
            created_at=now,
            updated_at=now,
        )
        try:
            confirmation = await self._confirmation_store.record(attempt)
        except DuplicateConfirmationError:
            self._logger.warning(
                "Item already confirmed, keeping hotel booking for agent review",
                extra={"booking_id": booking.id, "quote_item_id": item.id, "confirmation_number": reference},
            )
            return await self._confirmation_store.record(
                attempt.pending_review(LATE_PROVIDER_CONFIRMATION_NOTE)
            )
        self._logger.info(
            "Hotel booking recorded",
            extra={
                "booking_id": booking.id,
                "quote_item_id": item.id,
                "confirmation_number": reference,
                "status": status.value,
            },
        )
        return confirmation
