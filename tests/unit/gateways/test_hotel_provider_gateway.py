import unittest
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

from app.application.interfaces.clock import FakeClock
from app.domain.entities.booking import Booking
from app.domain.entities.confirmation import (
    LATE_PROVIDER_CONFIRMATION_NOTE,
    BookingConfirmation,
    ConfirmationProvider,
    ConfirmationStatus,
)
from app.domain.entities.quote import Customer, QuoteItem
from app.domain.errors import ProviderError
from app.infrastructure.circuit_breaker import hotel_breaker, reset_breakers
from app.infrastructure.gateways.hotel_provider_gateway import (
    HotelProviderGatewayHTTP,
    generate_signature,
)
from app.infrastructure.in_memory.confirmation_store import InMemoryConfirmationStore

NOW = datetime.fromtimestamp(1_700_000_000, tz=timezone.utc)
EXPECTED_SIGNATURE = "a57e376bdc62117464642862aef47693251f4babfa45e8d69047e4354b5d7246"


def _response(status_code: int, body) -> MagicMock:
    mock_resp = MagicMock()
    mock_resp.status_code = status_code
    mock_resp.is_success = 200 <= status_code < 300
    mock_resp.json.return_value = body
    return mock_resp


class TestHotelSignature(unittest.TestCase):
    def test_signature_is_sha256_of_key_secret_timestamp(self):
        self.assertEqual(generate_signature("testkey", "testsecret", 1700000000), EXPECTED_SIGNATURE)


class TestHotelProviderGateway(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        reset_breakers()
        self.store = InMemoryConfirmationStore()
        self.gateway = HotelProviderGatewayHTTP(
            confirmation_store=self.store,
            clock=FakeClock(NOW),
            api_key="testkey",
            secret="testsecret",
            base_url="https://hotels.test/",
            timeout_seconds=5,
        )
        self.booking = Booking(id=42, booking_reference="BKG-1-ABCDE", quote_id=7, agent_id="agent-1")
        self.item = QuoteItem(
            id=10,
            quote_id=7,
            item_type="Hotel",
            item_name="Hotel Riviera",
            cost=Decimal("450.00"),
            quantity=2,
            details={"rateKey": "RK123", "hotelCode": "H-77", "checkInDate": "2026-04-10", "checkOutDate": "2026-04-12"},
        )
        self.customer = Customer(id=3, first_name="Ana", last_name="García", email="ana@example.com")

    def tearDown(self):
        reset_breakers()

    def _client(self, mock_client_cls, response) -> AsyncMock:
        mock_client = AsyncMock()
        mock_client.__aenter__.return_value = mock_client
        mock_client.post.return_value = response
        mock_client.get.return_value = response
        mock_client_cls.return_value = mock_client
        return mock_client

    @patch("httpx.AsyncClient")
    async def test_book_success(self, mock_client_cls):
        mock_client = self._client(
            mock_client_cls,
            _response(200, {"booking": {"reference": "102-3456789", "status": "CONFIRMED", "clientReference": "BK42-00000000"}}),
        )

        confirmation = await self.gateway.book_hotel(self.booking, self.item, self.customer, self.item.typed_details)

        self.assertEqual(confirmation.status, ConfirmationStatus.CONFIRMED)
        self.assertEqual(confirmation.provider, ConfirmationProvider.HOTEL)
        self.assertEqual(confirmation.provider_booking_id, "102-3456789")
        self.assertEqual(confirmation.confirmation_number, "102-3456789")
        self.assertEqual(confirmation.booking_reference, "BK42-00000000")
        self.assertEqual(confirmation.amount, Decimal("900.00"))
        self.assertEqual(confirmation.currency, "EUR")
        self.assertEqual(confirmation.booking_details["guest_name"], "Ana García")
        self.assertEqual(confirmation.booking_details["rate_key_used"], "RK123")

        # Verify auth headers and request body
        args, kwargs = mock_client.post.call_args
        self.assertEqual(args[0], "https://hotels.test/hotel-api/1.0/bookings")
        self.assertEqual(kwargs["headers"]["Api-key"], "testkey")
        self.assertEqual(kwargs["headers"]["X-Signature"], EXPECTED_SIGNATURE)
        body = kwargs["json"]
        self.assertEqual(body["holder"], {"name": "Ana", "surname": "García"})
        self.assertEqual(body["rooms"][0]["rateKey"], "RK123")
        self.assertEqual(body["rooms"][0]["paxes"][0]["type"], "AD")
        self.assertEqual(body["clientReference"], "BK42-00000000")

        rows = await self.store.list_for_booking(42)
        self.assertEqual(len(rows), 1)

    @patch("httpx.AsyncClient")
    async def test_non_confirmed_status_maps_to_pending(self, mock_client_cls):
        self._client(mock_client_cls, _response(200, {"booking": {"reference": "R-1", "status": "ON_REQUEST"}}))

        confirmation = await self.gateway.book_hotel(self.booking, self.item, None, self.item.typed_details)

        self.assertEqual(confirmation.status, ConfirmationStatus.PENDING)
        self.assertNotIn("guest_name", confirmation.booking_details)

    @patch("httpx.AsyncClient")
    async def test_placeholders_without_customer(self, mock_client_cls):
        mock_client = self._client(mock_client_cls, _response(200, {"booking": {"reference": "R-1", "status": "CONFIRMED"}}))

        await self.gateway.book_hotel(self.booking, self.item, None, self.item.typed_details)

        _, kwargs = mock_client.post.call_args
        self.assertEqual(kwargs["json"]["holder"], {"name": "Guest", "surname": "Traveler"})

    @patch("httpx.AsyncClient")
    async def test_book_error_records_failed_row(self, mock_client_cls):
        self._client(mock_client_cls, _response(400, {"error": {"message": "Rate not available"}}))

        with self.assertRaises(ProviderError) as ctx:
            await self.gateway.book_hotel(self.booking, self.item, self.customer, self.item.typed_details)

        self.assertEqual(ctx.exception.message, "Hotel provider booking failed: Rate not available")
        self.assertEqual(ctx.exception.http_status, 400)
        rows = await self.store.list_for_booking(42)
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0].status, ConfirmationStatus.FAILED)
        self.assertEqual(rows[0].error_details["error"], "Hotel provider booking failed: Rate not available")
        self.assertEqual(rows[0].error_details["timestamp"], NOW.isoformat())

    @patch("httpx.AsyncClient")
    async def test_error_without_body_uses_status_message(self, mock_client_cls):
        response = _response(503, None)
        response.json.side_effect = ValueError("no json")
        self._client(mock_client_cls, response)

        with self.assertRaises(ProviderError) as ctx:
            await self.gateway.book_hotel(self.booking, self.item, None, self.item.typed_details)

        self.assertEqual(
            ctx.exception.message,
            "Hotel provider booking failed: Hotel provider booking failed with status 503",
        )

    @patch("httpx.AsyncClient")
    async def test_missing_credentials_fail_without_calling_provider(self, mock_client_cls):
        gateway = HotelProviderGatewayHTTP(
            confirmation_store=self.store,
            clock=FakeClock(NOW),
            api_key=None,
            secret=None,
            base_url="https://hotels.test",
        )

        with self.assertRaises(ProviderError):
            await gateway.book_hotel(self.booking, self.item, None, self.item.typed_details)

        mock_client_cls.assert_not_called()
        rows = await self.store.list_for_booking(42)
        self.assertEqual([r.status for r in rows], [ConfirmationStatus.FAILED])

    @patch("httpx.AsyncClient")
    async def test_open_circuit_fails_fast_and_records_failure(self, mock_client_cls):
        hotel_breaker.open()

        with self.assertRaises(ProviderError) as ctx:
            await self.gateway.book_hotel(self.booking, self.item, None, self.item.typed_details)

        self.assertIn("circuit open", ctx.exception.message)
        mock_client_cls.assert_not_called()
        rows = await self.store.list_for_booking(42)
        self.assertEqual(rows[0].status, ConfirmationStatus.FAILED)

    @patch("httpx.AsyncClient")
    async def test_get_booking_uses_signed_get(self, mock_client_cls):
        body = {"booking": {"reference": "R-1", "hotel": {"confirmationNumber": "HC-9"}}}
        mock_client = self._client(mock_client_cls, _response(200, body))

        data = await self.gateway.get_booking("R-1")

        self.assertEqual(data, body)
        args, kwargs = mock_client.get.call_args
        self.assertEqual(args[0], "https://hotels.test/hotel-api/1.0/bookings/R-1")
        self.assertEqual(kwargs["headers"]["X-Signature"], EXPECTED_SIGNATURE)

    @patch("httpx.AsyncClient")
    async def test_late_confirmation_is_kept_for_review(self, mock_client_cls):
        manual = await self.store.record(
            BookingConfirmation(
                booking_id=42,
                quote_item_id=10,
                provider=ConfirmationProvider.MANUAL,
                confirmation_number="HOTEL-MAN-1",
                status=ConfirmationStatus.CONFIRMED,
            )
        )
        self._client(
            mock_client_cls,
            _response(200, {"booking": {"reference": "102-3456789", "status": "CONFIRMED"}}),
        )

        confirmation = await self.gateway.book_hotel(self.booking, self.item, self.customer, self.item.typed_details)

        self.assertEqual(confirmation.status, ConfirmationStatus.PENDING)
        self.assertEqual(confirmation.provider_booking_id, "102-3456789")
        self.assertTrue(confirmation.requires_agent_followup)
        self.assertEqual(confirmation.booking_details["note"], LATE_PROVIDER_CONFIRMATION_NOTE)
        rows = await self.store.list_for_booking(42)
        self.assertEqual([r.id for r in rows], [manual.id, confirmation.id])
        self.assertEqual([r.status for r in rows], [ConfirmationStatus.CONFIRMED, ConfirmationStatus.PENDING])


if __name__ == "__main__":
    unittest.main()
