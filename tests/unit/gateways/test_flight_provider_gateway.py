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
from app.domain.value_objects.item_details import parse_item_details
from app.infrastructure.circuit_breaker import reset_breakers
from app.infrastructure.gateways.flight_provider_gateway import (
    FlightProviderGatewayHTTP,
    build_passengers,
)
from app.infrastructure.in_memory.confirmation_store import InMemoryConfirmationStore

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

OFFER = {
    "id": "off_1",
    "slices": [{"origin": "MEX", "destination": "MAD"}],
    "travelers": {"adults": 1, "children": 1, "seniors": 1},
}

ORDER_RESPONSE = {
    "data": {
        "id": "ord_0000A",
        "booking_reference": "RZPNX8",
        "slices": [
            {
                "segments": [
                    {
                        "marketing_carrier": {"iata_code": "IB"},
                        "marketing_carrier_flight_number": "6400",
                        "departing_at": "2026-04-10T18:00:00",
                        "arriving_at": "2026-04-11T12:30:00",
                    }
                ]
            }
        ],
    }
}


def _response(status_code: int, body) -> MagicMock:
    mock_resp = MagicMock()
    mock_resp.status_code = status_code
    mock_resp.is_success = 200 <= status_code < 300
    mock_resp.json.return_value = body
    return mock_resp


class TestBuildPassengers(unittest.TestCase):
    def test_placeholders_and_order(self):
        details = parse_item_details("Flight", OFFER)

        passengers = build_passengers(details, None)

        self.assertEqual([p["type"] for p in passengers], ["adult", "child", "adult"])
        self.assertEqual([p["id"] for p in passengers], ["pas_00000001", "pas_00000002", "pas_00000003"])
        self.assertEqual([p["family_name"] for p in passengers], ["1", "2", "3"])
        self.assertEqual(passengers[0]["given_name"], "TRAVELER")
        self.assertEqual(passengers[0]["born_on"], "1985-01-01")
        self.assertEqual(passengers[1]["born_on"], "2015-01-01")
        self.assertEqual(passengers[0]["email"], "customer@example.com")
        self.assertEqual(passengers[0]["phone_number"], "+1234567890")
        self.assertEqual(passengers[0]["title"], "mr")
        self.assertEqual(passengers[0]["gender"], "m")

    def test_customer_data_used_when_present(self):
        details = parse_item_details("Flight", {"id": "off_1", "slices": [{}]})
        customer = Customer(first_name="Ana", last_name="García", email="ana@example.com", phone="+34600000000")

        (passenger,) = build_passengers(details, customer)

        self.assertEqual(passenger["given_name"], "Ana")
        self.assertEqual(passenger["family_name"], "García")
        self.assertEqual(passenger["email"], "ana@example.com")
        self.assertEqual(passenger["phone_number"], "+34600000000")


class TestFlightProviderGateway(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        reset_breakers()
        self.store = InMemoryConfirmationStore()
        self.gateway = FlightProviderGatewayHTTP(
            confirmation_store=self.store,
            clock=FakeClock(NOW),
            access_token="duffel_test_token",
            base_url="https://flights.test",
            api_version="v2",
        )
        self.booking = Booking(id=5, booking_reference="BKG-1-ABCDE", quote_id=2, agent_id="agent-1")
        self.item = QuoteItem(
            id=11,
            quote_id=2,
            item_type="Flight",
            item_name="MEX-MAD",
            cost=Decimal("410.25"),
            quantity=2,
            details=OFFER,
        )

    def tearDown(self):
        reset_breakers()

    def _client(self, mock_client_cls, response) -> AsyncMock:
        mock_client = AsyncMock()
        mock_client.__aenter__.return_value = mock_client
        mock_client.post.return_value = response
        mock_client_cls.return_value = mock_client
        return mock_client

    @patch("httpx.AsyncClient")
    async def test_order_success(self, mock_client_cls):
        mock_client = self._client(mock_client_cls, _response(201, ORDER_RESPONSE))
        customer = Customer(first_name="Ana", last_name="García")

        confirmation = await self.gateway.book_flight(self.booking, self.item, customer, self.item.typed_details)

        self.assertEqual(confirmation.status, ConfirmationStatus.CONFIRMED)
        self.assertEqual(confirmation.provider, ConfirmationProvider.FLIGHT)
        self.assertEqual(confirmation.provider_booking_id, "ord_0000A")
        self.assertEqual(confirmation.booking_reference, "RZPNX8")
        self.assertEqual(confirmation.booking_details["pnr"], "RZPNX8")
        self.assertEqual(confirmation.booking_details["flight_number"], "IB6400")
        self.assertEqual(confirmation.booking_details["departure"], "2026-04-10T18:00:00")
        self.assertEqual(confirmation.booking_details["passenger_name"], "Ana García")
        self.assertEqual(confirmation.amount, Decimal("820.50"))

        args, kwargs = mock_client.post.call_args
        self.assertEqual(args[0], "https://flights.test/air/orders")
        self.assertEqual(kwargs["headers"]["Authorization"], "Bearer duffel_test_token")
        self.assertEqual(kwargs["headers"]["Duffel-Version"], "v2")
        data = kwargs["json"]["data"]
        self.assertEqual(data["type"], "instant")
        self.assertEqual(data["selected_offers"], ["off_1"])
        self.assertEqual(len(data["passengers"]), 3)
        self.assertEqual(data["payments"], [{"type": "balance", "currency": "USD", "amount": "820.50"}])

    @patch("httpx.AsyncClient")
    async def test_422_surfaces_provider_message(self, mock_client_cls):
        self._client(
            mock_client_cls,
            _response(422, {"errors": [{"message": "The selected offer is no longer available"}]}),
        )

        with self.assertRaises(ProviderError) as ctx:
            await self.gateway.book_flight(self.booking, self.item, None, self.item.typed_details)

        self.assertEqual(ctx.exception.message, "Flight provider error: The selected offer is no longer available")
        self.assertEqual(ctx.exception.http_status, 422)
        rows = await self.store.list_for_booking(5)
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0].status, ConfirmationStatus.FAILED)
        self.assertEqual(rows[0].raw_request["data"]["selected_offers"], ["off_1"])

    @patch("httpx.AsyncClient")
    async def test_error_without_message_uses_default(self, mock_client_cls):
        self._client(mock_client_cls, _response(500, {"errors": []}))

        with self.assertRaises(ProviderError) as ctx:
            await self.gateway.book_flight(self.booking, self.item, None, self.item.typed_details)

        self.assertEqual(ctx.exception.message, "Flight provider error: Failed to create flight order")

    @patch("httpx.AsyncClient")
    async def test_missing_token_fails_without_calling_provider(self, mock_client_cls):
        gateway = FlightProviderGatewayHTTP(
            confirmation_store=self.store,
            clock=FakeClock(NOW),
            access_token=None,
            base_url="https://flights.test",
        )

        with self.assertRaises(ProviderError):
            await gateway.book_flight(self.booking, self.item, None, self.item.typed_details)

        mock_client_cls.assert_not_called()

    @patch("httpx.AsyncClient")
    async def test_late_order_is_kept_for_review(self, mock_client_cls):
        await self.store.record(
            BookingConfirmation(
                booking_id=5,
                quote_item_id=11,
                provider=ConfirmationProvider.MANUAL,
                confirmation_number="FLIGHT-MAN-1",
                status=ConfirmationStatus.CONFIRMED,
            )
        )
        self._client(mock_client_cls, _response(201, ORDER_RESPONSE))

        confirmation = await self.gateway.book_flight(self.booking, self.item, None, self.item.typed_details)

        self.assertEqual(confirmation.status, ConfirmationStatus.PENDING)
        self.assertEqual(confirmation.provider_booking_id, "ord_0000A")
        self.assertEqual(confirmation.booking_reference, "RZPNX8")
        self.assertEqual(confirmation.booking_details["note"], LATE_PROVIDER_CONFIRMATION_NOTE)
        rows = await self.store.list_for_booking(5)
        self.assertEqual(
            [(r.provider, r.status) for r in rows],
            [
                (ConfirmationProvider.MANUAL, ConfirmationStatus.CONFIRMED),
                (ConfirmationProvider.FLIGHT, ConfirmationStatus.PENDING),
            ],
        )


if __name__ == "__main__":
    unittest.main()
