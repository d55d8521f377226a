import asyncio
from contextlib import asynccontextmanager
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.application.use_cases.reconfirm_hotel_bookings import (
    ReconfirmationCycleResult,
    ReconfirmHotelBookingsUseCase,
)
from app.domain.entities.booking import Booking
from app.domain.entities.confirmation import (
    BookingConfirmation,
    ConfirmationProvider,
    ConfirmationStatus,
)
from app.domain.entities.quote import Customer
from app.domain.errors import ProviderError
from app.infrastructure.in_memory.booking_repo import InMemoryBookingRepo
from app.infrastructure.in_memory.confirmation_store import InMemoryConfirmationStore
from app.infrastructure.in_memory.notification_repo import InMemoryNotificationRepo
from app.infrastructure.in_memory.quote_repo import InMemoryQuoteRepo
from app.infrastructure.in_memory.transaction_manager import NoopTransactionManager
from app.infrastructure.messaging.reconfirmation_poller import ReconfirmationPoller
from app.infrastructure.services.notifier import RecordingNotifier
from tests.helpers import AGENT_ID


def _hotel_row(booking_id, item_id, created_at, **overrides) -> BookingConfirmation:
    defaults = dict(
        booking_id=booking_id,
        quote_item_id=item_id,
        provider=ConfirmationProvider.HOTEL,
        provider_booking_id=f"102-{item_id}",
        confirmation_number=f"102-{item_id}",
        status=ConfirmationStatus.CONFIRMED,
        booking_details={"hotel_name": "Hotel Riviera"},
        created_at=created_at,
        updated_at=created_at,
    )
    defaults.update(overrides)
    return BookingConfirmation(**defaults)


def _provider_booking(number: str | None) -> dict:
    hotel = {"name": "Hotel Riviera"}
    if number:
        hotel["confirmationNumber"] = number
    return {"booking": {"status": "CONFIRMED", "modificationDate": "2026-03-01", "hotel": hotel}}


class ReconfirmationHarness:
    def __init__(self, clock):
        self.clock = clock
        self.store = InMemoryConfirmationStore()
        self.booking_repo = InMemoryBookingRepo()
        self.quote_repo = InMemoryQuoteRepo()
        self.notification_repo = InMemoryNotificationRepo()
        self.gateway = MagicMock()
        self.gateway.is_configured = True
        self.gateway.get_booking = AsyncMock()
        self.sleep = AsyncMock()
        self.use_case = ReconfirmHotelBookingsUseCase(
            confirmation_store=self.store,
            hotel_gateway=self.gateway,
            notifier=RecordingNotifier(self.notification_repo, self.booking_repo, self.quote_repo, clock),
            transaction_manager=NoopTransactionManager(),
            clock=clock,
            lookback_days=30,
            request_delay_seconds=2.0,
            sleep=self.sleep,
        )

    async def seed_booking(self) -> Booking:
        customer = self.quote_repo.add_customer(Customer(first_name="Ana", email="ana@example.com"))
        return await self.booking_repo.create(
            Booking(booking_reference="BKG-1-AAAAA", quote_id=1, agent_id=AGENT_ID, customer_id=customer.id)
        )


@pytest.fixture
def harness(clock):
    return ReconfirmationHarness(clock)


class TestReconfirmHotelBookings:
    @pytest.mark.asyncio
    async def test_number_is_recorded_without_changing_status(self, harness, clock):
        booking = await harness.seed_booking()
        row = await harness.store.record(_hotel_row(booking.id, 1, clock.now() - timedelta(days=1)))
        harness.gateway.get_booking.return_value = _provider_booking("HC-777")

        result = await harness.use_case.execute()

        assert result == ReconfirmationCycleResult(checked=1, updated=1, failed=0)
        (stored,) = await harness.store.list_for_booking(booking.id)
        assert stored.id == row.id
        assert stored.status == ConfirmationStatus.CONFIRMED
        assert stored.hotel_reconfirmation_number == "HC-777"
        assert stored.reconfirmation_received_at == clock.now()
        assert stored.booking_details["hotel_status"] == "CONFIRMED"
        assert stored.booking_details["reconfirmation_details"] == {
            "hotel": "Hotel Riviera",
            "status": "CONFIRMED",
            "modification_date": "2026-03-01",
        }
        harness.gateway.get_booking.assert_awaited_once_with("102-1")

        notifications = await harness.notification_repo.list_for_user(AGENT_ID)
        assert len(notifications) == 1
        assert "HC-777" in notifications[0].message

    @pytest.mark.asyncio
    async def test_only_eligible_rows_are_checked(self, harness, clock):
        booking = await harness.seed_booking()
        now = clock.now()
        await harness.store.record(_hotel_row(booking.id, 1, now - timedelta(days=2)))
        await harness.store.record(_hotel_row(booking.id, 2, now - timedelta(days=45)))
        await harness.store.record(_hotel_row(booking.id, 3, now, hotel_reconfirmation_number="HC-1"))
        await harness.store.record(_hotel_row(booking.id, 4, now, status=ConfirmationStatus.FAILED))
        await harness.store.record(_hotel_row(booking.id, 5, now, provider=ConfirmationProvider.MANUAL))
        harness.gateway.get_booking.return_value = _provider_booking(None)

        result = await harness.use_case.execute()

        assert result.checked == 1
        assert result.updated == 0
        harness.gateway.get_booking.assert_awaited_once_with("102-1")

    @pytest.mark.asyncio
    async def test_failed_lookup_is_skipped_and_retried_next_cycle(self, harness, clock):
        booking = await harness.seed_booking()
        await harness.store.record(_hotel_row(booking.id, 1, clock.now()))
        await harness.store.record(_hotel_row(booking.id, 2, clock.now()))
        harness.gateway.get_booking.side_effect = [
            ProviderError("hotel-provider", "Hotel provider lookup failed with status 500", http_status=500),
            _provider_booking("HC-2"),
        ]

        result = await harness.use_case.execute()

        assert result.checked == 2
        assert result.updated == 1
        assert result.failed == 1
        # Pausa fija entre consultas consecutivas
        harness.sleep.assert_awaited_once_with(2.0)
        pending = await harness.store.list_awaiting_reconfirmation(
            ConfirmationProvider.HOTEL, clock.now() - timedelta(days=30)
        )
        assert [row.quote_item_id for row in pending] == [1]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "malformed",
        [
            {"booking": "oops"},
            {"booking": {"status": "CONFIRMED", "hotel": ["HC-1"]}},
            ["booking"],
        ],
    )
    async def test_malformed_lookup_counts_as_failure_and_batch_continues(self, harness, clock, malformed):
        booking = await harness.seed_booking()
        await harness.store.record(_hotel_row(booking.id, 1, clock.now()))
        await harness.store.record(_hotel_row(booking.id, 2, clock.now()))
        harness.gateway.get_booking.side_effect = [malformed, _provider_booking("HC-2")]

        result = await harness.use_case.execute()

        assert result == ReconfirmationCycleResult(checked=2, updated=1, failed=1)
        rows = {row.quote_item_id: row for row in await harness.store.list_for_booking(booking.id)}
        assert rows[1].hotel_reconfirmation_number is None
        assert rows[2].hotel_reconfirmation_number == "HC-2"

    @pytest.mark.asyncio
    async def test_skips_when_credentials_missing(self, harness, clock):
        harness.gateway.is_configured = False
        await harness.store.record(_hotel_row(1, 1, clock.now()))

        result = await harness.use_case.execute()

        assert result.skipped is True
        assert result.checked == 0
        harness.gateway.get_booking.assert_not_awaited()


class TestReconfirmationPoller:
    def _poller(self, clock, use_case, interval=3600):
        @asynccontextmanager
        async def factory():
            yield use_case

        return ReconfirmationPoller(use_case_factory=factory, clock=clock, interval_seconds=interval)

    @pytest.mark.asyncio
    async def test_start_runs_first_cycle_immediately_and_stop_is_idempotent(self, clock):
        use_case = MagicMock()
        use_case.execute = AsyncMock(return_value=ReconfirmationCycleResult(checked=3, updated=1))
        poller = self._poller(clock, use_case)

        poller.start()
        poller.start()
        for _ in range(10):
            await asyncio.sleep(0)

        assert poller.is_running
        use_case.execute.assert_awaited_once()
        status = poller.get_status()
        assert status["is_running"] is True
        assert status["check_interval_seconds"] == 3600
        assert status["last_run_checked"] == 3
        assert status["last_run_updated"] == 1
        assert status["next_check_at"] is not None

        await poller.stop()
        await poller.stop()

        assert not poller.is_running
        assert poller.get_status()["next_check_at"] is None

    @pytest.mark.asyncio
    async def test_concurrent_cycle_is_skipped(self, clock):
        release = asyncio.Event()

        async def slow_execute():
            await release.wait()
            return ReconfirmationCycleResult(checked=1)

        use_case = MagicMock()
        use_case.execute = AsyncMock(side_effect=slow_execute)
        poller = self._poller(clock, use_case)

        first = asyncio.create_task(poller.run_cycle())
        await asyncio.sleep(0)
        second = await poller.run_cycle()
        release.set()
        first_result = await first

        assert second is None
        assert first_result.checked == 1
        use_case.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_cycle_keeps_the_loop_alive(self, clock):
        use_case = MagicMock()
        use_case.execute = AsyncMock(side_effect=RuntimeError("boom"))
        poller = self._poller(clock, use_case)

        poller.start()
        for _ in range(10):
            await asyncio.sleep(0)

        assert poller.is_running
        await poller.stop()
