from dataclasses import replace
from decimal import Decimal
from typing import Sequence

from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.interfaces.booking_repo import BookingRepo
from app.domain.entities.booking import Booking, BookingItem, BookingPaymentStatus, BookingStatus
from app.domain.errors import DuplicateBookingError, PersistenceError
from app.infrastructure.db.errors import from_db_datetime, persistence_errors, to_db_datetime
from app.infrastructure.db.tables import booking_items, bookings


class BookingRepoSQL(BookingRepo):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, booking: Booking) -> Booking:
        stmt = insert(bookings).values(
            booking_reference=booking.booking_reference,
            quote_id=booking.quote_id,
            customer_id=booking.customer_id,
            agent_id=booking.agent_id,
            status=booking.status.value,
            total_price=booking.total_price,
            amount_paid=booking.amount_paid,
            payment_status=booking.payment_status.value,
            payment_reference=booking.payment_reference,
            travel_start_date=booking.travel_start_date,
            travel_end_date=booking.travel_end_date,
            created_at=to_db_datetime(booking.created_at),
            updated_at=to_db_datetime(booking.updated_at),
        )
        try:
            result = await self._session.execute(stmt)
        except IntegrityError as exc:
            raise DuplicateBookingError(booking.quote_id, booking.agent_id) from exc
        except SQLAlchemyError as exc:
            raise PersistenceError("Failed to create booking") from exc
        return replace(booking, id=result.inserted_primary_key[0])

    async def add_items(self, items: Sequence[BookingItem]) -> list[BookingItem]:
        saved: list[BookingItem] = []
        with persistence_errors("copy booking items"):
            for item in items:
                stmt = insert(booking_items).values(
                    booking_id=item.booking_id,
                    quote_item_id=item.quote_item_id,
                    item_type=item.item_type,
                    item_name=item.item_name,
                    cost=item.cost,
                    quantity=item.quantity,
                    details=item.details,
                )
                result = await self._session.execute(stmt)
                saved.append(replace(item, id=result.inserted_primary_key[0]))
        return saved

    async def get_by_id(self, booking_id: int) -> Booking | None:
        return await self._fetch_one(bookings.c.id == booking_id)

    async def get_for_agent(self, booking_id: int, agent_id: str) -> Booking | None:
        return await self._fetch_one(bookings.c.id == booking_id, bookings.c.agent_id == agent_id)

    async def find_by_quote(self, quote_id: int, agent_id: str) -> Booking | None:
        return await self._fetch_one(bookings.c.quote_id == quote_id, bookings.c.agent_id == agent_id)

    async def list_items(self, booking_id: int) -> Sequence[BookingItem]:
        with persistence_errors("list booking items"):
            stmt = (
                select(booking_items)
                .where(booking_items.c.booking_id == booking_id)
                .order_by(booking_items.c.id)
            )
            result = await self._session.execute(stmt)
            rows = result.mappings().all()
        return [
            BookingItem(
                id=row["id"],
                booking_id=row["booking_id"],
                quote_item_id=row.get("quote_item_id"),
                item_type=row["item_type"],
                item_name=row["item_name"],
                cost=Decimal(str(row["cost"])),
                quantity=row["quantity"],
                details=row.get("details") or {},
            )
            for row in rows
        ]

    async def update_payment_totals(
        self,
        booking_id: int,
        amount_paid: Decimal,
        payment_status: BookingPaymentStatus,
    ) -> None:
        with persistence_errors("update booking payment totals"):
            stmt = (
                update(bookings)
                .where(bookings.c.id == booking_id)
                .values(amount_paid=amount_paid, payment_status=payment_status.value)
            )
            await self._session.execute(stmt)

    async def _fetch_one(self, *conditions) -> Booking | None:
        with persistence_errors("load booking"):
            stmt = select(bookings).where(*conditions).limit(1)
            result = await self._session.execute(stmt)
            row = result.mappings().first()
        return self._map_booking(row) if row else None

    def _map_booking(self, row) -> Booking:
        return Booking(
            id=row["id"],
            booking_reference=row["booking_reference"],
            quote_id=row["quote_id"],
            customer_id=row.get("customer_id"),
            agent_id=row["agent_id"],
            status=BookingStatus(row["status"]),
            total_price=Decimal(str(row["total_price"])),
            amount_paid=Decimal(str(row["amount_paid"] or 0)),
            payment_status=BookingPaymentStatus(row["payment_status"]),
            payment_reference=row.get("payment_reference"),
            travel_start_date=row.get("travel_start_date"),
            travel_end_date=row.get("travel_end_date"),
            created_at=from_db_datetime(row.get("created_at")),
            updated_at=from_db_datetime(row.get("updated_at")),
        )
