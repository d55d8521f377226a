from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Any, Sequence

from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.interfaces.confirmation_store import ConfirmationStore
from app.domain.entities.confirmation import (
    BookingConfirmation,
    ConfirmationProvider,
    ConfirmationStatus,
)
from app.domain.errors import DuplicateConfirmationError, PersistenceError
from app.infrastructure.db.errors import from_db_datetime, persistence_errors, to_db_datetime
from app.infrastructure.db.tables import booking_confirmations


def confirmed_key(confirmation: BookingConfirmation) -> str | None:
    if not confirmation.is_confirmed:
        return None
    return f"{confirmation.booking_id}:{confirmation.quote_item_id}"


class ConfirmationStoreSQL(ConfirmationStore):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def record(self, confirmation: BookingConfirmation) -> BookingConfirmation:
        stmt = insert(booking_confirmations).values(
            booking_id=confirmation.booking_id,
            quote_item_id=confirmation.quote_item_id,
            provider=confirmation.provider.value,
            provider_booking_id=confirmation.provider_booking_id,
            confirmation_number=confirmation.confirmation_number,
            booking_reference=confirmation.booking_reference,
            status=confirmation.status.value,
            confirmed_key=confirmed_key(confirmation),
            raw_request=confirmation.raw_request,
            raw_response=confirmation.raw_response,
            error_details=confirmation.error_details,
            booking_details=confirmation.booking_details,
            amount=confirmation.amount,
            currency=confirmation.currency,
            hotel_reconfirmation_number=confirmation.hotel_reconfirmation_number,
            reconfirmation_received_at=to_db_datetime(confirmation.reconfirmation_received_at),
            created_at=to_db_datetime(confirmation.created_at),
            updated_at=to_db_datetime(confirmation.updated_at),
        )
        try:
            result = await self._session.execute(stmt)
        except IntegrityError as exc:
            raise DuplicateConfirmationError(confirmation.booking_id, confirmation.quote_item_id) from exc
        except SQLAlchemyError as exc:
            raise PersistenceError("Failed to record booking confirmation") from exc
        return replace(confirmation, id=result.inserted_primary_key[0])

    async def list_for_booking(self, booking_id: int) -> Sequence[BookingConfirmation]:
        with persistence_errors("list booking confirmations"):
            stmt = (
                select(booking_confirmations)
                .where(booking_confirmations.c.booking_id == booking_id)
                .order_by(booking_confirmations.c.id)
            )
            result = await self._session.execute(stmt)
            rows = result.mappings().all()
        return [self._map_confirmation(row) for row in rows]

    async def list_awaiting_reconfirmation(
        self,
        provider: ConfirmationProvider,
        created_after: datetime,
    ) -> Sequence[BookingConfirmation]:
        with persistence_errors("list confirmations awaiting reconfirmation"):
            stmt = (
                select(booking_confirmations)
                .where(
                    booking_confirmations.c.provider == provider.value,
                    booking_confirmations.c.status == ConfirmationStatus.CONFIRMED.value,
                    booking_confirmations.c.hotel_reconfirmation_number.is_(None),
                    booking_confirmations.c.created_at >= to_db_datetime(created_after),
                )
                .order_by(booking_confirmations.c.created_at, booking_confirmations.c.id)
            )
            result = await self._session.execute(stmt)
            rows = result.mappings().all()
        return [self._map_confirmation(row) for row in rows]

    async def record_reconfirmation(
        self,
        confirmation_id: int,
        reconfirmation_number: str,
        booking_details: dict[str, Any],
        received_at: datetime,
    ) -> None:
        with persistence_errors("record hotel reconfirmation"):
            stmt = (
                update(booking_confirmations)
                .where(booking_confirmations.c.id == confirmation_id)
                .values(
                    hotel_reconfirmation_number=reconfirmation_number,
                    reconfirmation_received_at=to_db_datetime(received_at),
                    booking_details=booking_details,
                    updated_at=to_db_datetime(received_at),
                )
            )
            await self._session.execute(stmt)

    def _map_confirmation(self, row) -> BookingConfirmation:
        return BookingConfirmation(
            id=row["id"],
            booking_id=row["booking_id"],
            quote_item_id=row.get("quote_item_id"),
            provider=ConfirmationProvider(row["provider"]),
            provider_booking_id=row.get("provider_booking_id"),
            confirmation_number=row.get("confirmation_number"),
            booking_reference=row.get("booking_reference"),
            status=ConfirmationStatus(row["status"]),
            raw_request=row.get("raw_request"),
            raw_response=row.get("raw_response"),
            error_details=row.get("error_details"),
            booking_details=row.get("booking_details") or {},
            amount=Decimal(str(row["amount"])),
            currency=row["currency"],
            hotel_reconfirmation_number=row.get("hotel_reconfirmation_number"),
            reconfirmation_received_at=from_db_datetime(row.get("reconfirmation_received_at")),
            created_at=from_db_datetime(row.get("created_at")),
            updated_at=from_db_datetime(row.get("updated_at")),
        )
