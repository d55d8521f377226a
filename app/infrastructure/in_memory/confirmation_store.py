from dataclasses import replace
from datetime import datetime
from typing import Any, Sequence

from app.application.interfaces.confirmation_store import ConfirmationStore
from app.domain.entities.confirmation import BookingConfirmation, ConfirmationProvider
from app.domain.errors import DuplicateConfirmationError


class InMemoryConfirmationStore(ConfirmationStore):
    def __init__(self) -> None:
        self._rows: list[BookingConfirmation] = []
        self._next_id = 1

    async def record(self, confirmation: BookingConfirmation) -> BookingConfirmation:
        if confirmation.is_confirmed and any(
            row.is_confirmed
            and row.booking_id == confirmation.booking_id
            and row.quote_item_id == confirmation.quote_item_id
            for row in self._rows
        ):
            raise DuplicateConfirmationError(confirmation.booking_id, confirmation.quote_item_id)
        saved = replace(confirmation, id=self._next_id)
        self._next_id += 1
        self._rows.append(saved)
        return replace(saved)

    async def list_for_booking(self, booking_id: int) -> Sequence[BookingConfirmation]:
        return [replace(row) for row in self._rows if row.booking_id == booking_id]

    async def list_awaiting_reconfirmation(
        self,
        provider: ConfirmationProvider,
        created_after: datetime,
    ) -> Sequence[BookingConfirmation]:
        return [
            replace(row)
            for row in self._rows
            if row.provider == provider
            and row.awaiting_reconfirmation
            and row.created_at is not None
            and row.created_at >= created_after
        ]

    async def record_reconfirmation(
        self,
        confirmation_id: int,
        reconfirmation_number: str,
        booking_details: dict[str, Any],
        received_at: datetime,
    ) -> None:
        for index, row in enumerate(self._rows):
            if row.id == confirmation_id:
                self._rows[index] = replace(
                    row,
                    hotel_reconfirmation_number=reconfirmation_number,
                    reconfirmation_received_at=received_at,
                    booking_details=dict(booking_details),
                    updated_at=received_at,
                )
                return
