from app.application.dtos.booking_dto import BookingDetailDTO
from app.application.interfaces.booking_repo import BookingRepo
from app.application.interfaces.confirmation_store import ConfirmationStore
from app.application.interfaces.payment_repo import PaymentRepo
from app.domain.errors import BookingNotFoundError


class GetBookingUseCase:
    def __init__(
        self,
        booking_repo: BookingRepo,
        confirmation_store: ConfirmationStore,
        payment_repo: PaymentRepo,
    ) -> None:
        self._booking_repo = booking_repo
        self._confirmation_store = confirmation_store
        self._payment_repo = payment_repo

    async def execute(self, booking_id: int, agent_id: str) -> BookingDetailDTO:
        booking = await self._booking_repo.get_for_agent(booking_id, agent_id)
        if booking is None:
            raise BookingNotFoundError(booking_id)
        return BookingDetailDTO(
            booking=booking,
            items=list(await self._booking_repo.list_items(booking_id)),
            confirmations=list(await self._confirmation_store.list_for_booking(booking_id)),
            payments=list(await self._payment_repo.list_by_booking(booking_id)),
        )
