import logging
from dataclasses import replace
from datetime import timedelta
from typing import Any, Sequence

from app.application.dtos.booking_dto import ITEM_STATUS_FAILED, BookingResultDTO, ItemResult
from app.application.interfaces.booking_repo import BookingRepo
from app.application.interfaces.clock import Clock
from app.application.interfaces.confirmation_store import ConfirmationStore
from app.application.interfaces.provider_gateway import FlightProviderGateway, HotelProviderGateway
from app.application.interfaces.quote_repo import QuoteRepo
from app.application.interfaces.transaction_manager import TransactionManager
from app.application.use_cases.manual_fallback import ManualFallbackHandler
from app.domain.entities.booking import Booking, BookingItem
from app.domain.entities.confirmation import (
    BookingConfirmation,
    ConfirmationProvider,
    ConfirmationStatus,
)
from app.domain.entities.quote import Customer, Quote, QuoteItem
from app.domain.errors import (
    DuplicateBookingError,
    InvalidInputError,
    PersistenceError,
    ProviderError,
    QuoteAlreadyConvertedError,
    QuoteNotFoundError,
)
from app.domain.value_objects.item_details import FlightOfferDetails, HotelRateDetails

INTERRUPTED_DISPATCH_REASON = "Booking dispatch was interrupted; verify status with the provider"
DISPATCH_IN_PROGRESS_REASON = "Booking dispatch is still in progress"
STALE_DISPATCH_AFTER = timedelta(minutes=10)


class BookingOrchestrator:
    """
    Convierte una cotización en reserva y despacha cada item.

    Flujo "best effort" sin compensaciones: la reserva y sus items se
    confirman en base de datos antes de llamar a los proveedores, cada item
    se despacha de forma independiente y todo resultado (éxito, fallback o
    falla) queda registrado. Una falla en un item no aborta los demás.

    Idempotencia: la llave es (quote_id, agent_id). Una segunda invocación
    devuelve la reserva existente con los resultados almacenados, sin volver
    a llamar a los proveedores. Mientras el primer despacho siga en curso
    (cotización sin convertir y reserva reciente) los items sin intentos se
    reportan como `pending` sin escribir nada; solo un despacho terminado o
    abandonado recibe fallback manual para esos items.
    """

    def __init__(
        self,
        quote_repo: QuoteRepo,
        booking_repo: BookingRepo,
        confirmation_store: ConfirmationStore,
        hotel_gateway: HotelProviderGateway,
        flight_gateway: FlightProviderGateway,
        fallback_handler: ManualFallbackHandler,
        transaction_manager: TransactionManager,
        clock: Clock,
        stale_dispatch_after: timedelta = STALE_DISPATCH_AFTER,
    ) -> None:
        self._quote_repo = quote_repo
        self._booking_repo = booking_repo
        self._confirmation_store = confirmation_store
        self._hotel_gateway = hotel_gateway
        self._flight_gateway = flight_gateway
        self._fallback = fallback_handler
        self._tx = transaction_manager
        self._clock = clock
        self._stale_dispatch_after = stale_dispatch_after
        self._logger = logging.getLogger(__name__)

    async def execute(
        self,
        quote_id: Any,
        payment_reference: Any,
        agent_id: str | None,
        customer_info: dict[str, Any] | None = None,
    ) -> BookingResultDTO:
        quote_id = self._validate_quote_id(quote_id)
        payment_reference = self._validate_payment_reference(payment_reference)
        if not agent_id:
            raise InvalidInputError("agentId", "authenticated agent is required")

        quote = await self._quote_repo.get_for_agent(quote_id, agent_id)
        if quote is None:
            raise QuoteNotFoundError(quote_id)

        existing = await self._booking_repo.find_by_quote(quote_id, agent_id)
        if existing is not None:
            return await self._replay(existing, quote)
        if quote.is_converted:
            raise QuoteAlreadyConvertedError(quote_id)
        if not quote.items:
            raise InvalidInputError("quoteId", "quote has no items")

        customer = self._merge_customer(quote.customer, customer_info)
        booking = Booking.create_from_quote(quote, payment_reference, now=self._clock.now())
        try:
            async with self._tx.start():
                booking = await self._booking_repo.create(booking)
        except DuplicateBookingError:
            # Otra solicitud concurrente ganó la inserción
            existing = await self._booking_repo.find_by_quote(quote_id, agent_id)
            if existing is None:
                raise
            return await self._replay(existing, quote)

        self._logger.info(
            "Booking created",
            extra={
                "booking_id": booking.id,
                "booking_reference": booking.booking_reference,
                "quote_id": quote_id,
                "agent_id": agent_id,
                "total_price": str(booking.total_price),
            },
        )

        await self._copy_items(booking, quote.items)

        results = []
        for item in quote.items:
            # Cada item confirma sus propios intentos, incluidos los fallidos
            async with self._tx.start():
                results.append(await self._dispatch(booking, item, customer))

        await self._mark_quote_converted(quote)
        return BookingResultDTO(booking=booking, results=results)

    # === Validación ===

    def _validate_quote_id(self, value: Any) -> int:
        if value is None or value == "":
            raise InvalidInputError("quoteId", "is required")
        if isinstance(value, bool):
            raise InvalidInputError("quoteId", "must be a positive integer")
        try:
            quote_id = int(value)
        except (TypeError, ValueError) as exc:
            raise InvalidInputError("quoteId", "must be a positive integer") from exc
        if isinstance(value, float) and value != quote_id:
            raise InvalidInputError("quoteId", "must be a positive integer")
        if quote_id <= 0:
            raise InvalidInputError("quoteId", "must be a positive integer")
        return quote_id

    def _validate_payment_reference(self, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise InvalidInputError("paymentReference", "must be a non-empty string")
        return value.strip()

    def _merge_customer(self, customer: Customer | None, info: dict[str, Any] | None) -> Customer | None:
        if not info:
            return customer
        base = customer or Customer()
        overrides = {
            key: info[key]
            for key in ("first_name", "last_name", "email", "phone")
            if isinstance(info.get(key), str) and info[key].strip()
        }
        return replace(base, **overrides)

    # === Pasos del flujo ===

    async def _copy_items(self, booking: Booking, items: Sequence[QuoteItem]) -> None:
        copies = [BookingItem.copy_of(booking.id, item) for item in items]
        try:
            async with self._tx.start():
                await self._booking_repo.add_items(copies)
        except PersistenceError:
            # La reserva ya existe; la copia de items no debe perderla
            self._logger.exception(
                "Failed to copy quote items into booking items",
                extra={"booking_id": booking.id, "item_count": len(copies)},
            )

    async def _dispatch(self, booking: Booking, item: QuoteItem, customer: Customer | None) -> ItemResult:
        details = item.typed_details
        try:
            if isinstance(details, HotelRateDetails):
                confirmation = await self._hotel_gateway.book_hotel(booking, item, customer, details)
            elif isinstance(details, FlightOfferDetails):
                confirmation = await self._flight_gateway.book_flight(booking, item, customer, details)
            else:
                confirmation = await self._fallback.create_manual_confirmation(
                    booking, item, customer, reason=details.reason
                )
            return ItemResult.from_confirmation(confirmation, item.item_type, item.item_name)
        except ProviderError as exc:
            self._logger.warning(
                "Provider booking failed, falling back to manual confirmation",
                extra={
                    "booking_id": booking.id,
                    "quote_item_id": item.id,
                    "provider": exc.provider,
                    "http_status": exc.http_status,
                    "error": exc.message,
                },
            )
            return await self._fallback_after_provider_error(booking, item, customer, exc)
        except Exception as exc:
            self._logger.exception(
                "Item dispatch failed",
                extra={"booking_id": booking.id, "quote_item_id": item.id},
            )
            return ItemResult(
                item_id=item.id,
                item_type=item.item_type,
                item_name=item.item_name,
                status=ITEM_STATUS_FAILED,
                requires_agent_followup=True,
                error=getattr(exc, "message", None) or str(exc),
            )

    async def _fallback_after_provider_error(
        self,
        booking: Booking,
        item: QuoteItem,
        customer: Customer | None,
        error: ProviderError,
    ) -> ItemResult:
        fallback: BookingConfirmation | None = None
        try:
            fallback = await self._fallback.create_manual_confirmation(
                booking, item, customer, reason=f"Provider booking failed: {error.message}"
            )
        except PersistenceError:
            self._logger.exception(
                "Failed to record manual fallback after provider error",
                extra={"booking_id": booking.id, "quote_item_id": item.id},
            )
        return ItemResult(
            item_id=item.id,
            item_type=item.item_type,
            item_name=item.item_name,
            status=ITEM_STATUS_FAILED,
            provider=error.provider,
            confirmation_id=fallback.id if fallback else None,
            confirmation_number=fallback.confirmation_number if fallback else None,
            booking_reference=fallback.booking_reference if fallback else None,
            requires_agent_followup=True,
            error=error.message,
            details=fallback.booking_details if fallback else None,
        )

    async def _mark_quote_converted(self, quote: Quote) -> None:
        try:
            async with self._tx.start():
                await self._quote_repo.mark_converted(quote.id)
        except PersistenceError:
            # La llave (quote_id, agent_id) de la reserva sigue impidiendo duplicados
            self._logger.exception("Failed to mark quote as converted", extra={"quote_id": quote.id})

    # === Reintento idempotente ===

    async def _replay(self, booking: Booking, quote: Quote) -> BookingResultDTO:
        self._logger.info(
            "Booking already exists for quote, returning stored confirmations",
            extra={"booking_id": booking.id, "quote_id": quote.id},
        )
        history = await self._confirmation_store.list_for_booking(booking.id)
        by_item: dict[int | None, list[BookingConfirmation]] = {}
        for confirmation in history:
            by_item.setdefault(confirmation.quote_item_id, []).append(confirmation)

        dispatch_finished = quote.is_converted or self._is_stale(booking)
        results = []
        for item in quote.items:
            rows = by_item.get(item.id)
            if rows:
                results.append(self._result_from_history(item, rows))
            elif dispatch_finished:
                # Despacho interrumpido: no se reintenta contra el proveedor
                results.append(
                    await self._dispatch_interrupted(booking, item, quote.customer)
                )
            else:
                results.append(self._dispatch_in_progress(item))

        if dispatch_finished and not quote.is_converted:
            await self._mark_quote_converted(quote)
        return BookingResultDTO(booking=booking, results=results, replayed=True)

    def _is_stale(self, booking: Booking) -> bool:
        if booking.created_at is None:
            return True
        return self._clock.now() - booking.created_at >= self._stale_dispatch_after

    def _dispatch_in_progress(self, item: QuoteItem) -> ItemResult:
        return ItemResult(
            item_id=item.id,
            item_type=item.item_type,
            item_name=item.item_name,
            status=ConfirmationStatus.PENDING.value,
            details={"note": DISPATCH_IN_PROGRESS_REASON},
        )

    async def _dispatch_interrupted(self, booking: Booking, item: QuoteItem, customer: Customer | None) -> ItemResult:
        try:
            async with self._tx.start():
                confirmation = await self._fallback.create_manual_confirmation(
                    booking, item, customer, reason=INTERRUPTED_DISPATCH_REASON
                )
        except PersistenceError as exc:
            self._logger.exception(
                "Failed to record fallback for interrupted item",
                extra={"booking_id": booking.id, "quote_item_id": item.id},
            )
            return ItemResult(
                item_id=item.id,
                item_type=item.item_type,
                item_name=item.item_name,
                status=ITEM_STATUS_FAILED,
                requires_agent_followup=True,
                error=exc.message,
            )
        return ItemResult.from_confirmation(confirmation, item.item_type, item.item_name)

    def _result_from_history(self, item: QuoteItem, rows: list[BookingConfirmation]) -> ItemResult:
        confirmed = next((row for row in reversed(rows) if row.is_confirmed), None)
        failed = next((row for row in reversed(rows) if row.is_failed), None)

        if failed is not None and (confirmed is None or confirmed.provider == ConfirmationProvider.MANUAL):
            return ItemResult(
                item_id=item.id,
                item_type=item.item_type,
                item_name=item.item_name,
                status=ITEM_STATUS_FAILED,
                provider=failed.provider.value,
                confirmation_id=confirmed.id if confirmed else failed.id,
                confirmation_number=confirmed.confirmation_number if confirmed else None,
                booking_reference=confirmed.booking_reference if confirmed else None,
                requires_agent_followup=True,
                error=failed.error_message,
                details=confirmed.booking_details if confirmed else None,
            )
        current = confirmed or rows[-1]
        return ItemResult.from_confirmation(current, item.item_type, item.item_name)
