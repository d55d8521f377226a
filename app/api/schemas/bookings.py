from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.application.dtos.booking_dto import BookingDetailDTO, BookingResultDTO, ItemResult
from app.domain.entities.booking import Booking, BookingItem
from app.domain.entities.confirmation import BookingConfirmation
from app.domain.entities.payment import CustomerPayment


class CustomerInfo(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    first_name: str | None = Field(default=None, alias="firstName")
    last_name: str | None = Field(default=None, alias="lastName")
    email: str | None = None
    phone: str | None = None


class CreateBookingRequest(BaseModel):
    """
    Los tipos llegan sin restringir: el caso de uso valida y responde 400
    con el campo exacto que falló.
    """

    model_config = ConfigDict(populate_by_name=True)

    quote_id: Any = Field(default=None, alias="quoteId")
    payment_reference: Any = Field(default=None, alias="paymentReference")
    customer_info: CustomerInfo | None = Field(default=None, alias="customerInfo")


class BookingOut(BaseModel):
    id: int | None
    booking_reference: str
    quote_id: int
    status: str
    payment_status: str
    total_price: Decimal
    amount_paid: Decimal
    payment_reference: str | None = None
    travel_start_date: date | None = None
    travel_end_date: date | None = None
    created_at: datetime | None = None

    @classmethod
    def from_entity(cls, booking: Booking) -> "BookingOut":
        return cls(
            id=booking.id,
            booking_reference=booking.booking_reference,
            quote_id=booking.quote_id,
            status=booking.status.value,
            payment_status=booking.payment_status.value,
            total_price=booking.total_price,
            amount_paid=booking.amount_paid,
            payment_reference=booking.payment_reference,
            travel_start_date=booking.travel_start_date,
            travel_end_date=booking.travel_end_date,
            created_at=booking.created_at,
        )


class ItemResultOut(BaseModel):
    item_id: int | None
    item_type: str
    item_name: str
    status: str
    provider: str | None = None
    confirmation_number: str | None = None
    booking_reference: str | None = None
    requires_agent_followup: bool = False
    error: str | None = None
    details: dict[str, Any] | None = None

    @classmethod
    def from_result(cls, result: ItemResult) -> "ItemResultOut":
        return cls(
            item_id=result.item_id,
            item_type=result.item_type,
            item_name=result.item_name,
            status=result.status,
            provider=result.provider,
            confirmation_number=result.confirmation_number,
            booking_reference=result.booking_reference,
            requires_agent_followup=result.requires_agent_followup,
            error=result.error,
            details=result.details,
        )


class BookingSummaryOut(BaseModel):
    total_items: int
    confirmed: int
    pending: int
    failed: int
    requires_followup: int


class CreateBookingResponse(BaseModel):
    booking: BookingOut
    confirmations: list[ItemResultOut]
    summary: BookingSummaryOut
    replayed: bool = False

    @classmethod
    def from_dto(cls, dto: BookingResultDTO) -> "CreateBookingResponse":
        summary = dto.summary
        return cls(
            booking=BookingOut.from_entity(dto.booking),
            confirmations=[ItemResultOut.from_result(r) for r in dto.results],
            summary=BookingSummaryOut(
                total_items=summary.total_items,
                confirmed=summary.confirmed,
                pending=summary.pending,
                failed=summary.failed,
                requires_followup=summary.requires_followup,
            ),
            replayed=dto.replayed,
        )


class BookingItemOut(BaseModel):
    id: int | None
    quote_item_id: int | None
    item_type: str
    item_name: str
    cost: Decimal
    quantity: int
    details: dict[str, Any]

    @classmethod
    def from_entity(cls, item: BookingItem) -> "BookingItemOut":
        return cls(
            id=item.id,
            quote_item_id=item.quote_item_id,
            item_type=item.item_type,
            item_name=item.item_name,
            cost=item.cost,
            quantity=item.quantity,
            details=item.details,
        )


class ConfirmationOut(BaseModel):
    id: int | None
    quote_item_id: int | None
    provider: str
    status: str
    provider_booking_id: str | None = None
    confirmation_number: str | None = None
    booking_reference: str | None = None
    amount: Decimal
    currency: str
    booking_details: dict[str, Any]
    error_details: dict[str, Any] | None = None
    hotel_reconfirmation_number: str | None = None
    reconfirmation_received_at: datetime | None = None
    created_at: datetime | None = None

    @classmethod
    def from_entity(cls, confirmation: BookingConfirmation) -> "ConfirmationOut":
        return cls(
            id=confirmation.id,
            quote_item_id=confirmation.quote_item_id,
            provider=confirmation.provider.value,
            status=confirmation.status.value,
            provider_booking_id=confirmation.provider_booking_id,
            confirmation_number=confirmation.confirmation_number,
            booking_reference=confirmation.booking_reference,
            amount=confirmation.amount,
            currency=confirmation.currency,
            booking_details=confirmation.booking_details,
            error_details=confirmation.error_details,
            hotel_reconfirmation_number=confirmation.hotel_reconfirmation_number,
            reconfirmation_received_at=confirmation.reconfirmation_received_at,
            created_at=confirmation.created_at,
        )


class PaymentOut(BaseModel):
    id: int | None
    stripe_payment_intent_id: str | None
    amount: Decimal
    currency: str
    status: str
    created_at: datetime | None = None

    @classmethod
    def from_entity(cls, payment: CustomerPayment) -> "PaymentOut":
        return cls(
            id=payment.id,
            stripe_payment_intent_id=payment.stripe_payment_intent_id,
            amount=payment.amount,
            currency=payment.currency,
            status=payment.status.value,
            created_at=payment.created_at,
        )


class BookingDetailResponse(BaseModel):
    booking: BookingOut
    items: list[BookingItemOut]
    confirmations: list[ConfirmationOut]
    payments: list[PaymentOut]

    @classmethod
    def from_dto(cls, dto: BookingDetailDTO) -> "BookingDetailResponse":
        return cls(
            booking=BookingOut.from_entity(dto.booking),
            items=[BookingItemOut.from_entity(item) for item in dto.items],
            confirmations=[ConfirmationOut.from_entity(c) for c in dto.confirmations],
            payments=[PaymentOut.from_entity(p) for p in dto.payments],
        )
