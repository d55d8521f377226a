from typing import Annotated

from fastapi import APIRouter, Depends, status

from app.api.dependencies import get_current_agent_id, get_use_cases
from app.api.schemas.bookings import (
    BookingDetailResponse,
    CreateBookingRequest,
    CreateBookingResponse,
)

router = APIRouter()


@router.post(
    "/bookings",
    response_model=CreateBookingResponse,
    status_code=status.HTTP_200_OK,
)
async def create_booking(
    payload: CreateBookingRequest,
    agent_id: Annotated[str, Depends(get_current_agent_id)],
    use_cases=Depends(get_use_cases),
) -> CreateBookingResponse:
    """
    Convierte la cotización en reserva y despacha cada item.

    Responde 200 aunque algún item falle: el detalle va en `confirmations`.
    """
    customer_info = payload.customer_info.model_dump(exclude_none=True) if payload.customer_info else None
    result = await use_cases["create_booking"].execute(
        quote_id=payload.quote_id,
        payment_reference=payload.payment_reference,
        agent_id=agent_id,
        customer_info=customer_info,
    )
    return CreateBookingResponse.from_dto(result)


@router.get(
    "/bookings/{booking_id}",
    response_model=BookingDetailResponse,
    status_code=status.HTTP_200_OK,
)
async def get_booking(
    booking_id: int,
    agent_id: Annotated[str, Depends(get_current_agent_id)],
    use_cases=Depends(get_use_cases),
) -> BookingDetailResponse:
    detail = await use_cases["get_booking"].execute(booking_id=booking_id, agent_id=agent_id)
    return BookingDetailResponse.from_dto(detail)
