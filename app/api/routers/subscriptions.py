from typing import Annotated

from fastapi import APIRouter, Depends, status

from app.api.dependencies import get_current_agent_id, get_use_cases
from app.api.schemas.subscriptions import (
    CancelSubscriptionRequest,
    CreateSubscriptionRequest,
    SubscriptionResponse,
)

router = APIRouter()


@router.get(
    "/subscriptions/current",
    response_model=SubscriptionResponse,
    status_code=status.HTTP_200_OK,
)
async def get_current_subscription(
    agent_id: Annotated[str, Depends(get_current_agent_id)],
    use_cases=Depends(get_use_cases),
) -> SubscriptionResponse:
    subscription = await use_cases["manage_subscription"].get_current(agent_id)
    return SubscriptionResponse.from_entity(subscription)


@router.post(
    "/subscriptions",
    response_model=SubscriptionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_subscription(
    payload: CreateSubscriptionRequest,
    agent_id: Annotated[str, Depends(get_current_agent_id)],
    use_cases=Depends(get_use_cases),
) -> SubscriptionResponse:
    subscription = await use_cases["manage_subscription"].create(
        agent_id=agent_id,
        email=payload.email,
        tier=payload.tier,
        trial_days=payload.trial_days,
    )
    return SubscriptionResponse.from_entity(subscription)


@router.post(
    "/subscriptions/cancel",
    response_model=SubscriptionResponse,
    status_code=status.HTTP_200_OK,
)
async def cancel_subscription(
    agent_id: Annotated[str, Depends(get_current_agent_id)],
    payload: CancelSubscriptionRequest | None = None,
    use_cases=Depends(get_use_cases),
) -> SubscriptionResponse:
    immediately = payload.immediately if payload else False
    subscription = await use_cases["manage_subscription"].cancel(agent_id, immediately=immediately)
    return SubscriptionResponse.from_entity(subscription)
