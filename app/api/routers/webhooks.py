from fastapi import APIRouter, Depends, Request, status

from app.api.dependencies import get_use_cases
from app.config import Settings, get_settings
from app.infrastructure.db.retry import retry_on_deadlock

router = APIRouter()


@router.post("/webhooks/payments", status_code=status.HTTP_200_OK)
async def payment_webhook(
    request: Request,
    use_cases=Depends(get_use_cases),
    settings: Settings = Depends(get_settings),
) -> dict:
    """
    Payment processor webhook with automatic deadlock retry.

    The signature is verified over the raw body, so it is read before any
    JSON parsing.
    """
    raw_body = await request.body()
    signature = request.headers.get("Stripe-Signature")

    async def execute_webhook():
        return await use_cases["handle_webhook"].execute(raw_body=raw_body, signature=signature)

    if settings.use_in_memory:
        return await execute_webhook()
    return await retry_on_deadlock(execute_webhook, max_attempts=3, base_delay=0.1)
