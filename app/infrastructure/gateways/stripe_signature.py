import json
from typing import Any

import stripe

from app.domain.errors import InvalidInputError, InvalidSignatureError

DEFAULT_TOLERANCE_SECONDS = 300


def verify_and_decode(
    payload: bytes,
    signature_header: str | None,
    webhook_secret: str | None,
    tolerance: int = DEFAULT_TOLERANCE_SECONDS,
) -> dict[str, Any]:
    """
    Verify the Stripe-Signature header against the raw body, then decode it.

    JSON is only parsed after the signature check passes.
    """
    if not signature_header or not webhook_secret:
        raise InvalidSignatureError("Missing Stripe-Signature header or webhook secret")
    try:
        body = payload.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise InvalidSignatureError("Webhook payload is not valid UTF-8") from exc

    try:
        stripe.WebhookSignature.verify_header(body, signature_header, webhook_secret, tolerance)
    except stripe.SignatureVerificationError as exc:
        raise InvalidSignatureError(f"Invalid Stripe signature: {exc.user_message or exc}") from exc

    try:
        event = json.loads(body)
    except json.JSONDecodeError as exc:
        raise InvalidInputError("event", "body is not valid JSON") from exc
    if not isinstance(event, dict):
        raise InvalidInputError("event", "body must be a JSON object")
    return event
