"""Datos de prueba y firma de webhooks compartidos por los tests."""

import hashlib
import hmac
import json
import time
from datetime import date, datetime, timezone
from decimal import Decimal

from app.domain.entities.quote import Customer, Quote, QuoteItem, QuoteStatus

WEBHOOK_SECRET = "whsec_test_secret"
AGENT_ID = "agent-123"
FIXED_NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def sign_payload(payload: bytes | str, secret: str = WEBHOOK_SECRET, timestamp: int | None = None) -> str:
    """Header Stripe-Signature v1: HMAC-SHA256 de "<t>.<body>"."""
    body = payload.decode("utf-8") if isinstance(payload, bytes) else payload
    ts = timestamp if timestamp is not None else int(time.time())
    digest = hmac.new(secret.encode("utf-8"), f"{ts}.{body}".encode("utf-8"), hashlib.sha256).hexdigest()
    return f"t={ts},v1={digest}"


def signed_event(event: dict, secret: str = WEBHOOK_SECRET) -> tuple[bytes, str]:
    body = json.dumps(event).encode("utf-8")
    return body, sign_payload(body, secret)


def hotel_item(**overrides) -> QuoteItem:
    defaults = dict(
        item_type="Hotel",
        item_name="Hotel Riviera",
        cost=Decimal("450.00"),
        quantity=2,
        details={
            "rateKey": "RK123",
            "hotelCode": "H-77",
            "checkInDate": "2026-04-10",
            "checkOutDate": "2026-04-12",
            "currency": "EUR",
        },
    )
    defaults.update(overrides)
    return QuoteItem(**defaults)


def flight_item(**overrides) -> QuoteItem:
    defaults = dict(
        item_type="Flight",
        item_name="MEX-MAD",
        cost=Decimal("820.50"),
        quantity=1,
        details={
            "id": "off_1",
            "slices": [{"origin": "MEX", "destination": "MAD"}],
            "travelers": {"adults": 1, "children": 1},
            "total_amount": "820.50",
            "total_currency": "USD",
        },
    )
    defaults.update(overrides)
    return QuoteItem(**defaults)


def tour_item(**overrides) -> QuoteItem:
    defaults = dict(
        item_type="Tour",
        item_name="Toledo day trip",
        cost=Decimal("75.25"),
        quantity=2,
        details={"startTime": "2026-04-11T09:00:00"},
    )
    defaults.update(overrides)
    return QuoteItem(**defaults)


def make_quote(items: list[QuoteItem], agent_id: str = AGENT_ID, **overrides) -> Quote:
    defaults = dict(
        agent_id=agent_id,
        status=QuoteStatus.SENT,
        customer=Customer(first_name="Ana", last_name="García", email="ana@example.com", phone="+34600000000"),
        items=items,
        trip_start_date=date(2026, 4, 10),
        trip_end_date=date(2026, 4, 12),
    )
    defaults.update(overrides)
    return Quote(**defaults)
