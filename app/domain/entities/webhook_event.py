"""Entidad PaymentWebhookEvent - evento firmado del procesador de pagos."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class PaymentWebhookEvent:
    """
    Evento recibido, registrado antes de aplicar cualquier efecto.

    El id externo (`stripe_event_id`) es la llave de idempotencia: un
    evento ya procesado nunca se aplica otra vez.
    """

    id: int | None = None
    stripe_event_id: str = ""
    event_type: str = ""
    payload: dict[str, Any] = field(default_factory=dict)
    processed: bool = False
    error_message: str | None = None
    created_at: datetime | None = None
    processed_at: datetime | None = None

    @property
    def data_object(self) -> dict[str, Any]:
        data = self.payload.get("data") or {}
        obj = data.get("object") if isinstance(data, dict) else None
        return obj if isinstance(obj, dict) else {}
