"""Entidad Notification - aviso dentro de la aplicación para un usuario."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Notification:
    id: int | None = None
    user_id: str = ""
    message: str = ""
    is_read: bool = False
    source_event_id: str | None = None
    created_at: datetime | None = None
