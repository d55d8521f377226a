from typing import Sequence

from app.domain.entities.notification import Notification


class NotificationRepo:
    async def add(self, notification: Notification) -> Notification | None:
        """Inserta el aviso; None si ya existe uno con el mismo source_event_id."""
        raise NotImplementedError

    async def list_for_user(self, user_id: str) -> Sequence[Notification]:
        raise NotImplementedError
