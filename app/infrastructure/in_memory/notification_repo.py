from dataclasses import replace
from typing import Sequence

from app.application.interfaces.notification_repo import NotificationRepo
from app.domain.entities.notification import Notification


class InMemoryNotificationRepo(NotificationRepo):
    def __init__(self) -> None:
        self._rows: list[Notification] = []
        self._next_id = 1

    async def add(self, notification: Notification) -> Notification | None:
        if notification.source_event_id and any(
            row.source_event_id == notification.source_event_id for row in self._rows
        ):
            return None
        saved = replace(notification, id=self._next_id)
        self._next_id += 1
        self._rows.append(saved)
        return replace(saved)

    async def list_for_user(self, user_id: str) -> Sequence[Notification]:
        return [replace(row) for row in self._rows if row.user_id == user_id]
