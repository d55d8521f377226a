from dataclasses import replace
from typing import Sequence

from sqlalchemy import insert, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.interfaces.notification_repo import NotificationRepo
from app.domain.entities.notification import Notification
from app.domain.errors import PersistenceError
from app.infrastructure.db.errors import from_db_datetime, persistence_errors, to_db_datetime
from app.infrastructure.db.tables import notifications


class NotificationRepoSQL(NotificationRepo):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, notification: Notification) -> Notification | None:
        if notification.source_event_id:
            with persistence_errors("check notification source event"):
                stmt = select(notifications.c.id).where(
                    notifications.c.source_event_id == notification.source_event_id
                )
                result = await self._session.execute(stmt)
                if result.scalar() is not None:
                    return None

        stmt = insert(notifications).values(
            user_id=notification.user_id,
            message=notification.message,
            is_read=notification.is_read,
            source_event_id=notification.source_event_id,
            created_at=to_db_datetime(notification.created_at),
        )
        try:
            result = await self._session.execute(stmt)
        except IntegrityError:
            return None
        except SQLAlchemyError as exc:
            raise PersistenceError("Failed to add notification") from exc
        return replace(notification, id=result.inserted_primary_key[0])

    async def list_for_user(self, user_id: str) -> Sequence[Notification]:
        with persistence_errors("list notifications"):
            stmt = (
                select(notifications)
                .where(notifications.c.user_id == user_id)
                .order_by(notifications.c.id)
            )
            result = await self._session.execute(stmt)
            rows = result.mappings().all()
        return [
            Notification(
                id=row["id"],
                user_id=row["user_id"],
                message=row["message"],
                is_read=bool(row["is_read"]),
                source_event_id=row.get("source_event_id"),
                created_at=from_db_datetime(row.get("created_at")),
            )
            for row in rows
        ]
