"""Servicios de infraestructura."""

from app.infrastructure.services.notifier import RecordingNotifier

__all__ = [
    "RecordingNotifier",
]
