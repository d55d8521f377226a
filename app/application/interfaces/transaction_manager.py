from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Protocol


class TransactionManager(Protocol):
    """Unidad de trabajo: confirma al salir del bloque y revierte si hay excepción."""

    @asynccontextmanager
    async def start(self) -> AsyncIterator[None]:
        yield
