"""Value Objects para referencias legibles de reservas y confirmaciones manuales."""

import secrets
import string
from dataclasses import dataclass
from datetime import datetime

BASE36_CHARS = string.digits + string.ascii_uppercase


def _random_suffix(length: int) -> str:
    return "".join(secrets.choice(BASE36_CHARS) for _ in range(length))


def _epoch_millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


@dataclass(frozen=True)
class BookingReference:
    """
    Referencia humana de una reserva.

    Formato: BKG-<timestamp en ms>-<5 caracteres base36 en mayúsculas>
    (ej: BKG-1700000000000-K3Z9Q). La unicidad se apoya en el timestamp
    más el sufijo aleatorio; la base de datos la respalda con un índice único.
    """

    value: str

    PREFIX = "BKG"
    SUFFIX_LENGTH = 5

    def __post_init__(self) -> None:
        if not self.value:
            raise ValueError("booking_reference no puede estar vacío")
        if len(self.value) > 50:
            raise ValueError(f"booking_reference excede 50 caracteres: {len(self.value)}")

    def __str__(self) -> str:
        return self.value

    @classmethod
    def generate(cls, now: datetime) -> "BookingReference":
        """Genera una referencia nueva a partir del instante actual."""
        return cls(value=f"{cls.PREFIX}-{_epoch_millis(now)}-{_random_suffix(cls.SUFFIX_LENGTH)}")


@dataclass(frozen=True)
class ManualConfirmationNumber:
    """
    Número de confirmación para reservas completadas fuera de línea por un agente.

    Formato: <prefijo>-<timestamp en ms>-<6 caracteres base36>, donde el prefijo
    depende del tipo de item (HOTEL-MAN, FLIGHT-MAN o MANUAL).
    """

    value: str

    SUFFIX_LENGTH = 6
    PREFIXES = {"Hotel": "HOTEL-MAN", "Flight": "FLIGHT-MAN"}
    DEFAULT_PREFIX = "MANUAL"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def prefix_for(cls, item_type: str) -> str:
        return cls.PREFIXES.get(item_type, cls.DEFAULT_PREFIX)

    @classmethod
    def generate(cls, item_type: str, now: datetime) -> "ManualConfirmationNumber":
        prefix = cls.prefix_for(item_type)
        return cls(value=f"{prefix}-{_epoch_millis(now)}-{_random_suffix(cls.SUFFIX_LENGTH)}")
