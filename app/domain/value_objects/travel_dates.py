"""Value Object TravelDates - rango de fechas del viaje."""

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class TravelDates:
    """
    Value Object inmutable con las fechas de inicio y fin de un viaje.

    A diferencia de un rango de horas, inicio y fin pueden coincidir
    (viajes de un solo día).
    """

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(f"start debe ser anterior o igual a end: {self.start} > {self.end}")

    @property
    def nights(self) -> int:
        return (self.end - self.start).days

    def __str__(self) -> str:
        return f"{self.start.isoformat()} -> {self.end.isoformat()}"

    @classmethod
    def from_optional(cls, start: date | None, end: date | None, today: date) -> "TravelDates":
        """Usa la fecha de hoy para cualquier extremo faltante."""
        start = start or today
        end = end or today
        if end < start:
            end = start
        return cls(start=start, end=end)
