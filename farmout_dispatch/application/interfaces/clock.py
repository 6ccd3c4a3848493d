"""Interface Clock - Puerto para abstracción de tiempo."""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone


class Clock(ABC):
    """
    Puerto para abstracción del tiempo del sistema.

    Las expiraciones de ofertas se evalúan contra este reloj, lo que permite
    inyectar un reloj fijo en las pruebas.
    """

    @abstractmethod
    def now(self) -> datetime:
        """
        Retorna la fecha/hora actual.

        Returns:
            datetime timezone-aware en UTC.
        """
        raise NotImplementedError


class SystemClock(Clock):
    """Implementación real que usa el reloj del sistema."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FakeClock(Clock):
    """
    Implementación fake para testing.

    Permite fijar y avanzar el tiempo para pruebas deterministas.
    """

    def __init__(self, fixed_time: datetime | None = None):
        """
        Args:
            fixed_time: Tiempo fijo a retornar. Si es None, usa el tiempo real inicial.
        """
        self._fixed_time = fixed_time or datetime.now(timezone.utc)

    def now(self) -> datetime:
        """Retorna el tiempo fijo configurado."""
        return self._fixed_time

    def set_time(self, new_time: datetime) -> None:
        self._fixed_time = new_time

    def advance(self, seconds: int = 0, minutes: int = 0, hours: int = 0, days: int = 0) -> None:
        """
        Avanza el tiempo fijo.

        Args:
            seconds: Segundos a avanzar.
            minutes: Minutos a avanzar.
            hours: Horas a avanzar.
            days: Días a avanzar.
        """
        delta = timedelta(seconds=seconds, minutes=minutes, hours=hours, days=days)
        self._fixed_time = self._fixed_time + delta
