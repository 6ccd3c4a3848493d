from collections.abc import Iterable

from farmout_dispatch.domain.entities.reservation import Reservation
from farmout_dispatch.domain.farmout_state_machine import FarmoutStatus


class ReservationRepo:
    """Almacén de reservaciones. Las escrituras de farmout son condicionales a lock_version."""

    async def get_by_id(self, reservation_id: int) -> Reservation | None:
        raise NotImplementedError

    async def add(self, reservation: Reservation) -> Reservation:
        """
        Persiste una reservación nueva.

        Returns:
            La reservación con id asignado.
        """
        raise NotImplementedError

    async def list_by_farmout_status(
        self, statuses: Iterable[FarmoutStatus], limit: int = 50
    ) -> list[Reservation]:
        raise NotImplementedError

    async def save_farmout_state(
        self, reservation: Reservation, expected_lock_version: int
    ) -> None:
        """
        Guarda estado, conductor asignado, intentos y exclusiones juntos.

        Args:
            reservation: Reservación ya mutada por la transición.
            expected_lock_version: Versión leída antes de la transición.

        Raises:
            OptimisticLockError: Si otra escritura ganó la carrera.
        """
        raise NotImplementedError
