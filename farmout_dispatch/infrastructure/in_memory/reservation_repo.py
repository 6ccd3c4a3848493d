from collections.abc import Iterable
from copy import deepcopy

from farmout_dispatch.application.interfaces.reservation_repo import ReservationRepo
from farmout_dispatch.domain.entities.reservation import Reservation
from farmout_dispatch.domain.errors import OptimisticLockError, ReservationNotFoundError
from farmout_dispatch.domain.farmout_state_machine import FarmoutStatus


class InMemoryReservationRepo(ReservationRepo):
    def __init__(self) -> None:
        self.reservations: dict[int, Reservation] = {}
        self._next_id = 1

    async def get_by_id(self, reservation_id: int) -> Reservation | None:
        reservation = self.reservations.get(reservation_id)
        # Copies so callers can't mutate stored state without save_farmout_state
        return deepcopy(reservation) if reservation else None

    async def add(self, reservation: Reservation) -> Reservation:
        if reservation.id is None:
            reservation.id = self._next_id
        self._next_id = max(self._next_id, reservation.id) + 1
        self.reservations[reservation.id] = deepcopy(reservation)
        return reservation

    async def list_by_farmout_status(
        self, statuses: Iterable[FarmoutStatus], limit: int = 50
    ) -> list[Reservation]:
        wanted = {FarmoutStatus(s) for s in statuses}
        matches = [
            deepcopy(r)
            for r in sorted(self.reservations.values(), key=lambda r: r.id)
            if r.farmout_status in wanted
        ]
        return matches[:limit]

    async def save_farmout_state(
        self, reservation: Reservation, expected_lock_version: int
    ) -> None:
        stored = self.reservations.get(reservation.id)
        if stored is None:
            raise ReservationNotFoundError(reservation.id)
        if stored.lock_version != expected_lock_version:
            raise OptimisticLockError(reservation.id, expected_lock_version, stored.lock_version)
        stored.farmout_status = reservation.farmout_status
        stored.assigned_driver_id = reservation.assigned_driver_id
        stored.farmout_attempts = reservation.farmout_attempts
        stored.declined_driver_ids = set(reservation.declined_driver_ids)
        stored.updated_at = reservation.updated_at
        stored.lock_version = expected_lock_version + 1
        reservation.lock_version = stored.lock_version
