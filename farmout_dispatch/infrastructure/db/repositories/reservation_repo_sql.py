from collections.abc import Iterable
from decimal import Decimal

from sqlalchemy import insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from farmout_dispatch.application.interfaces.reservation_repo import ReservationRepo
from farmout_dispatch.domain.entities.reservation import FarmoutMode, Reservation
from farmout_dispatch.domain.errors import OptimisticLockError, ReservationNotFoundError
from farmout_dispatch.domain.farmout_state_machine import FarmoutStatus
from farmout_dispatch.infrastructure.db.converters import from_db, to_db
from farmout_dispatch.infrastructure.db.tables import reservations


def _to_entity(row) -> Reservation:
    return Reservation(
        id=row["id"],
        confirmation_number=row["confirmation_number"],
        pickup_location=row["pickup_location"] or "",
        pickup_datetime=from_db(row["pickup_datetime"]),
        dropoff_location=row["dropoff_location"] or "",
        dropoff_datetime=from_db(row["dropoff_datetime"]),
        vehicle_type=row["vehicle_type"],
        passenger_name=row["passenger_name"] or "",
        passenger_count=row["passenger_count"] or 1,
        grand_total=Decimal(str(row["grand_total"] or 0)),
        trip_notes=row["trip_notes"],
        affiliate_id=row["affiliate_id"],
        farmout_mode=FarmoutMode(row["farmout_mode"]),
        farmout_status=FarmoutStatus(row["farmout_status"]),
        assigned_driver_id=row["assigned_driver_id"],
        farmout_attempts=row["farmout_attempts"] or 0,
        declined_driver_ids=set(row["declined_driver_ids"] or []),
        lock_version=row["lock_version"] or 0,
        created_at=from_db(row["created_at"]),
        updated_at=from_db(row["updated_at"]),
    )


class ReservationRepoSQL(ReservationRepo):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, reservation_id: int) -> Reservation | None:
        stmt = select(reservations).where(reservations.c.id == reservation_id).limit(1)
        result = await self._session.execute(stmt)
        row = result.mappings().first()
        return _to_entity(row) if row else None

    async def add(self, reservation: Reservation) -> Reservation:
        values = {
            "confirmation_number": reservation.confirmation_number,
            "pickup_location": reservation.pickup_location,
            "pickup_datetime": to_db(reservation.pickup_datetime),
            "dropoff_location": reservation.dropoff_location,
            "dropoff_datetime": to_db(reservation.dropoff_datetime),
            "vehicle_type": reservation.vehicle_type,
            "passenger_name": reservation.passenger_name,
            "passenger_count": reservation.passenger_count,
            "grand_total": reservation.grand_total,
            "trip_notes": reservation.trip_notes,
            "affiliate_id": reservation.affiliate_id,
            "farmout_mode": reservation.farmout_mode.value,
            "farmout_status": reservation.farmout_status.value,
            "assigned_driver_id": reservation.assigned_driver_id,
            "farmout_attempts": reservation.farmout_attempts,
            "declined_driver_ids": sorted(reservation.declined_driver_ids),
            "lock_version": reservation.lock_version,
            "created_at": to_db(reservation.created_at),
            "updated_at": to_db(reservation.updated_at),
        }
        if reservation.id is not None:
            values["id"] = reservation.id
        result = await self._session.execute(insert(reservations).values(values))
        reservation.id = result.inserted_primary_key[0]
        return reservation

    async def list_by_farmout_status(
        self, statuses: Iterable[FarmoutStatus], limit: int = 50
    ) -> list[Reservation]:
        wanted = [FarmoutStatus(s).value for s in statuses]
        stmt = (
            select(reservations)
            .where(reservations.c.farmout_status.in_(wanted))
            .order_by(reservations.c.id)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [_to_entity(row) for row in result.mappings().all()]

    async def save_farmout_state(
        self, reservation: Reservation, expected_lock_version: int
    ) -> None:
        stmt = (
            update(reservations)
            .where(
                reservations.c.id == reservation.id,
                reservations.c.lock_version == expected_lock_version,
            )
            .values(
                farmout_status=reservation.farmout_status.value,
                assigned_driver_id=reservation.assigned_driver_id,
                farmout_attempts=reservation.farmout_attempts,
                declined_driver_ids=sorted(reservation.declined_driver_ids),
                updated_at=to_db(reservation.updated_at),
                lock_version=expected_lock_version + 1,
            )
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            current = await self._session.execute(
                select(reservations.c.lock_version).where(reservations.c.id == reservation.id)
            )
            actual = current.scalar()
            if actual is None:
                raise ReservationNotFoundError(reservation.id)
            raise OptimisticLockError(reservation.id, expected_lock_version, actual)
        reservation.lock_version = expected_lock_version + 1
