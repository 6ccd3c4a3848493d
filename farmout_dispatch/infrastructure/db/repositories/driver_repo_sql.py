from datetime import datetime

from sqlalchemy import insert, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from farmout_dispatch.application.interfaces.driver_repo import DriverRepo
from farmout_dispatch.domain.entities.driver import AvailabilityStatus, Driver
from farmout_dispatch.infrastructure.db.converters import from_db, to_db
from farmout_dispatch.infrastructure.db.tables import drivers


def _to_entity(row) -> Driver:
    return Driver(
        id=row["id"],
        first_name=row["first_name"] or "",
        last_name=row["last_name"] or "",
        display_name=row["display_name"],
        phone=row["phone"],
        rating=row["rating"],
        availability_status=AvailabilityStatus(row["availability_status"]),
        service_areas=list(row["service_areas"] or []),
        preferred_vehicle_types=list(row["preferred_vehicle_types"] or []),
        affiliate_id=row["affiliate_id"],
        last_offer_at=from_db(row["last_offer_at"]),
    )


class DriverRepoSQL(DriverRepo):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, driver_id: int) -> Driver | None:
        result = await self._session.execute(select(drivers).where(drivers.c.id == driver_id))
        row = result.mappings().first()
        return _to_entity(row) if row else None

    async def find_by_phone(self, phone: str) -> list[Driver]:
        stmt = select(drivers).where(drivers.c.phone == phone).order_by(drivers.c.id)
        result = await self._session.execute(stmt)
        return [_to_entity(row) for row in result.mappings().all()]

    async def list_pool(
        self, affiliate_id: int | None = None, available_only: bool = True
    ) -> list[Driver]:
        stmt = select(drivers).order_by(drivers.c.id)
        if available_only:
            stmt = stmt.where(drivers.c.availability_status == AvailabilityStatus.AVAILABLE.value)
        if affiliate_id is not None:
            stmt = stmt.where(
                or_(drivers.c.affiliate_id.is_(None), drivers.c.affiliate_id == affiliate_id)
            )
        result = await self._session.execute(stmt)
        return [_to_entity(row) for row in result.mappings().all()]

    async def add(self, driver: Driver) -> Driver:
        values = {
            "first_name": driver.first_name,
            "last_name": driver.last_name,
            "display_name": driver.display_name,
            "phone": driver.phone,
            "rating": driver.rating,
            "availability_status": driver.availability_status.value,
            "service_areas": list(driver.service_areas),
            "preferred_vehicle_types": list(driver.preferred_vehicle_types),
            "affiliate_id": driver.affiliate_id,
            "last_offer_at": to_db(driver.last_offer_at),
        }
        if driver.id is not None:
            values["id"] = driver.id
        result = await self._session.execute(insert(drivers).values(values))
        driver.id = result.inserted_primary_key[0]
        return driver

    async def touch_last_offer(self, driver_id: int, offered_at: datetime) -> None:
        await self._session.execute(
            update(drivers).where(drivers.c.id == driver_id).values(last_offer_at=to_db(offered_at))
        )
