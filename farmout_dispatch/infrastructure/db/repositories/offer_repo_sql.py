import logging
from datetime import datetime

from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from farmout_dispatch.application.interfaces.offer_repo import OfferRepo
from farmout_dispatch.domain.entities.farmout_offer import (
    FarmoutOffer,
    OfferStatus,
    ResponseMethod,
)
from farmout_dispatch.domain.errors import (
    OfferNotFoundError,
    OfferNotPendingError,
    PendingOfferExistsError,
)
from farmout_dispatch.infrastructure.db.converters import from_db, to_db
from farmout_dispatch.infrastructure.db.tables import farmout_offers

logger = logging.getLogger(__name__)

_PENDING = OfferStatus.PENDING.value


def _to_entity(row) -> FarmoutOffer:
    return FarmoutOffer(
        id=row["id"],
        reservation_id=row["reservation_id"],
        driver_id=row["driver_id"],
        status=OfferStatus(row["status"]),
        created_at=from_db(row["created_at"]),
        expires_at=from_db(row["expires_at"]),
        responded_at=from_db(row["responded_at"]),
        decline_reason=row["decline_reason"],
        response_method=ResponseMethod(row["response_method"]) if row["response_method"] else None,
    )


class OfferRepoSQL(OfferRepo):
    """
    Offer store backed by the farmout_offers table.

    Single-pending is enforced by the unique pending_reservation_id column and
    resolution by a status-conditioned UPDATE, so concurrent processes need no
    other coordination.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create_offer(
        self,
        reservation_id: int,
        driver_id: int,
        created_at: datetime,
        expires_at: datetime,
    ) -> FarmoutOffer:
        values = {
            "reservation_id": reservation_id,
            "driver_id": driver_id,
            "status": _PENDING,
            "pending_reservation_id": reservation_id,
            "created_at": to_db(created_at),
            "expires_at": to_db(expires_at),
        }
        try:
            # Savepoint keeps the outer transaction usable after a conflict
            async with self._session.begin_nested():
                result = await self._session.execute(insert(farmout_offers).values(values))
        except IntegrityError as exc:
            logger.warning(
                "Pending offer unique constraint hit",
                extra={"reservation_id": reservation_id, "driver_id": driver_id},
            )
            raise PendingOfferExistsError(reservation_id) from exc
        return FarmoutOffer(
            id=result.inserted_primary_key[0],
            reservation_id=reservation_id,
            driver_id=driver_id,
            status=OfferStatus.PENDING,
            created_at=created_at,
            expires_at=expires_at,
        )

    async def get_by_id(self, offer_id: int) -> FarmoutOffer | None:
        result = await self._session.execute(
            select(farmout_offers).where(farmout_offers.c.id == offer_id)
        )
        row = result.mappings().first()
        return _to_entity(row) if row else None

    async def get_pending_offer(self, reservation_id: int) -> FarmoutOffer | None:
        stmt = select(farmout_offers).where(
            farmout_offers.c.reservation_id == reservation_id,
            farmout_offers.c.status == _PENDING,
        )
        result = await self._session.execute(stmt)
        row = result.mappings().first()
        return _to_entity(row) if row else None

    async def resolve_offer(
        self,
        offer_id: int,
        outcome: OfferStatus,
        responded_at: datetime,
        reason: str | None = None,
        method: ResponseMethod | None = None,
    ) -> FarmoutOffer:
        stmt = (
            update(farmout_offers)
            .where(farmout_offers.c.id == offer_id, farmout_offers.c.status == _PENDING)
            .values(
                status=OfferStatus(outcome).value,
                pending_reservation_id=None,
                responded_at=to_db(responded_at),
                decline_reason=reason,
                response_method=method.value if method else None,
            )
        )
        result = await self._session.execute(stmt)
        offer = await self.get_by_id(offer_id)
        if offer is None:
            raise OfferNotFoundError(offer_id)
        if result.rowcount == 0:
            raise OfferNotPendingError(offer_id, offer.status.value)
        return offer

    async def find_latest_pending_for_driver(self, driver_id: int) -> FarmoutOffer | None:
        stmt = (
            select(farmout_offers)
            .where(farmout_offers.c.driver_id == driver_id, farmout_offers.c.status == _PENDING)
            .order_by(farmout_offers.c.created_at.desc(), farmout_offers.c.id.desc())
            .limit(1)
        )
        result = await self._session.execute(stmt)
        row = result.mappings().first()
        return _to_entity(row) if row else None

    async def find_latest_for_driver(self, driver_id: int) -> FarmoutOffer | None:
        stmt = (
            select(farmout_offers)
            .where(farmout_offers.c.driver_id == driver_id)
            .order_by(farmout_offers.c.created_at.desc(), farmout_offers.c.id.desc())
            .limit(1)
        )
        result = await self._session.execute(stmt)
        row = result.mappings().first()
        return _to_entity(row) if row else None

    async def list_expired_pending(self, now: datetime, limit: int = 50) -> list[FarmoutOffer]:
        stmt = (
            select(farmout_offers)
            .where(
                farmout_offers.c.status == _PENDING,
                farmout_offers.c.expires_at < to_db(now),
            )
            .order_by(farmout_offers.c.expires_at, farmout_offers.c.id)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [_to_entity(row) for row in result.mappings().all()]

    async def list_by_reservation(self, reservation_id: int) -> list[FarmoutOffer]:
        stmt = (
            select(farmout_offers)
            .where(farmout_offers.c.reservation_id == reservation_id)
            .order_by(farmout_offers.c.created_at, farmout_offers.c.id)
        )
        result = await self._session.execute(stmt)
        return [_to_entity(row) for row in result.mappings().all()]
