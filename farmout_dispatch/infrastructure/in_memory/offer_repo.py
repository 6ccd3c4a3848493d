from dataclasses import replace
from datetime import datetime

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


class InMemoryOfferRepo(OfferRepo):
    """
    Ofertas en memoria.

    create_offer y resolve_offer no tienen await entre la verificación y la
    escritura, así que son atómicos dentro de un event loop.
    """

    def __init__(self) -> None:
        self.offers: dict[int, FarmoutOffer] = {}
        self._next_id = 1

    async def create_offer(
        self,
        reservation_id: int,
        driver_id: int,
        created_at: datetime,
        expires_at: datetime,
    ) -> FarmoutOffer:
        if any(o.reservation_id == reservation_id and o.is_pending for o in self.offers.values()):
            raise PendingOfferExistsError(reservation_id)
        offer = FarmoutOffer(
            id=self._next_id,
            reservation_id=reservation_id,
            driver_id=driver_id,
            status=OfferStatus.PENDING,
            created_at=created_at,
            expires_at=expires_at,
        )
        self._next_id += 1
        self.offers[offer.id] = offer
        return replace(offer)

    async def get_by_id(self, offer_id: int) -> FarmoutOffer | None:
        offer = self.offers.get(offer_id)
        return replace(offer) if offer else None

    async def get_pending_offer(self, reservation_id: int) -> FarmoutOffer | None:
        for offer in self.offers.values():
            if offer.reservation_id == reservation_id and offer.is_pending:
                return replace(offer)
        return None

    async def resolve_offer(
        self,
        offer_id: int,
        outcome: OfferStatus,
        responded_at: datetime,
        reason: str | None = None,
        method: ResponseMethod | None = None,
    ) -> FarmoutOffer:
        offer = self.offers.get(offer_id)
        if offer is None:
            raise OfferNotFoundError(offer_id)
        if not offer.is_pending:
            raise OfferNotPendingError(offer_id, offer.status.value)
        offer.status = OfferStatus(outcome)
        offer.responded_at = responded_at
        offer.decline_reason = reason
        offer.response_method = method
        return replace(offer)

    def _for_driver(self, driver_id: int, pending_only: bool) -> list[FarmoutOffer]:
        offers = [
            o
            for o in self.offers.values()
            if o.driver_id == driver_id and (o.is_pending or not pending_only)
        ]
        return sorted(offers, key=lambda o: (o.created_at, o.id), reverse=True)

    async def find_latest_pending_for_driver(self, driver_id: int) -> FarmoutOffer | None:
        offers = self._for_driver(driver_id, pending_only=True)
        return replace(offers[0]) if offers else None

    async def find_latest_for_driver(self, driver_id: int) -> FarmoutOffer | None:
        offers = self._for_driver(driver_id, pending_only=False)
        return replace(offers[0]) if offers else None

    async def list_expired_pending(self, now: datetime, limit: int = 50) -> list[FarmoutOffer]:
        expired = [o for o in self.offers.values() if o.is_expired_at(now)]
        expired.sort(key=lambda o: (o.expires_at, o.id))
        return [replace(o) for o in expired[:limit]]

    async def list_by_reservation(self, reservation_id: int) -> list[FarmoutOffer]:
        offers = [o for o in self.offers.values() if o.reservation_id == reservation_id]
        return [replace(o) for o in sorted(offers, key=lambda o: (o.created_at, o.id))]
