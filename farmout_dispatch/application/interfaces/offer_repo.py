from datetime import datetime

from farmout_dispatch.domain.entities.farmout_offer import (
    FarmoutOffer,
    OfferStatus,
    ResponseMethod,
)


class OfferRepo:
    """
    Almacén de ofertas: único punto de serialización del flujo.

    Crear y resolver son operaciones atómicas condicionadas al estado
    almacenado, no a bloqueos en memoria.
    """

    async def create_offer(
        self,
        reservation_id: int,
        driver_id: int,
        created_at: datetime,
        expires_at: datetime,
    ) -> FarmoutOffer:
        """
        Inserta una oferta pendiente.

        Raises:
            PendingOfferExistsError: Si ya hay una oferta pendiente para la reservación.
        """
        raise NotImplementedError

    async def get_by_id(self, offer_id: int) -> FarmoutOffer | None:
        raise NotImplementedError

    async def get_pending_offer(self, reservation_id: int) -> FarmoutOffer | None:
        raise NotImplementedError

    async def resolve_offer(
        self,
        offer_id: int,
        outcome: OfferStatus,
        responded_at: datetime,
        reason: str | None = None,
        method: ResponseMethod | None = None,
    ) -> FarmoutOffer:
        """
        Resuelve una oferta solo si sigue pendiente (check-and-set).

        Raises:
            OfferNotFoundError: Si la oferta no existe.
            OfferNotPendingError: Si ya fue resuelta.
        """
        raise NotImplementedError

    async def find_latest_pending_for_driver(self, driver_id: int) -> FarmoutOffer | None:
        """Oferta pendiente más reciente (por created_at) del conductor."""
        raise NotImplementedError

    async def find_latest_for_driver(self, driver_id: int) -> FarmoutOffer | None:
        raise NotImplementedError

    async def list_expired_pending(self, now: datetime, limit: int = 50) -> list[FarmoutOffer]:
        """Ofertas pendientes con expires_at < now, las más antiguas primero."""
        raise NotImplementedError

    async def list_by_reservation(self, reservation_id: int) -> list[FarmoutOffer]:
        raise NotImplementedError
