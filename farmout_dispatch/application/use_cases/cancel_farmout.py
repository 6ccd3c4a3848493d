import logging
from datetime import datetime

from farmout_dispatch.application.effect_publisher import EffectPublisher
from farmout_dispatch.application.farmout_effects import FarmoutEffects
from farmout_dispatch.application.interfaces.clock import Clock
from farmout_dispatch.application.interfaces.offer_repo import OfferRepo
from farmout_dispatch.application.interfaces.reservation_repo import ReservationRepo
from farmout_dispatch.application.interfaces.transaction_manager import TransactionManager
from farmout_dispatch.domain.entities.effects import ActivityAction, SideEffect
from farmout_dispatch.domain.entities.farmout_offer import OfferStatus, ResponseMethod
from farmout_dispatch.domain.entities.reservation import Reservation
from farmout_dispatch.domain.errors import OfferNotPendingError, ReservationNotFoundError

DEFAULT_CANCEL_REASON = "reservation cancelled"


class CancelFarmoutUseCase:
    """
    Cierra el farmout de una reservación cancelada.

    La oferta pendiente (si existe) se resuelve como expirada con método
    `cancelled` y el estado terminal detiene cualquier reencolado posterior.
    """

    def __init__(
        self,
        reservation_repo: ReservationRepo,
        offer_repo: OfferRepo,
        transaction_manager: TransactionManager,
        effect_publisher: EffectPublisher,
        effects: FarmoutEffects,
        clock: Clock,
    ) -> None:
        self._reservation_repo = reservation_repo
        self._offer_repo = offer_repo
        self._transaction_manager = transaction_manager
        self._effect_publisher = effect_publisher
        self._effects = effects
        self._clock = clock
        self._logger = logging.getLogger(__name__)

    async def execute(
        self,
        reservation_id: int,
        reason: str | None = None,
        now: datetime | None = None,
    ) -> Reservation:
        now = now or self._clock.now()
        reason = reason or DEFAULT_CANCEL_REASON
        effects: list[SideEffect] = []

        async with self._transaction_manager.start():
            reservation = await self._reservation_repo.get_by_id(reservation_id)
            if reservation is None:
                raise ReservationNotFoundError(reservation_id)
            if reservation.is_terminal:
                self._logger.info(
                    "Cancel ignored: farmout already finished",
                    extra={
                        "reservation_id": reservation_id,
                        "farmout_status": reservation.farmout_status.value,
                    },
                )
                return reservation

            pending = await self._offer_repo.get_pending_offer(reservation_id)
            offer_id = None
            if pending is not None:
                try:
                    await self._offer_repo.resolve_offer(
                        pending.id,
                        OfferStatus.EXPIRED,
                        responded_at=now,
                        reason=reason,
                        method=ResponseMethod.CANCELLED,
                    )
                    offer_id = pending.id
                except OfferNotPendingError:
                    self._logger.warning(
                        "Pending offer resolved while cancelling",
                        extra={"reservation_id": reservation_id, "offer_id": pending.id},
                    )

            expected_lock_version = reservation.lock_version
            reservation.cancel_farmout(now)
            await self._reservation_repo.save_farmout_state(
                reservation, expected_lock_version=expected_lock_version
            )
            effects.append(
                self._effects.activity(
                    ActivityAction.FARMOUT_CANCELLED,
                    reservation,
                    method=ResponseMethod.CANCELLED.value,
                    reason=reason,
                    offer_id=offer_id,
                )
            )

        await self._effect_publisher.publish(effects)
        self._logger.info("Farmout cancelled", extra={"reservation_id": reservation_id})
        return reservation
