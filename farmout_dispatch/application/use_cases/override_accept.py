import logging
from datetime import datetime

from farmout_dispatch.application.dtos import AcceptanceResult
from farmout_dispatch.application.effect_publisher import EffectPublisher
from farmout_dispatch.application.farmout_effects import FarmoutEffects
from farmout_dispatch.application.interfaces.clock import Clock
from farmout_dispatch.application.interfaces.driver_repo import DriverRepo
from farmout_dispatch.application.interfaces.offer_repo import OfferRepo
from farmout_dispatch.application.interfaces.reservation_repo import ReservationRepo
from farmout_dispatch.application.interfaces.transaction_manager import TransactionManager
from farmout_dispatch.domain.entities.effects import ActivityAction, SideEffect
from farmout_dispatch.domain.entities.farmout_offer import OfferStatus, ResponseMethod
from farmout_dispatch.domain.errors import (
    DriverNotFoundError,
    NoPendingOfferError,
    ReservationNotFoundError,
)


class OverrideAcceptUseCase:
    """Un operador acepta la oferta pendiente en nombre del conductor."""

    def __init__(
        self,
        reservation_repo: ReservationRepo,
        offer_repo: OfferRepo,
        driver_repo: DriverRepo,
        transaction_manager: TransactionManager,
        effect_publisher: EffectPublisher,
        effects: FarmoutEffects,
        clock: Clock,
    ) -> None:
        self._reservation_repo = reservation_repo
        self._offer_repo = offer_repo
        self._driver_repo = driver_repo
        self._transaction_manager = transaction_manager
        self._effect_publisher = effect_publisher
        self._effects = effects
        self._clock = clock
        self._logger = logging.getLogger(__name__)

    async def execute(
        self, reservation_id: int, driver_id: int, now: datetime | None = None
    ) -> AcceptanceResult:
        """
        Args:
            reservation_id: Reservación con oferta pendiente.
            driver_id: Conductor al que se le hizo la oferta.

        Raises:
            NoPendingOfferError: Si no hay oferta pendiente para ese conductor.
        """
        now = now or self._clock.now()
        effects: list[SideEffect] = []

        async with self._transaction_manager.start():
            reservation = await self._reservation_repo.get_by_id(reservation_id)
            if reservation is None:
                raise ReservationNotFoundError(reservation_id)
            pending = await self._offer_repo.get_pending_offer(reservation_id)
            if pending is None or pending.driver_id != driver_id:
                raise NoPendingOfferError(reservation_id=reservation_id)
            driver = await self._driver_repo.get_by_id(driver_id)
            if driver is None:
                raise DriverNotFoundError(driver_id=driver_id)

            resolved = await self._offer_repo.resolve_offer(
                pending.id,
                OfferStatus.ACCEPTED,
                responded_at=now,
                method=ResponseMethod.ADMIN_OVERRIDE,
            )
            expected_lock_version = reservation.lock_version
            reservation.mark_accepted(driver_id, now)
            await self._reservation_repo.save_farmout_state(
                reservation, expected_lock_version=expected_lock_version
            )
            effects.append(self._effects.confirmation(reservation, driver))
            effects.append(
                self._effects.activity(
                    ActivityAction.FARMOUT_ACCEPTED,
                    reservation,
                    driver,
                    method=ResponseMethod.ADMIN_OVERRIDE.value,
                    offer_id=resolved.id,
                )
            )

        report = await self._effect_publisher.publish(effects)
        self._logger.info(
            "Offer accepted by operator",
            extra={"reservation_id": reservation_id, "driver_id": driver_id, "offer_id": resolved.id},
        )
        return AcceptanceResult(
            reservation=reservation,
            offer=resolved,
            notification_delivered=report.failed == 0,
        )
