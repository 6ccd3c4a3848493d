import logging
from datetime import datetime

from farmout_dispatch.application.dtos import DispatchOutcome, DispatchResult
from farmout_dispatch.application.effect_publisher import EffectPublisher
from farmout_dispatch.application.farmout_effects import FarmoutEffects
from farmout_dispatch.application.interfaces.clock import Clock
from farmout_dispatch.application.interfaces.driver_repo import DriverRepo
from farmout_dispatch.application.interfaces.offer_repo import OfferRepo
from farmout_dispatch.application.interfaces.reservation_repo import ReservationRepo
from farmout_dispatch.application.interfaces.transaction_manager import TransactionManager
from farmout_dispatch.application.policy import FarmoutPolicy
from farmout_dispatch.domain.entities.effects import SideEffect
from farmout_dispatch.domain.entities.reservation import Reservation
from farmout_dispatch.domain.farmout_state_machine import FarmoutTrigger, can_transition
from farmout_dispatch.domain.errors import (
    FarmoutNotEnabledError,
    InvalidFarmoutTransitionError,
    PendingOfferExistsError,
    ReservationNotFoundError,
)
from farmout_dispatch.domain.ranking import rank_candidates


class DispatchNextOfferUseCase:
    """
    Ofrece la reservación al mejor candidato que no la haya rechazado.

    La oferta y el nuevo estado se confirman juntos; el SMS y la auditoría se
    publican después. Un fallo de notificación no revierte la oferta.
    """

    def __init__(
        self,
        reservation_repo: ReservationRepo,
        driver_repo: DriverRepo,
        offer_repo: OfferRepo,
        transaction_manager: TransactionManager,
        effect_publisher: EffectPublisher,
        effects: FarmoutEffects,
        clock: Clock,
        policy: FarmoutPolicy,
    ) -> None:
        self._reservation_repo = reservation_repo
        self._driver_repo = driver_repo
        self._offer_repo = offer_repo
        self._transaction_manager = transaction_manager
        self._effect_publisher = effect_publisher
        self._effects = effects
        self._clock = clock
        self._policy = policy
        self._logger = logging.getLogger(__name__)

    async def execute(self, reservation_id: int, now: datetime | None = None) -> DispatchResult:
        now = now or self._clock.now()
        effects: list[SideEffect] = []

        async with self._transaction_manager.start():
            reservation = await self._reservation_repo.get_by_id(reservation_id)
            if reservation is None:
                raise ReservationNotFoundError(reservation_id)
            if not reservation.is_farmout:
                raise FarmoutNotEnabledError(reservation_id)
            if reservation.is_terminal:
                self._logger.info(
                    "Dispatch skipped: farmout already finished",
                    extra={
                        "reservation_id": reservation_id,
                        "farmout_status": reservation.farmout_status.value,
                    },
                )
                return DispatchResult(outcome=DispatchOutcome.HALTED, reservation=reservation)

            existing = await self._offer_repo.get_pending_offer(reservation_id)
            if existing is not None:
                return DispatchResult(
                    outcome=DispatchOutcome.ALREADY_OFFERED,
                    reservation=reservation,
                    offer=existing,
                )

            if not self._policy.is_within_offer_window(now):
                self._logger.info(
                    "Dispatch deferred: outside offer window",
                    extra={"reservation_id": reservation_id, "now": now.isoformat()},
                )
                return DispatchResult(outcome=DispatchOutcome.DEFERRED, reservation=reservation)

            if not can_transition(reservation.farmout_status, FarmoutTrigger.OFFER_SENT):
                raise InvalidFarmoutTransitionError(
                    current_status=reservation.farmout_status.value,
                    trigger=FarmoutTrigger.OFFER_SENT.value,
                )

            pool = await self._driver_repo.list_pool(affiliate_id=reservation.affiliate_id)
            candidates = rank_candidates(
                reservation,
                pool,
                excluded_driver_ids=reservation.declined_driver_ids,
                options=self._policy.ranking,
                now=now,
            )
            driver = candidates.first()

            if driver is None:
                effects = await self.exhaust(reservation, now, reason="no_eligible_drivers")
                result = DispatchResult(outcome=DispatchOutcome.EXHAUSTED, reservation=reservation)
            else:
                expected_lock_version = reservation.lock_version
                try:
                    offer = await self._offer_repo.create_offer(
                        reservation_id=reservation_id,
                        driver_id=driver.id,
                        created_at=now,
                        expires_at=now + self._policy.offer_ttl,
                    )
                except PendingOfferExistsError:
                    self._logger.warning(
                        "Pending offer created concurrently, using existing offer",
                        extra={"reservation_id": reservation_id, "driver_id": driver.id},
                    )
                    existing = await self._offer_repo.get_pending_offer(reservation_id)
                    return DispatchResult(
                        outcome=DispatchOutcome.ALREADY_OFFERED,
                        reservation=reservation,
                        offer=existing,
                    )

                reservation.mark_offered(now)
                await self._reservation_repo.save_farmout_state(
                    reservation, expected_lock_version=expected_lock_version
                )
                await self._driver_repo.touch_last_offer(driver.id, now)
                effects = self._effects.offered(reservation, driver, offer)
                result = DispatchResult(
                    outcome=DispatchOutcome.OFFERED, reservation=reservation, offer=offer
                )
                self._logger.info(
                    "Farmout offer created",
                    extra={
                        "reservation_id": reservation_id,
                        "driver_id": driver.id,
                        "offer_id": offer.id,
                        "attempt": reservation.farmout_attempts,
                    },
                )

        report = await self._effect_publisher.publish(effects)
        result.notification_delivered = report.offer_delivered
        if result.outcome == DispatchOutcome.OFFERED and report.offer_delivered is False:
            self._logger.warning(
                "Offer notification failed; offer remains pending",
                extra={"reservation_id": reservation_id, "offer_id": result.offer.id},
            )
        return result

    async def exhaust(
        self, reservation: Reservation, now: datetime, reason: str
    ) -> list[SideEffect]:
        """
        Marca la reservación como agotada y devuelve los efectos a publicar.

        Debe llamarse dentro de una transacción abierta.
        """
        expected_lock_version = reservation.lock_version
        reservation.mark_exhausted(now)
        await self._reservation_repo.save_farmout_state(
            reservation, expected_lock_version=expected_lock_version
        )
        self._logger.warning(
            "Farmout exhausted",
            extra={
                "reservation_id": reservation.id,
                "reason": reason,
                "attempts": reservation.farmout_attempts,
                "declined_driver_ids": sorted(reservation.declined_driver_ids),
            },
        )
        return self._effects.exhausted(reservation, reason=reason)
