import logging
from datetime import datetime

from farmout_dispatch.application.dtos import SweepReport
from farmout_dispatch.application.effect_publisher import EffectPublisher
from farmout_dispatch.application.farmout_effects import FarmoutEffects
from farmout_dispatch.application.interfaces.clock import Clock
from farmout_dispatch.application.interfaces.driver_repo import DriverRepo
from farmout_dispatch.application.interfaces.offer_repo import OfferRepo
from farmout_dispatch.application.interfaces.reservation_repo import ReservationRepo
from farmout_dispatch.application.interfaces.transaction_manager import TransactionManager
from farmout_dispatch.application.use_cases.requeue_farmout import RequeueFarmoutUseCase
from farmout_dispatch.domain.entities.effects import SideEffect
from farmout_dispatch.domain.entities.farmout_offer import OfferStatus, ResponseMethod
from farmout_dispatch.domain.errors import OfferNotPendingError, ReservationNotFoundError
from farmout_dispatch.domain.farmout_state_machine import FarmoutStatus

EXPIRY_REASON = "offer timed out"


class ExpireOffersUseCase:
    """
    Barrido de expiración de ofertas.

    Cada oferta vencida se resuelve como expirada, el conductor queda
    excluido y la reservación se reencola. La expiración se evalúa con el
    reloj de pared contra expires_at, nunca con tiempos del canal de SMS.
    """

    def __init__(
        self,
        offer_repo: OfferRepo,
        reservation_repo: ReservationRepo,
        driver_repo: DriverRepo,
        transaction_manager: TransactionManager,
        effect_publisher: EffectPublisher,
        effects: FarmoutEffects,
        requeue: RequeueFarmoutUseCase,
        clock: Clock,
    ) -> None:
        self._offer_repo = offer_repo
        self._reservation_repo = reservation_repo
        self._driver_repo = driver_repo
        self._transaction_manager = transaction_manager
        self._effect_publisher = effect_publisher
        self._effects = effects
        self._requeue = requeue
        self._clock = clock
        self._logger = logging.getLogger(__name__)

    async def execute(self, now: datetime | None = None, limit: int = 50) -> SweepReport:
        now = now or self._clock.now()
        report = SweepReport()

        async with self._transaction_manager.start():
            expired = await self._offer_repo.list_expired_pending(now, limit=limit)

        for offer in expired:
            effects: list[SideEffect] = []
            async with self._transaction_manager.start():
                try:
                    resolved = await self._offer_repo.resolve_offer(
                        offer.id,
                        OfferStatus.EXPIRED,
                        responded_at=now,
                        reason=EXPIRY_REASON,
                        method=ResponseMethod.TIMEOUT,
                    )
                except OfferNotPendingError:
                    # Una respuesta ganó la carrera; no hay nada que expirar.
                    report.skipped_offer_ids.append(offer.id)
                    continue

                reservation = await self._reservation_repo.get_by_id(offer.reservation_id)
                if reservation is None:
                    raise ReservationNotFoundError(offer.reservation_id)

                if reservation.farmout_status == FarmoutStatus.OFFERED:
                    expected_lock_version = reservation.lock_version
                    reservation.mark_expired(offer.driver_id, now)
                    await self._reservation_repo.save_farmout_state(
                        reservation, expected_lock_version=expected_lock_version
                    )
                else:
                    self._logger.warning(
                        "Expired offer for reservation not in offered state",
                        extra={
                            "reservation_id": reservation.id,
                            "offer_id": offer.id,
                            "farmout_status": reservation.farmout_status.value,
                        },
                    )
                driver = await self._driver_repo.get_by_id(offer.driver_id)
                effects = self._effects.expired(reservation, driver, resolved)

            await self._effect_publisher.publish(effects)
            report.expired_offer_ids.append(offer.id)
            self._logger.info(
                "Farmout offer expired",
                extra={
                    "reservation_id": offer.reservation_id,
                    "driver_id": offer.driver_id,
                    "offer_id": offer.id,
                },
            )

            if reservation.needs_requeue:
                report.requeue_results.append(await self._requeue.execute(reservation.id, now=now))

        return report
