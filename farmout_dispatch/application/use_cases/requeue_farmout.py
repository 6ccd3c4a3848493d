import logging
from datetime import datetime

from farmout_dispatch.application.dtos import DispatchOutcome, DispatchResult
from farmout_dispatch.application.effect_publisher import EffectPublisher
from farmout_dispatch.application.interfaces.clock import Clock
from farmout_dispatch.application.interfaces.reservation_repo import ReservationRepo
from farmout_dispatch.application.interfaces.transaction_manager import TransactionManager
from farmout_dispatch.application.policy import FarmoutPolicy
from farmout_dispatch.application.use_cases.dispatch_next_offer import DispatchNextOfferUseCase
from farmout_dispatch.domain.entities.effects import SideEffect
from farmout_dispatch.domain.errors import ReservationNotFoundError
from farmout_dispatch.domain.farmout_state_machine import REQUEUE_STATUSES, FarmoutStatus


class RequeueFarmoutUseCase:
    """
    Vuelve a despachar una reservación tras un rechazo o una expiración.

    Limita el número de ofertas por reservación; al alcanzarlo la marca como
    agotada en lugar de seguir recorriendo el pool.
    """

    def __init__(
        self,
        reservation_repo: ReservationRepo,
        dispatcher: DispatchNextOfferUseCase,
        transaction_manager: TransactionManager,
        effect_publisher: EffectPublisher,
        clock: Clock,
        policy: FarmoutPolicy,
    ) -> None:
        self._reservation_repo = reservation_repo
        self._dispatcher = dispatcher
        self._transaction_manager = transaction_manager
        self._effect_publisher = effect_publisher
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
            if reservation.is_terminal:
                return DispatchResult(outcome=DispatchOutcome.HALTED, reservation=reservation)
            if (
                reservation.farmout_status != FarmoutStatus.OFFERED
                and reservation.farmout_attempts >= self._policy.max_attempts
            ):
                effects = await self._dispatcher.exhaust(reservation, now, reason="max_attempts")

        if effects:
            await self._effect_publisher.publish(effects)
            return DispatchResult(outcome=DispatchOutcome.EXHAUSTED, reservation=reservation)

        self._logger.info(
            "Requeueing farmout",
            extra={
                "reservation_id": reservation_id,
                "attempts": reservation.farmout_attempts,
                "excluded": len(reservation.declined_driver_ids),
            },
        )
        return await self._dispatcher.execute(reservation_id, now=now)

    async def execute_pending(
        self, limit: int = 50, now: datetime | None = None
    ) -> list[DispatchResult]:
        """
        Reencola todas las reservaciones en declined_requeue o expired.

        Args:
            limit: Máximo de reservaciones por llamada.
            now: Momento de referencia.

        Returns:
            Un DispatchResult por reservación procesada.
        """
        now = now or self._clock.now()
        async with self._transaction_manager.start():
            pending = await self._reservation_repo.list_by_farmout_status(
                REQUEUE_STATUSES, limit=limit
            )
        results = []
        for reservation in pending:
            results.append(await self.execute(reservation.id, now=now))
        return results
