"""Ejecuta los efectos secundarios de una transición ya confirmada."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from farmout_dispatch.application.interfaces.activity_log import ActivityLog
from farmout_dispatch.application.interfaces.clock import Clock
from farmout_dispatch.application.interfaces.notification_gateway import (
    NotificationGateway,
    NotificationResult,
)
from farmout_dispatch.application.interfaces.transaction_manager import TransactionManager
from farmout_dispatch.domain.entities.effects import (
    ActivityEvent,
    DispatchAlert,
    DriverMessage,
    MessagePurpose,
    SideEffect,
)

logger = logging.getLogger(__name__)


@dataclass
class PublishReport:
    delivered: int = 0
    failed: int = 0
    offer_delivered: bool | None = None
    errors: list[str] = field(default_factory=list)


class EffectPublisher:
    """
    Publica mensajes, eventos de actividad y alertas.

    Los fallos se registran y se cuentan; nunca se propagan ni se reintentan,
    el estado ya quedó confirmado y el respaldo es un operador humano.
    """

    def __init__(
        self,
        notification_gateway: NotificationGateway,
        activity_log: ActivityLog,
        clock: Clock,
        transaction_manager: TransactionManager,
        dispatch_alert_phones: Iterable[str] = (),
    ) -> None:
        self._notification_gateway = notification_gateway
        self._activity_log = activity_log
        self._clock = clock
        self._transaction_manager = transaction_manager
        self._dispatch_alert_phones = tuple(dispatch_alert_phones)

    async def publish(self, effects: Iterable[SideEffect]) -> PublishReport:
        report = PublishReport()
        for effect in effects:
            try:
                ok = await self._publish_one(effect)
            except Exception as exc:
                logger.exception(
                    "Side effect failed",
                    extra={"effect_type": type(effect).__name__},
                )
                ok = False
                report.errors.append(f"{type(effect).__name__}: {exc}")
            if ok:
                report.delivered += 1
            else:
                report.failed += 1
            if isinstance(effect, DriverMessage) and effect.purpose == MessagePurpose.OFFER:
                report.offer_delivered = ok
        return report

    async def _publish_one(self, effect: SideEffect) -> bool:
        if isinstance(effect, ActivityEvent):
            async with self._transaction_manager.start():
                await self._activity_log.record(effect, created_at=self._clock.now())
            return True
        if isinstance(effect, DriverMessage):
            result = await self._notification_gateway.send_driver_message(effect.driver, effect.text)
            return self._check(result, reservation_id=effect.reservation_id, driver_id=effect.driver.id)
        if isinstance(effect, DispatchAlert):
            return await self._send_alert(effect)
        raise TypeError(f"Unknown side effect: {effect!r}")

    async def _send_alert(self, alert: DispatchAlert) -> bool:
        if not self._dispatch_alert_phones:
            logger.warning(
                "Dispatch alert not sent: no dispatch contacts configured",
                extra={"reservation_id": alert.reservation_id},
            )
            return False
        delivered = True
        for phone in self._dispatch_alert_phones:
            result = await self._notification_gateway.send_message(phone, alert.text)
            delivered = self._check(result, reservation_id=alert.reservation_id) and delivered
        return delivered

    def _check(
        self,
        result: NotificationResult,
        reservation_id: int | None,
        driver_id: int | None = None,
    ) -> bool:
        if result.success:
            return True
        logger.warning(
            "Notification delivery failed",
            extra={
                "reservation_id": reservation_id,
                "driver_id": driver_id,
                "error_code": result.error_code,
                "error_message": result.error_message,
            },
        )
        return False
