import logging
from datetime import datetime

from farmout_dispatch.application.driver_directory import DriverDirectory
from farmout_dispatch.application.dtos import ReplyOutcome, ReplyOutcomeKind
from farmout_dispatch.application.effect_publisher import EffectPublisher
from farmout_dispatch.application.farmout_effects import FarmoutEffects
from farmout_dispatch.application.interfaces.clock import Clock
from farmout_dispatch.application.interfaces.offer_repo import OfferRepo
from farmout_dispatch.application.interfaces.reservation_repo import ReservationRepo
from farmout_dispatch.application.interfaces.transaction_manager import TransactionManager
from farmout_dispatch.application.messages import (
    REPLY_ALREADY_RESOLVED,
    REPLY_AMBIGUOUS_DRIVER,
    REPLY_DECLINED,
    REPLY_DRIVER_NOT_FOUND,
    REPLY_NO_PENDING_OFFER,
    REPLY_UNRECOGNIZED,
    MessageRenderer,
)
from farmout_dispatch.application.policy import FarmoutPolicy
from farmout_dispatch.domain.entities.driver import Driver
from farmout_dispatch.domain.entities.effects import ActivityAction, SideEffect
from farmout_dispatch.domain.entities.farmout_offer import OfferStatus, ResponseMethod
from farmout_dispatch.domain.errors import (
    AmbiguousDriverPhoneError,
    DriverNotFoundError,
    InvalidFarmoutTransitionError,
    OfferNotPendingError,
    ReservationNotFoundError,
)
from farmout_dispatch.domain.farmout_state_machine import FarmoutTrigger, can_transition
from farmout_dispatch.domain.value_objects.reply_token import ReplyIntent, classify_reply

DECLINE_REASON = "reply: decline"


class InterpretReplyUseCase:
    """
    Interpreta la respuesta de un conductor a su oferta pendiente más reciente.

    Siempre devuelve un texto para el remitente. No encadena el siguiente
    despacho: tras un rechazo el llamador invoca el reencolado.
    """

    def __init__(
        self,
        driver_directory: DriverDirectory,
        reservation_repo: ReservationRepo,
        offer_repo: OfferRepo,
        transaction_manager: TransactionManager,
        effect_publisher: EffectPublisher,
        effects: FarmoutEffects,
        renderer: MessageRenderer,
        clock: Clock,
        policy: FarmoutPolicy,
    ) -> None:
        self._driver_directory = driver_directory
        self._reservation_repo = reservation_repo
        self._offer_repo = offer_repo
        self._transaction_manager = transaction_manager
        self._effect_publisher = effect_publisher
        self._effects = effects
        self._renderer = renderer
        self._clock = clock
        self._policy = policy
        self._logger = logging.getLogger(__name__)

    async def execute(
        self, from_phone: str | None, raw_text: str | None, now: datetime | None = None
    ) -> ReplyOutcome:
        now = now or self._clock.now()
        intent = classify_reply(raw_text)
        effects: list[SideEffect] = []

        async with self._transaction_manager.start():
            try:
                driver = await self._driver_directory.resolve_driver_by_phone(from_phone)
            except DriverNotFoundError:
                self._logger.warning("Reply from unknown phone", extra={"intent": intent.value})
                return ReplyOutcome(
                    kind=ReplyOutcomeKind.DRIVER_NOT_FOUND,
                    message=REPLY_DRIVER_NOT_FOUND,
                    intent=intent,
                )
            except AmbiguousDriverPhoneError:
                return ReplyOutcome(
                    kind=ReplyOutcomeKind.AMBIGUOUS_DRIVER,
                    message=REPLY_AMBIGUOUS_DRIVER,
                    intent=intent,
                )

            offer = await self._offer_repo.find_latest_pending_for_driver(driver.id)
            if offer is None:
                return await self._no_pending_offer(driver, intent, now)

            if intent == ReplyIntent.UNRECOGNIZED:
                self._logger.info(
                    "Unrecognized reply, re-prompting",
                    extra={"driver_id": driver.id, "offer_id": offer.id},
                )
                return ReplyOutcome(
                    kind=ReplyOutcomeKind.UNRECOGNIZED,
                    message=REPLY_UNRECOGNIZED,
                    intent=intent,
                    driver_id=driver.id,
                    reservation_id=offer.reservation_id,
                    offer=offer,
                )

            reservation = await self._reservation_repo.get_by_id(offer.reservation_id)
            if reservation is None:
                raise ReservationNotFoundError(offer.reservation_id)

            accepted = intent == ReplyIntent.ACCEPT
            trigger = FarmoutTrigger.DRIVER_ACCEPTED if accepted else FarmoutTrigger.DRIVER_DECLINED
            if not can_transition(reservation.farmout_status, trigger):
                raise InvalidFarmoutTransitionError(
                    current_status=reservation.farmout_status.value, trigger=trigger.value
                )

            try:
                resolved = await self._offer_repo.resolve_offer(
                    offer.id,
                    OfferStatus.ACCEPTED if accepted else OfferStatus.DECLINED,
                    responded_at=now,
                    reason=None if accepted else DECLINE_REASON,
                    method=ResponseMethod.SMS_REPLY,
                )
            except OfferNotPendingError:
                self._logger.info(
                    "Reply raced another resolution",
                    extra={"driver_id": driver.id, "offer_id": offer.id},
                )
                return self._already_resolved(driver, intent, offer.reservation_id)

            expected_lock_version = reservation.lock_version
            if accepted:
                reservation.mark_accepted(driver.id, now)
                action = ActivityAction.FARMOUT_ACCEPTED
                message = self._renderer.accepted_reply(reservation)
                kind = ReplyOutcomeKind.ACCEPTED
            else:
                reservation.mark_declined(driver.id, now)
                action = ActivityAction.FARMOUT_DECLINED
                message = REPLY_DECLINED
                kind = ReplyOutcomeKind.DECLINED
            await self._reservation_repo.save_farmout_state(
                reservation, expected_lock_version=expected_lock_version
            )
            effects.append(
                self._effects.activity(
                    action,
                    reservation,
                    driver,
                    method=ResponseMethod.SMS_REPLY.value,
                    offer_id=resolved.id,
                    reply=(raw_text or "").strip(),
                )
            )

        await self._effect_publisher.publish(effects)
        self._logger.info(
            "Driver reply processed",
            extra={
                "driver_id": driver.id,
                "reservation_id": reservation.id,
                "offer_id": resolved.id,
                "outcome": kind.value,
            },
        )
        return ReplyOutcome(
            kind=kind,
            message=message,
            intent=intent,
            driver_id=driver.id,
            reservation_id=reservation.id,
            offer=resolved,
        )

    async def _no_pending_offer(
        self, driver: Driver, intent: ReplyIntent, now: datetime
    ) -> ReplyOutcome:
        # Un Y/N poco después de cerrada la oferta es un duplicado o una respuesta tardía.
        if intent != ReplyIntent.UNRECOGNIZED and self._policy.reply_lookback.total_seconds() > 0:
            latest = await self._offer_repo.find_latest_for_driver(driver.id)
            if (
                latest is not None
                and latest.responded_at is not None
                and now - latest.responded_at <= self._policy.reply_lookback
            ):
                return self._already_resolved(driver, intent, latest.reservation_id)
        return ReplyOutcome(
            kind=ReplyOutcomeKind.NO_PENDING_OFFER,
            message=REPLY_NO_PENDING_OFFER,
            intent=intent,
            driver_id=driver.id,
        )

    def _already_resolved(
        self, driver: Driver, intent: ReplyIntent, reservation_id: int | None
    ) -> ReplyOutcome:
        return ReplyOutcome(
            kind=ReplyOutcomeKind.ALREADY_RESOLVED,
            message=REPLY_ALREADY_RESOLVED,
            intent=intent,
            driver_id=driver.id,
            reservation_id=reservation_id,
        )
