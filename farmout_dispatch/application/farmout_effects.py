"""Construcción de efectos secundarios para cada transición de farmout."""

from farmout_dispatch.application.messages import MessageRenderer
from farmout_dispatch.application.policy import FarmoutPolicy
from farmout_dispatch.domain.entities.driver import Driver
from farmout_dispatch.domain.entities.effects import (
    ActivityAction,
    ActivityEvent,
    DispatchAlert,
    DriverMessage,
    MessagePurpose,
    SideEffect,
)
from farmout_dispatch.domain.entities.farmout_offer import FarmoutOffer
from farmout_dispatch.domain.entities.reservation import Reservation


class FarmoutEffects:
    def __init__(self, policy: FarmoutPolicy, renderer: MessageRenderer) -> None:
        self._policy = policy
        self._renderer = renderer

    def activity(
        self,
        action: ActivityAction,
        reservation: Reservation,
        driver: Driver | None = None,
        method: str | None = None,
        **details,
    ) -> ActivityEvent:
        payload = {"confirmation_number": reservation.confirmation_number, **details}
        if driver is not None:
            payload["driver_id"] = driver.id
            payload["driver_name"] = driver.name
        if method is not None:
            payload["method"] = method
        return ActivityEvent(
            action=action,
            reservation_id=reservation.id,
            driver_id=driver.id if driver is not None else None,
            method=method,
            details=payload,
        )

    def offered(
        self, reservation: Reservation, driver: Driver, offer: FarmoutOffer
    ) -> list[SideEffect]:
        effects: list[SideEffect] = []
        if self._policy.send_sms_offers:
            effects.append(
                DriverMessage(
                    driver=driver,
                    text=self._renderer.offer(reservation, driver),
                    purpose=MessagePurpose.OFFER,
                    reservation_id=reservation.id,
                )
            )
        effects.append(
            self.activity(
                ActivityAction.FARMOUT_OFFERED,
                reservation,
                driver,
                method="sms" if self._policy.send_sms_offers else None,
                offer_id=offer.id,
                attempt=reservation.farmout_attempts,
                expires_at=offer.expires_at.isoformat() if offer.expires_at else None,
            )
        )
        return effects

    def exhausted(self, reservation: Reservation, reason: str) -> list[SideEffect]:
        effects: list[SideEffect] = [
            self.activity(
                ActivityAction.FARMOUT_EXHAUSTED,
                reservation,
                reason=reason,
                attempts=reservation.farmout_attempts,
                declined_driver_ids=sorted(reservation.declined_driver_ids),
            )
        ]
        if self._policy.notify_dispatch_on_exhausted:
            effects.append(
                DispatchAlert(
                    reservation_id=reservation.id,
                    text=self._renderer.exhausted_alert(reservation),
                )
            )
        return effects

    def expired(
        self, reservation: Reservation, driver: Driver | None, offer: FarmoutOffer
    ) -> list[SideEffect]:
        effects: list[SideEffect] = [
            self.activity(
                ActivityAction.FARMOUT_EXPIRED,
                reservation,
                driver,
                method=offer.response_method.value if offer.response_method else None,
                offer_id=offer.id,
            )
        ]
        if self._policy.send_expiry_sms and driver is not None:
            effects.append(
                DriverMessage(
                    driver=driver,
                    text=self._renderer.expiry(reservation, driver),
                    purpose=MessagePurpose.EXPIRY,
                    reservation_id=reservation.id,
                )
            )
        return effects

    def confirmation(self, reservation: Reservation, driver: Driver) -> DriverMessage:
        return DriverMessage(
            driver=driver,
            text=self._renderer.confirmation(reservation, driver),
            purpose=MessagePurpose.CONFIRMATION,
            reservation_id=reservation.id,
        )
