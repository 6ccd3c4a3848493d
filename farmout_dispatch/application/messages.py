"""Textos para conductores y despacho."""

import re
from datetime import datetime
from decimal import Decimal

from farmout_dispatch.application.policy import FarmoutPolicy
from farmout_dispatch.domain.entities.driver import Driver
from farmout_dispatch.domain.entities.reservation import Reservation

REPLY_DRIVER_NOT_FOUND = "We couldn't find your driver account. Please contact dispatch."
REPLY_AMBIGUOUS_DRIVER = (
    "We couldn't match your phone number to a single driver account. Please contact dispatch."
)
REPLY_NO_PENDING_OFFER = (
    "You don't have any pending trip offers. Check the driver portal for details."
)
REPLY_ALREADY_RESOLVED = (
    "This trip offer has already been closed. Check your driver portal for details."
)
REPLY_ACCEPTED = (
    "Trip ACCEPTED! You're confirmed for {confirmation_number}. Pickup: {pickup}. "
    "Check your driver portal for full details."
)
REPLY_DECLINED = (
    "Trip declined. We'll offer it to another driver. Reply STOP to opt out of future offers."
)
REPLY_UNRECOGNIZED = (
    "Reply Y to accept or N to decline the trip offer. Or visit your driver portal for details."
)
REPLY_ERROR = (
    "Sorry, there was an error processing your reply. Please try again or contact dispatch."
)

EXHAUSTED_ALERT = (
    "Farmout exhausted for trip #{confirmation_number} ({pickup_date} {pickup_time}, "
    "{pickup_address}). No eligible drivers left after {attempts} offers. "
    "Trip requires manual dispatch."
)

_SLUG_INVALID = re.compile(r"[^a-z0-9-]")
_SLUG_DASHES = re.compile(r"-+")
_TAG = re.compile(r"\{([a-z_]+)\}")


def format_date(moment: datetime | None) -> str:
    """Ej: Mon, Jan 5."""
    if moment is None:
        return ""
    return f"{moment:%a}, {moment:%b} {moment.day}"


def format_time(moment: datetime | None) -> str:
    """Ej: 3:05 PM."""
    if moment is None:
        return ""
    hour = moment.hour % 12 or 12
    suffix = "AM" if moment.hour < 12 else "PM"
    return f"{hour}:{moment.minute:02d} {suffix}"


def portal_slug(driver: Driver) -> str:
    slug = f"{driver.first_name.strip()}-{driver.last_name.strip()}".lower()
    slug = _SLUG_DASHES.sub("-", _SLUG_INVALID.sub("-", slug)).strip("-")
    return slug or f"driver-{driver.id}"


def render_template(template: str, tags: dict[str, str]) -> str:
    """Reemplaza {tag} conocidos; los desconocidos quedan como están."""
    return _TAG.sub(lambda match: tags.get(match.group(1), match.group(0)), template)


class MessageRenderer:
    """Arma los textos SMS a partir de la política y los datos del viaje."""

    def __init__(self, policy: FarmoutPolicy) -> None:
        self._policy = policy

    def _local(self, moment: datetime | None) -> datetime | None:
        if moment is None:
            return None
        return self._policy.local_time(moment)

    def trip_tags(self, reservation: Reservation, driver: Driver | None = None) -> dict[str, str]:
        pickup = self._local(reservation.pickup_datetime)
        pay: Decimal = self._policy.driver_pay(reservation.grand_total)
        passenger_first = reservation.passenger_name.split(" ")[0] if reservation.passenger_name else ""
        dropoff_parts = [p.strip() for p in reservation.dropoff_location.split(",") if p.strip()]
        tags = {
            "confirmation_number": reservation.confirmation_number,
            "reservation_id": reservation.confirmation_number,
            "pickup_date": format_date(pickup),
            "pickup_time": format_time(pickup),
            "pickup_address": reservation.pickup_location or reservation.pickup_city,
            "dropoff_address": reservation.dropoff_location,
            "pickup_city": reservation.pickup_city,
            "dropoff_city": dropoff_parts[-2] if len(dropoff_parts) >= 2 else reservation.dropoff_location,
            "pay_amount": f"{pay:.2f}",
            "timeout_minutes": str(self._policy.offer_ttl_minutes),
            "passenger_name": passenger_first or "Passenger",
            "passenger_count": str(reservation.passenger_count or 1),
            "vehicle_type": reservation.vehicle_type or "",
            "trip_notes": reservation.trip_notes or "",
        }
        if driver is not None:
            tags.update(
                {
                    "driver_first_name": driver.first_name or driver.name.split(" ")[0] or "Driver",
                    "driver_last_name": driver.last_name,
                    "driver_name": driver.name or "Driver",
                    "portal_link": self.portal_link(driver, reservation),
                }
            )
        return tags

    def portal_link(self, driver: Driver, reservation: Reservation) -> str:
        if not self._policy.portal_base_url:
            return ""
        base = self._policy.portal_base_url.rstrip("/")
        return f"{base}/{portal_slug(driver)}?offer={reservation.id}"

    def offer(self, reservation: Reservation, driver: Driver) -> str:
        return render_template(self._policy.offer_template, self.trip_tags(reservation, driver))

    def confirmation(self, reservation: Reservation, driver: Driver) -> str:
        return render_template(
            self._policy.confirmation_template, self.trip_tags(reservation, driver)
        )

    def expiry(self, reservation: Reservation, driver: Driver) -> str:
        return render_template(self._policy.expiry_template, self.trip_tags(reservation, driver))

    def accepted_reply(self, reservation: Reservation) -> str:
        pickup = self._local(reservation.pickup_datetime)
        when = f"{format_date(pickup)} at {format_time(pickup)}" if pickup else "see portal"
        return REPLY_ACCEPTED.format(
            confirmation_number=reservation.confirmation_number, pickup=when
        )

    def exhausted_alert(self, reservation: Reservation) -> str:
        return render_template(
            EXHAUSTED_ALERT,
            {**self.trip_tags(reservation), "attempts": str(reservation.farmout_attempts)},
        )
