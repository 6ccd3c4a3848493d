"""Entidades del dominio de farmout."""

from farmout_dispatch.domain.entities.driver import AvailabilityStatus, Driver
from farmout_dispatch.domain.entities.effects import (
    ActivityAction,
    ActivityEvent,
    DispatchAlert,
    DriverMessage,
    MessagePurpose,
    SideEffect,
)
from farmout_dispatch.domain.entities.farmout_offer import (
    FarmoutOffer,
    OfferStatus,
    ResponseMethod,
)
from farmout_dispatch.domain.entities.reservation import FarmoutMode, Reservation

__all__ = [
    # Reservation
    "Reservation",
    "FarmoutMode",
    # Driver
    "Driver",
    "AvailabilityStatus",
    # Offer
    "FarmoutOffer",
    "OfferStatus",
    "ResponseMethod",
    # Efectos
    "ActivityAction",
    "ActivityEvent",
    "DispatchAlert",
    "DriverMessage",
    "MessagePurpose",
    "SideEffect",
]
