"""Interfaces (Puertos) de la capa de aplicación."""

from farmout_dispatch.application.interfaces.activity_log import ActivityLog
from farmout_dispatch.application.interfaces.clock import Clock, FakeClock, SystemClock
from farmout_dispatch.application.interfaces.driver_repo import DriverRepo
from farmout_dispatch.application.interfaces.notification_gateway import (
    NotificationGateway,
    NotificationResult,
)
from farmout_dispatch.application.interfaces.offer_repo import OfferRepo
from farmout_dispatch.application.interfaces.reservation_repo import ReservationRepo
from farmout_dispatch.application.interfaces.transaction_manager import TransactionManager

__all__ = [
    # Repositories
    "ReservationRepo",
    "DriverRepo",
    "OfferRepo",
    "ActivityLog",
    # Gateways
    "NotificationGateway",
    "NotificationResult",
    # Services
    "Clock",
    "SystemClock",
    "FakeClock",
    "TransactionManager",
]
