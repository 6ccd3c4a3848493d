"""Implementaciones in-memory para desarrollo y testing."""

from farmout_dispatch.infrastructure.in_memory.activity_log import InMemoryActivityLog
from farmout_dispatch.infrastructure.in_memory.driver_repo import InMemoryDriverRepo
from farmout_dispatch.infrastructure.in_memory.notification_gateway import (
    InMemoryNotificationGateway,
)
from farmout_dispatch.infrastructure.in_memory.offer_repo import InMemoryOfferRepo
from farmout_dispatch.infrastructure.in_memory.reservation_repo import InMemoryReservationRepo
from farmout_dispatch.infrastructure.in_memory.transaction_manager import (
    NoopTransactionManager as InMemoryTransactionManager,
)

__all__ = [
    # Repositories
    "InMemoryReservationRepo",
    "InMemoryDriverRepo",
    "InMemoryOfferRepo",
    "InMemoryActivityLog",
    # Gateways
    "InMemoryNotificationGateway",
    # Infrastructure
    "InMemoryTransactionManager",
]
