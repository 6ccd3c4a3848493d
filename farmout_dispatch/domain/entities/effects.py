"""Efectos secundarios emitidos por las transiciones de farmout.

Las transiciones devuelven estos valores en lugar de llamar transportes; el
publicador los ejecuta después de confirmar el estado.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from farmout_dispatch.domain.entities.driver import Driver


class ActivityAction(str, Enum):
    """Eventos de auditoría del flujo de farmout."""

    FARMOUT_OFFERED = "farmout_offered"
    FARMOUT_ACCEPTED = "farmout_accepted"
    FARMOUT_DECLINED = "farmout_declined"
    FARMOUT_EXPIRED = "farmout_expired"
    FARMOUT_EXHAUSTED = "farmout_exhausted"
    FARMOUT_CANCELLED = "farmout_cancelled"


class MessagePurpose(str, Enum):
    OFFER = "offer"
    CONFIRMATION = "confirmation"
    EXPIRY = "expiry"


@dataclass(frozen=True)
class DriverMessage:
    """Texto a entregar a un conductor."""

    driver: Driver
    text: str
    purpose: MessagePurpose
    reservation_id: int | None = None


@dataclass(frozen=True)
class ActivityEvent:
    """Entrada del log de actividad (fire-and-forget)."""

    action: ActivityAction
    reservation_id: int
    driver_id: int | None = None
    method: str | None = None
    details: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DispatchAlert:
    """Aviso al equipo de despacho (p. ej. conductores agotados)."""

    reservation_id: int
    text: str


SideEffect = DriverMessage | ActivityEvent | DispatchAlert
