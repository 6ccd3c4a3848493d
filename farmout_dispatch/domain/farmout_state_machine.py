"""Máquina de estados del ciclo de vida de farmout de una reservación."""

from enum import Enum

from farmout_dispatch.domain.errors import InvalidFarmoutTransitionError


class FarmoutStatus(str, Enum):
    """Estados de farmout de una reservación."""

    SEARCHING = "searching"
    OFFERED = "offered"
    ACCEPTED = "accepted"
    DECLINED_REQUEUE = "declined_requeue"
    EXPIRED = "expired"
    EXHAUSTED = "exhausted"
    CANCELLED = "cancelled"


class FarmoutTrigger(str, Enum):
    """Eventos que mueven la reservación entre estados."""

    OFFER_SENT = "offer_sent"
    DRIVER_ACCEPTED = "driver_accepted"
    DRIVER_DECLINED = "driver_declined"
    OFFER_EXPIRED = "offer_expired"
    POOL_EXHAUSTED = "pool_exhausted"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = frozenset(
    {FarmoutStatus.ACCEPTED, FarmoutStatus.EXHAUSTED, FarmoutStatus.CANCELLED}
)

# Estados desde los que se debe volver a despachar al siguiente candidato.
REQUEUE_STATUSES = frozenset({FarmoutStatus.DECLINED_REQUEUE, FarmoutStatus.EXPIRED})

_DISPATCHABLE = (FarmoutStatus.SEARCHING, *REQUEUE_STATUSES)

_TRANSITIONS: dict[tuple[FarmoutStatus, FarmoutTrigger], FarmoutStatus] = {
    **{(status, FarmoutTrigger.OFFER_SENT): FarmoutStatus.OFFERED for status in _DISPATCHABLE},
    (FarmoutStatus.OFFERED, FarmoutTrigger.DRIVER_ACCEPTED): FarmoutStatus.ACCEPTED,
    (FarmoutStatus.OFFERED, FarmoutTrigger.DRIVER_DECLINED): FarmoutStatus.DECLINED_REQUEUE,
    (FarmoutStatus.OFFERED, FarmoutTrigger.OFFER_EXPIRED): FarmoutStatus.EXPIRED,
    **{
        (status, FarmoutTrigger.POOL_EXHAUSTED): FarmoutStatus.EXHAUSTED
        for status in (*_DISPATCHABLE, FarmoutStatus.OFFERED)
    },
    **{
        (status, FarmoutTrigger.CANCELLED): FarmoutStatus.CANCELLED
        for status in FarmoutStatus
        if status not in TERMINAL_STATUSES
    },
}


def transition(current: FarmoutStatus, trigger: FarmoutTrigger) -> FarmoutStatus:
    """
    Calcula el siguiente estado.

    Args:
        current: Estado actual de la reservación.
        trigger: Evento ocurrido.

    Returns:
        Nuevo estado.

    Raises:
        InvalidFarmoutTransitionError: Si la combinación no está definida.
    """
    try:
        return _TRANSITIONS[(FarmoutStatus(current), FarmoutTrigger(trigger))]
    except KeyError:
        raise InvalidFarmoutTransitionError(
            current_status=FarmoutStatus(current).value, trigger=FarmoutTrigger(trigger).value
        ) from None


def can_transition(current: FarmoutStatus, trigger: FarmoutTrigger) -> bool:
    """Verifica si el evento es válido desde el estado actual."""
    return (FarmoutStatus(current), FarmoutTrigger(trigger)) in _TRANSITIONS


def is_terminal(status: FarmoutStatus) -> bool:
    return FarmoutStatus(status) in TERMINAL_STATUSES
