"""Resultados de los casos de uso de farmout."""

from dataclasses import dataclass, field
from enum import Enum

from farmout_dispatch.domain.entities.farmout_offer import FarmoutOffer
from farmout_dispatch.domain.entities.reservation import Reservation
from farmout_dispatch.domain.value_objects.reply_token import ReplyIntent


class DispatchOutcome(str, Enum):
    OFFERED = "offered"
    ALREADY_OFFERED = "already_offered"
    EXHAUSTED = "exhausted"
    DEFERRED = "deferred"
    HALTED = "halted"


@dataclass
class DispatchResult:
    """
    Resultado de despachar (o reencolar) una reservación.

    notification_delivered es None cuando no se intentó enviar mensaje.
    """

    outcome: DispatchOutcome
    reservation: Reservation
    offer: FarmoutOffer | None = None
    notification_delivered: bool | None = None

    @property
    def is_exhausted(self) -> bool:
        return self.outcome == DispatchOutcome.EXHAUSTED


class ReplyOutcomeKind(str, Enum):
    ACCEPTED = "accepted"
    DECLINED = "declined"
    UNRECOGNIZED = "unrecognized"
    ALREADY_RESOLVED = "already_resolved"
    NO_PENDING_OFFER = "no_pending_offer"
    DRIVER_NOT_FOUND = "driver_not_found"
    AMBIGUOUS_DRIVER = "ambiguous_driver"


@dataclass
class ReplyOutcome:
    """Resultado de interpretar una respuesta; message siempre trae texto para el remitente."""

    kind: ReplyOutcomeKind
    message: str
    intent: ReplyIntent | None = None
    driver_id: int | None = None
    reservation_id: int | None = None
    offer: FarmoutOffer | None = None

    @property
    def requeue_required(self) -> bool:
        return self.kind == ReplyOutcomeKind.DECLINED


@dataclass
class SweepReport:
    """Resumen de una pasada del barrido de expiración."""

    expired_offer_ids: list[int] = field(default_factory=list)
    skipped_offer_ids: list[int] = field(default_factory=list)
    requeue_results: list[DispatchResult] = field(default_factory=list)
    # Reservaciones que ya esperaban reencolado antes del barrido (ventana cerrada, fallo previo)
    pending_requeue_results: list[DispatchResult] = field(default_factory=list)

    @property
    def expired_count(self) -> int:
        return len(self.expired_offer_ids)


@dataclass
class AcceptanceResult:
    """Resultado de aceptar una oferta en nombre del conductor."""

    reservation: Reservation
    offer: FarmoutOffer
    notification_delivered: bool | None = None
