"""Entidad FarmoutOffer - una propuesta de una reservación a un conductor."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class OfferStatus(str, Enum):
    """Estados de una oferta. Solo PENDING es mutable."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    EXPIRED = "expired"


class ResponseMethod(str, Enum):
    """Cómo se resolvió la oferta."""

    SMS_REPLY = "sms_reply"
    TIMEOUT = "timeout"
    ADMIN_OVERRIDE = "admin_override"
    CANCELLED = "cancelled"


@dataclass
class FarmoutOffer:
    """
    Oferta con ventana de validez acotada.

    Nunca se borra; una vez resuelta es inmutable.
    """

    id: int | None = None
    reservation_id: int = 0
    driver_id: int = 0
    status: OfferStatus = OfferStatus.PENDING
    created_at: datetime | None = None
    expires_at: datetime | None = None
    responded_at: datetime | None = None
    decline_reason: str | None = None
    response_method: ResponseMethod | None = None

    @property
    def is_pending(self) -> bool:
        return self.status == OfferStatus.PENDING

    def is_expired_at(self, now: datetime) -> bool:
        """Vencida solo cuando now ya pasó expires_at; en el instante exacto sigue vigente."""
        return self.is_pending and self.expires_at is not None and self.expires_at < now
