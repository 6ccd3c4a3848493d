"""Entidad Reservation - Agregado raíz del flujo de farmout."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum

from farmout_dispatch.domain.farmout_state_machine import (
    REQUEUE_STATUSES,
    FarmoutStatus,
    FarmoutTrigger,
    is_terminal,
    transition,
)


class FarmoutMode(str, Enum):
    """Quién atiende el viaje."""

    IN_HOUSE = "in_house"
    FARMOUT = "farmout"


@dataclass
class Reservation:
    """
    Reservación de viaje que puede ofrecerse a conductores externos.

    Solo los casos de uso de despacho modifican el estado de farmout; cada
    cambio incrementa lock_version para la escritura condicional.
    """

    # Identificadores
    id: int | None = None
    confirmation_number: str = ""

    # Viaje
    pickup_location: str = ""
    pickup_datetime: datetime | None = None
    dropoff_location: str = ""
    dropoff_datetime: datetime | None = None
    vehicle_type: str | None = None
    passenger_name: str = ""
    passenger_count: int = 1
    grand_total: Decimal = Decimal("0")
    trip_notes: str | None = None
    affiliate_id: int | None = None

    # Farmout
    farmout_mode: FarmoutMode = FarmoutMode.FARMOUT
    farmout_status: FarmoutStatus = FarmoutStatus.SEARCHING
    assigned_driver_id: int | None = None
    farmout_attempts: int = 0
    declined_driver_ids: set[int] = field(default_factory=set)

    # Control de concurrencia
    lock_version: int = 0

    # Timestamps
    created_at: datetime | None = None
    updated_at: datetime | None = None

    # === Propiedades ===

    @property
    def is_farmout(self) -> bool:
        return self.farmout_mode == FarmoutMode.FARMOUT

    @property
    def is_terminal(self) -> bool:
        """Verifica si el farmout terminó (aceptado, agotado o cancelado)."""
        return is_terminal(self.farmout_status)

    @property
    def needs_requeue(self) -> bool:
        """Verifica si la reservación espera el siguiente candidato."""
        return self.farmout_status in REQUEUE_STATUSES

    @property
    def pickup_city(self) -> str:
        """
        Ciudad de recogida: penúltimo segmento separado por comas.

        "123 Main St, Minneapolis, MN 55401" -> "Minneapolis".
        """
        parts = [part.strip() for part in self.pickup_location.split(",") if part.strip()]
        if len(parts) >= 2:
            return parts[-2]
        return parts[0] if parts else ""

    # === Métodos de negocio ===

    def _apply(self, trigger: FarmoutTrigger, now: datetime | None) -> None:
        self.farmout_status = transition(self.farmout_status, trigger)
        self.lock_version += 1
        if now is not None:
            self.updated_at = now

    def mark_offered(self, now: datetime | None = None) -> None:
        """Registra el envío de una oferta a un nuevo candidato."""
        self._apply(FarmoutTrigger.OFFER_SENT, now)
        self.farmout_attempts += 1

    def mark_accepted(self, driver_id: int, now: datetime | None = None) -> None:
        """Asigna el conductor que aceptó la oferta."""
        self._apply(FarmoutTrigger.DRIVER_ACCEPTED, now)
        self.assigned_driver_id = driver_id

    def mark_declined(self, driver_id: int, now: datetime | None = None) -> None:
        """Excluye al conductor que rechazó y deja la reservación lista para reencolar."""
        self._apply(FarmoutTrigger.DRIVER_DECLINED, now)
        self.declined_driver_ids.add(driver_id)

    def mark_expired(self, driver_id: int, now: datetime | None = None) -> None:
        """Excluye al conductor que no respondió a tiempo."""
        self._apply(FarmoutTrigger.OFFER_EXPIRED, now)
        self.declined_driver_ids.add(driver_id)

    def mark_exhausted(self, now: datetime | None = None) -> None:
        """No quedan candidatos: requiere despacho manual."""
        self._apply(FarmoutTrigger.POOL_EXHAUSTED, now)

    def cancel_farmout(self, now: datetime | None = None) -> None:
        """Detiene el farmout de forma definitiva."""
        self._apply(FarmoutTrigger.CANCELLED, now)
