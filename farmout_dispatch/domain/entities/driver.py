"""Entidad Driver - conductor externo/afiliado que puede recibir ofertas."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

MIN_RATING = 1
MAX_RATING = 10
DEFAULT_RATING = 5


class AvailabilityStatus(str, Enum):
    """Disponibilidad del conductor para recibir ofertas."""

    AVAILABLE = "available"
    OFFLINE = "offline"


@dataclass
class Driver:
    """
    Conductor del directorio.

    El núcleo de despacho solo lo lee, excepto last_offer_at que se
    actualiza al enviarle una oferta.
    """

    id: int | None = None
    first_name: str = ""
    last_name: str = ""
    display_name: str | None = None
    phone: str | None = None
    rating: int | None = DEFAULT_RATING
    availability_status: AvailabilityStatus = AvailabilityStatus.AVAILABLE
    service_areas: list[str] = field(default_factory=list)
    preferred_vehicle_types: list[str] = field(default_factory=list)
    affiliate_id: int | None = None
    last_offer_at: datetime | None = None

    @property
    def name(self) -> str:
        """Nombre visible: display_name o nombre completo."""
        if self.display_name and self.display_name.strip():
            return self.display_name.strip()
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def effective_rating(self) -> int:
        """Calificación acotada a 1-10 (5 si no tiene)."""
        if self.rating is None:
            return DEFAULT_RATING
        return max(MIN_RATING, min(MAX_RATING, int(self.rating)))

    @property
    def is_available(self) -> bool:
        return self.availability_status == AvailabilityStatus.AVAILABLE

    def serves_area(self, city: str) -> bool:
        """Verifica si la ciudad está entre sus zonas de servicio."""
        if not city:
            return False
        wanted = city.strip().casefold()
        return any(area.strip().casefold() == wanted for area in self.service_areas)

    def prefers_vehicle(self, vehicle_type: str | None) -> bool:
        if not vehicle_type:
            return False
        wanted = vehicle_type.strip().casefold()
        return any(v.strip().casefold() == wanted for v in self.preferred_vehicle_types)
