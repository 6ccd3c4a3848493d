from abc import ABC, abstractmethod
from dataclasses import dataclass

from farmout_dispatch.domain.entities.driver import Driver


@dataclass
class NotificationResult:
    status: str  # SENT, FAILED
    message_id: str | None = None
    error_code: str | None = None
    error_message: str | None = None
    http_status: int | None = None

    @property
    def success(self) -> bool:
        return self.status == "SENT"


class NotificationGateway(ABC):
    @abstractmethod
    async def send_message(self, to: str, text: str) -> NotificationResult:
        """
        Entrega texto libre a un número.
        """
        pass

    async def send_driver_message(self, driver: Driver, text: str) -> NotificationResult:
        """Envía texto al teléfono registrado del conductor."""
        if not driver.phone:
            return NotificationResult(
                status="FAILED",
                error_code="NO_PHONE",
                error_message=f"Driver {driver.id} has no phone on file",
            )
        return await self.send_message(driver.phone, text)
