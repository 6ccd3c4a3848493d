from dataclasses import dataclass

from farmout_dispatch.application.interfaces.notification_gateway import (
    NotificationGateway,
    NotificationResult,
)


@dataclass
class SentMessage:
    to: str
    text: str


class InMemoryNotificationGateway(NotificationGateway):
    """Registra los mensajes enviados; puede simular fallos de entrega."""

    def __init__(self, fail: bool = False) -> None:
        self.sent: list[SentMessage] = []
        self.fail = fail

    async def send_message(self, to: str, text: str) -> NotificationResult:
        if self.fail:
            return NotificationResult(
                status="FAILED",
                error_code="SIMULATED_FAILURE",
                error_message="Simulated delivery failure",
            )
        self.sent.append(SentMessage(to=to, text=text))
        return NotificationResult(status="SENT", message_id=f"SM{len(self.sent):032d}")

    def messages_to(self, phone: str) -> list[str]:
        return [m.text for m in self.sent if m.to == phone]
