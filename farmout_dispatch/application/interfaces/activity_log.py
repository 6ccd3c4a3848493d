from datetime import datetime

from farmout_dispatch.domain.entities.effects import ActivityEvent


class ActivityLog:
    """Log de auditoría de solo escritura."""

    async def record(self, event: ActivityEvent, created_at: datetime) -> None:
        raise NotImplementedError
