from datetime import datetime

from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession

from farmout_dispatch.application.interfaces.activity_log import ActivityLog
from farmout_dispatch.domain.entities.effects import ActivityEvent
from farmout_dispatch.infrastructure.db.converters import to_db
from farmout_dispatch.infrastructure.db.tables import activity_log

ENTITY_TYPE_RESERVATION = "reservation"


class ActivityLogSQL(ActivityLog):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def record(self, event: ActivityEvent, created_at: datetime) -> None:
        await self._session.execute(
            insert(activity_log).values(
                action=event.action.value,
                entity_type=ENTITY_TYPE_RESERVATION,
                entity_id=event.reservation_id,
                details=event.details,
                created_at=to_db(created_at),
            )
        )
