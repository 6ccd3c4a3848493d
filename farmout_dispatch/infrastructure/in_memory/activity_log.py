from dataclasses import dataclass
from datetime import datetime

from farmout_dispatch.application.interfaces.activity_log import ActivityLog
from farmout_dispatch.domain.entities.effects import ActivityAction, ActivityEvent


@dataclass
class RecordedActivity:
    event: ActivityEvent
    created_at: datetime


class InMemoryActivityLog(ActivityLog):
    def __init__(self, fail: bool = False) -> None:
        self.entries: list[RecordedActivity] = []
        self.fail = fail

    async def record(self, event: ActivityEvent, created_at: datetime) -> None:
        if self.fail:
            raise RuntimeError("activity log unavailable")
        self.entries.append(RecordedActivity(event=event, created_at=created_at))

    def actions(self, reservation_id: int | None = None) -> list[ActivityAction]:
        return [
            entry.event.action
            for entry in self.entries
            if reservation_id is None or entry.event.reservation_id == reservation_id
        ]
