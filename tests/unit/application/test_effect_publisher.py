import pytest

from farmout_dispatch.application.effect_publisher import EffectPublisher
from farmout_dispatch.application.interfaces.clock import FakeClock
from farmout_dispatch.domain.entities.effects import (
    ActivityAction,
    ActivityEvent,
    DispatchAlert,
    DriverMessage,
    MessagePurpose,
)
from farmout_dispatch.infrastructure.in_memory import (
    InMemoryActivityLog,
    InMemoryNotificationGateway,
    InMemoryTransactionManager,
)
from tests.helpers import DISPATCH_PHONE, NOW, make_driver


def build_publisher(gateway=None, activity_log=None, alert_phones=(DISPATCH_PHONE,)):
    return EffectPublisher(
        notification_gateway=gateway or InMemoryNotificationGateway(),
        activity_log=activity_log or InMemoryActivityLog(),
        clock=FakeClock(NOW),
        transaction_manager=InMemoryTransactionManager(),
        dispatch_alert_phones=alert_phones,
    )


def offer_message(driver):
    return DriverMessage(driver=driver, text="offer", purpose=MessagePurpose.OFFER, reservation_id=1)


class TestEffectPublisher:
    @pytest.mark.asyncio
    async def test_publishes_messages_activity_and_alerts(self):
        gateway = InMemoryNotificationGateway()
        activity_log = InMemoryActivityLog()
        publisher = build_publisher(gateway, activity_log)
        driver = make_driver(1, "Alice")

        report = await publisher.publish(
            [
                offer_message(driver),
                ActivityEvent(action=ActivityAction.FARMOUT_OFFERED, reservation_id=1, driver_id=1),
                DispatchAlert(reservation_id=1, text="pool exhausted"),
            ]
        )

        assert report.delivered == 3
        assert report.failed == 0
        assert report.offer_delivered is True
        assert gateway.messages_to(driver.phone) == ["offer"]
        assert gateway.messages_to(DISPATCH_PHONE) == ["pool exhausted"]
        assert activity_log.actions() == [ActivityAction.FARMOUT_OFFERED]
        assert activity_log.entries[0].created_at == NOW

    @pytest.mark.asyncio
    async def test_failures_are_counted_not_raised(self):
        publisher = build_publisher(
            InMemoryNotificationGateway(fail=True), InMemoryActivityLog(fail=True)
        )

        report = await publisher.publish(
            [
                offer_message(make_driver(1, "Alice")),
                ActivityEvent(action=ActivityAction.FARMOUT_OFFERED, reservation_id=1),
            ]
        )

        assert report.delivered == 0
        assert report.failed == 2
        assert report.offer_delivered is False
        assert len(report.errors) == 1

    @pytest.mark.asyncio
    async def test_driver_without_phone(self):
        gateway = InMemoryNotificationGateway()
        publisher = build_publisher(gateway)

        report = await publisher.publish([offer_message(make_driver(1, "Alice", phone=None))])

        assert report.offer_delivered is False
        assert gateway.sent == []

    @pytest.mark.asyncio
    async def test_alert_without_contacts_is_not_delivered(self):
        gateway = InMemoryNotificationGateway()
        publisher = build_publisher(gateway, alert_phones=())

        report = await publisher.publish([DispatchAlert(reservation_id=1, text="alert")])

        assert report.failed == 1
        assert gateway.sent == []
