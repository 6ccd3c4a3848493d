"""
Integration tests for the SQL repositories on aiosqlite.

Verifica las garantías que dependen de la base de datos:
- Una sola oferta pendiente por reservación (índice único)
- Resolución condicional de ofertas
- Escritura con lock_version
- Conversión de fechas UTC
"""

from datetime import timedelta

import pytest

from farmout_dispatch.domain.entities.driver import AvailabilityStatus
from farmout_dispatch.domain.entities.effects import ActivityAction, ActivityEvent
from farmout_dispatch.domain.entities.farmout_offer import OfferStatus, ResponseMethod
from farmout_dispatch.domain.errors import (
    OfferNotFoundError,
    OfferNotPendingError,
    OptimisticLockError,
    PendingOfferExistsError,
)
from farmout_dispatch.domain.farmout_state_machine import FarmoutStatus
from farmout_dispatch.infrastructure.db.repositories import (
    ActivityLogSQL,
    DriverRepoSQL,
    OfferRepoSQL,
    ReservationRepoSQL,
)
from farmout_dispatch.infrastructure.db.tables import activity_log
from tests.helpers import NOW, make_driver, make_reservation

pytestmark = pytest.mark.integration


async def seed_reservation(session, **overrides):
    async with session.begin():
        return await ReservationRepoSQL(session).add(make_reservation(**overrides))


class TestReservationRepoSQL:
    @pytest.mark.asyncio
    async def test_round_trip(self, db_session):
        created = await seed_reservation(db_session, declined_driver_ids={3, 1})

        async with db_session.begin():
            loaded = await ReservationRepoSQL(db_session).get_by_id(created.id)

        assert loaded.confirmation_number == "RL-1001"
        assert loaded.pickup_datetime == created.pickup_datetime
        assert loaded.pickup_datetime.tzinfo is not None
        assert loaded.declined_driver_ids == {1, 3}
        assert loaded.grand_total == created.grand_total
        assert loaded.farmout_status == FarmoutStatus.SEARCHING

    @pytest.mark.asyncio
    async def test_save_with_stale_version_fails(self, db_session):
        created = await seed_reservation(db_session)
        repo = ReservationRepoSQL(db_session)

        async with db_session.begin():
            first = await repo.get_by_id(created.id)
            second = await repo.get_by_id(created.id)
            first.mark_offered(NOW)
            await repo.save_farmout_state(first, expected_lock_version=0)

            second.cancel_farmout(NOW)
            with pytest.raises(OptimisticLockError):
                await repo.save_farmout_state(second, expected_lock_version=0)

        async with db_session.begin():
            stored = await repo.get_by_id(created.id)
        assert stored.farmout_status == FarmoutStatus.OFFERED
        assert stored.lock_version == 1
        assert stored.farmout_attempts == 1

    @pytest.mark.asyncio
    async def test_list_by_farmout_status(self, db_session):
        await seed_reservation(db_session, confirmation_number="RL-1")
        waiting = await seed_reservation(
            db_session, confirmation_number="RL-2", farmout_status=FarmoutStatus.EXPIRED
        )

        async with db_session.begin():
            found = await ReservationRepoSQL(db_session).list_by_farmout_status(
                [FarmoutStatus.EXPIRED, FarmoutStatus.DECLINED_REQUEUE]
            )

        assert [r.id for r in found] == [waiting.id]


class TestOfferRepoSQL:
    @pytest.mark.asyncio
    async def test_second_pending_offer_rejected(self, db_session):
        reservation = await seed_reservation(db_session)
        repo = OfferRepoSQL(db_session)

        async with db_session.begin():
            first = await repo.create_offer(reservation.id, 1, NOW, NOW + timedelta(minutes=15))
            with pytest.raises(PendingOfferExistsError):
                await repo.create_offer(reservation.id, 2, NOW, NOW + timedelta(minutes=15))
            # The savepoint keeps the outer transaction usable
            pending = await repo.get_pending_offer(reservation.id)

        assert pending.id == first.id
        assert pending.driver_id == 1

    @pytest.mark.asyncio
    async def test_resolve_frees_slot_for_next_offer(self, db_session):
        reservation = await seed_reservation(db_session)
        repo = OfferRepoSQL(db_session)

        async with db_session.begin():
            first = await repo.create_offer(reservation.id, 1, NOW, NOW + timedelta(minutes=15))
            declined = await repo.resolve_offer(
                first.id,
                OfferStatus.DECLINED,
                responded_at=NOW,
                reason="reply: decline",
                method=ResponseMethod.SMS_REPLY,
            )
            second = await repo.create_offer(reservation.id, 2, NOW, NOW + timedelta(minutes=15))

        assert declined.status == OfferStatus.DECLINED
        assert declined.response_method == ResponseMethod.SMS_REPLY
        assert declined.responded_at == NOW
        assert second.status == OfferStatus.PENDING

    @pytest.mark.asyncio
    async def test_resolve_is_single_shot(self, db_session):
        reservation = await seed_reservation(db_session)
        repo = OfferRepoSQL(db_session)

        async with db_session.begin():
            offer = await repo.create_offer(reservation.id, 1, NOW, NOW + timedelta(minutes=15))
            await repo.resolve_offer(offer.id, OfferStatus.ACCEPTED, responded_at=NOW)
            with pytest.raises(OfferNotPendingError) as exc_info:
                await repo.resolve_offer(offer.id, OfferStatus.EXPIRED, responded_at=NOW)
            with pytest.raises(OfferNotFoundError):
                await repo.resolve_offer(999, OfferStatus.EXPIRED, responded_at=NOW)

        assert exc_info.value.current_status == "accepted"

    @pytest.mark.asyncio
    async def test_expired_and_latest_queries(self, db_session):
        first = await seed_reservation(db_session, confirmation_number="RL-1")
        second = await seed_reservation(db_session, confirmation_number="RL-2")
        repo = OfferRepoSQL(db_session)

        async with db_session.begin():
            old = await repo.create_offer(first.id, 1, NOW, NOW + timedelta(minutes=15))
            new = await repo.create_offer(
                second.id, 1, NOW + timedelta(minutes=5), NOW + timedelta(minutes=20)
            )

        async with db_session.begin():
            at_expiry = await repo.list_expired_pending(NOW + timedelta(minutes=15))
            expired = await repo.list_expired_pending(NOW + timedelta(minutes=16))
            latest = await repo.find_latest_pending_for_driver(1)
            none_for_bob = await repo.find_latest_for_driver(2)

        assert at_expiry == []
        assert [o.id for o in expired] == [old.id]
        assert latest.id == new.id
        assert latest.expires_at == NOW + timedelta(minutes=20)
        assert none_for_bob is None


class TestDriverRepoSQL:
    @pytest.mark.asyncio
    async def test_phone_lookup_and_pool(self, db_session):
        repo = DriverRepoSQL(db_session)
        async with db_session.begin():
            await repo.add(make_driver(1, "Alice", rating=10, service_areas=["Minneapolis"]))
            await repo.add(make_driver(2, "Bob", rating=9, affiliate_id=8))
            await repo.add(make_driver(3, "Cara", rating=8, availability_status=AvailabilityStatus.OFFLINE))

        async with db_session.begin():
            by_phone = await repo.find_by_phone("+16125550001")
            pool = await repo.list_pool(affiliate_id=7)
            await repo.touch_last_offer(1, NOW)
            alice = await repo.get_by_id(1)

        assert [d.first_name for d in by_phone] == ["Alice"]
        assert by_phone[0].service_areas == ["Minneapolis"]
        assert [d.first_name for d in pool] == ["Alice"]
        assert alice.last_offer_at == NOW


class TestActivityLogSQL:
    @pytest.mark.asyncio
    async def test_record(self, db_session):
        async with db_session.begin():
            await ActivityLogSQL(db_session).record(
                ActivityEvent(
                    action=ActivityAction.FARMOUT_OFFERED,
                    reservation_id=7,
                    driver_id=1,
                    details={"offer_id": 3},
                ),
                created_at=NOW,
            )

        async with db_session.begin():
            rows = (await db_session.execute(activity_log.select())).mappings().all()

        assert len(rows) == 1
        assert rows[0]["action"] == "farmout_offered"
        assert rows[0]["entity_type"] == "reservation"
        assert rows[0]["entity_id"] == 7
        assert rows[0]["details"] == {"offer_id": 3}
