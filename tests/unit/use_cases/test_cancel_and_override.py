import pytest

from farmout_dispatch.application.dtos import DispatchOutcome, ReplyOutcomeKind
from farmout_dispatch.domain.entities.effects import ActivityAction
from farmout_dispatch.domain.entities.farmout_offer import OfferStatus, ResponseMethod
from farmout_dispatch.domain.errors import NoPendingOfferError
from farmout_dispatch.domain.farmout_state_machine import FarmoutStatus
from tests.helpers import driver_phone


class TestCancelFarmout:
    @pytest.mark.asyncio
    async def test_cancel_closes_pending_offer(self, harness):
        reservation = await harness.add_reservation()
        await harness.dispatch.execute(reservation.id)

        cancelled = await harness.cancel.execute(reservation.id, reason="client cancelled")

        assert cancelled.farmout_status == FarmoutStatus.CANCELLED
        [offer] = await harness.offers_for(reservation.id)
        assert offer.status == OfferStatus.EXPIRED
        assert offer.response_method == ResponseMethod.CANCELLED
        assert offer.decline_reason == "client cancelled"
        assert harness.activity_log.actions(reservation.id)[-1] == ActivityAction.FARMOUT_CANCELLED

    @pytest.mark.asyncio
    async def test_nothing_runs_after_cancel(self, harness):
        reservation = await harness.add_reservation()
        await harness.dispatch.execute(reservation.id)
        await harness.cancel.execute(reservation.id)
        harness.clock.advance(minutes=30)

        report = await harness.expire_offers.execute()
        dispatch = await harness.dispatch.execute(reservation.id)
        reply = await harness.reply(1, "Y")

        assert report.expired_count == 0
        assert dispatch.outcome == DispatchOutcome.HALTED
        assert reply.kind == ReplyOutcomeKind.ALREADY_RESOLVED
        assert (await harness.reload(reservation.id)).farmout_status == FarmoutStatus.CANCELLED

    @pytest.mark.asyncio
    async def test_cancel_terminal_is_noop(self, harness):
        reservation = await harness.add_reservation(farmout_status=FarmoutStatus.ACCEPTED)

        result = await harness.cancel.execute(reservation.id)

        assert result.farmout_status == FarmoutStatus.ACCEPTED
        assert harness.activity_log.entries == []


class TestOverrideAccept:
    @pytest.mark.asyncio
    async def test_operator_accepts_for_driver(self, harness):
        reservation = await harness.add_reservation()
        await harness.dispatch.execute(reservation.id)

        result = await harness.override_accept.execute(reservation.id, driver_id=1)

        assert result.reservation.farmout_status == FarmoutStatus.ACCEPTED
        assert result.reservation.assigned_driver_id == 1
        assert result.offer.response_method == ResponseMethod.ADMIN_OVERRIDE
        assert result.notification_delivered is True
        confirmation = harness.gateway.messages_to(driver_phone(1))[-1]
        assert confirmation.startswith("Confirmed! Trip #RL-1001")

    @pytest.mark.asyncio
    async def test_wrong_driver_rejected(self, harness):
        reservation = await harness.add_reservation()
        await harness.dispatch.execute(reservation.id)

        with pytest.raises(NoPendingOfferError):
            await harness.override_accept.execute(reservation.id, driver_id=2)

        assert (await harness.reload(reservation.id)).farmout_status == FarmoutStatus.OFFERED
