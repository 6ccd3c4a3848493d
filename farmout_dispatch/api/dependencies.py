import logging
from datetime import timedelta
from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from farmout_dispatch.api.deps import AsyncSessionLocal
from farmout_dispatch.application.driver_directory import DriverDirectory, DriverLookupCache
from farmout_dispatch.application.dtos import SweepReport
from farmout_dispatch.application.effect_publisher import EffectPublisher
from farmout_dispatch.application.farmout_effects import FarmoutEffects
from farmout_dispatch.application.interfaces.clock import SystemClock
from farmout_dispatch.application.interfaces.notification_gateway import NotificationGateway
from farmout_dispatch.application.messages import MessageRenderer
from farmout_dispatch.application.policy import FarmoutPolicy
from farmout_dispatch.application.use_cases.cancel_farmout import CancelFarmoutUseCase
from farmout_dispatch.application.use_cases.dispatch_next_offer import DispatchNextOfferUseCase
from farmout_dispatch.application.use_cases.expire_offers import ExpireOffersUseCase
from farmout_dispatch.application.use_cases.interpret_reply import InterpretReplyUseCase
from farmout_dispatch.application.use_cases.override_accept import OverrideAcceptUseCase
from farmout_dispatch.application.use_cases.requeue_farmout import RequeueFarmoutUseCase
from farmout_dispatch.config import Settings, get_settings
from farmout_dispatch.infrastructure.db.repositories.activity_log_sql import ActivityLogSQL
from farmout_dispatch.infrastructure.db.repositories.driver_repo_sql import DriverRepoSQL
from farmout_dispatch.infrastructure.db.repositories.offer_repo_sql import OfferRepoSQL
from farmout_dispatch.infrastructure.db.repositories.reservation_repo_sql import ReservationRepoSQL
from farmout_dispatch.infrastructure.db.transaction_manager import SQLAlchemyTransactionManager
from farmout_dispatch.infrastructure.gateways.twilio_sms_gateway import TwilioSmsGateway
from farmout_dispatch.infrastructure.in_memory.activity_log import InMemoryActivityLog
from farmout_dispatch.infrastructure.in_memory.driver_repo import InMemoryDriverRepo
from farmout_dispatch.infrastructure.in_memory.notification_gateway import (
    InMemoryNotificationGateway,
)
from farmout_dispatch.infrastructure.in_memory.offer_repo import InMemoryOfferRepo
from farmout_dispatch.infrastructure.in_memory.reservation_repo import InMemoryReservationRepo
from farmout_dispatch.infrastructure.in_memory.transaction_manager import NoopTransactionManager

logger = logging.getLogger(__name__)

_clock = SystemClock()


async def get_session(settings: Settings = Depends(get_settings)) -> AsyncSession | None:
    if settings.use_in_memory:
        yield None
        return
    async with AsyncSessionLocal() as session:
        yield session


@lru_cache(maxsize=1)
def _in_memory_bundle():
    return {
        "reservation_repo": InMemoryReservationRepo(),
        "driver_repo": InMemoryDriverRepo(),
        "offer_repo": InMemoryOfferRepo(),
        "activity_log": InMemoryActivityLog(),
        "notification_gateway": InMemoryNotificationGateway(),
        "tx_manager": NoopTransactionManager(),
    }


@lru_cache(maxsize=1)
def _driver_cache(ttl_seconds: float) -> DriverLookupCache:
    # Shared across requests so lookups survive the per-request wiring
    return DriverLookupCache(clock=_clock, ttl=timedelta(seconds=ttl_seconds))


def _notification_gateway(settings: Settings) -> NotificationGateway:
    if settings.twilio_enabled:
        return TwilioSmsGateway(
            account_sid=settings.twilio_account_sid,
            auth_token=settings.twilio_auth_token,
            from_number=settings.twilio_from_number,
            base_url=settings.twilio_base_url,
            timeout_seconds=settings.twilio_timeout_seconds,
        )
    if not settings.use_in_memory:
        logger.warning("Twilio credentials missing; SMS will only be recorded in memory")
    return _in_memory_bundle()["notification_gateway"]


def build_use_cases(settings: Settings, session: AsyncSession | None) -> dict:
    """Wire every farmout use case against the in-memory stores or the given session."""
    if settings.use_in_memory:
        bundle = _in_memory_bundle()
        reservation_repo = bundle["reservation_repo"]
        driver_repo = bundle["driver_repo"]
        offer_repo = bundle["offer_repo"]
        activity_log = bundle["activity_log"]
        tx_manager = bundle["tx_manager"]
    else:
        if not session:
            raise RuntimeError("DB session not available")
        reservation_repo = ReservationRepoSQL(session)
        driver_repo = DriverRepoSQL(session)
        offer_repo = OfferRepoSQL(session)
        activity_log = ActivityLogSQL(session)
        tx_manager = SQLAlchemyTransactionManager(session)

    policy = FarmoutPolicy.from_settings(settings)
    renderer = MessageRenderer(policy)
    effects = FarmoutEffects(policy, renderer)
    publisher = EffectPublisher(
        notification_gateway=_notification_gateway(settings),
        activity_log=activity_log,
        clock=_clock,
        transaction_manager=tx_manager,
        dispatch_alert_phones=policy.dispatch_alert_phones,
    )
    directory = DriverDirectory(
        driver_repo, cache=_driver_cache(settings.driver_cache_ttl_seconds)
    )

    dispatcher = DispatchNextOfferUseCase(
        reservation_repo=reservation_repo,
        driver_repo=driver_repo,
        offer_repo=offer_repo,
        transaction_manager=tx_manager,
        effect_publisher=publisher,
        effects=effects,
        clock=_clock,
        policy=policy,
    )
    requeue = RequeueFarmoutUseCase(
        reservation_repo=reservation_repo,
        dispatcher=dispatcher,
        transaction_manager=tx_manager,
        effect_publisher=publisher,
        clock=_clock,
        policy=policy,
    )
    return {
        "dispatch_next_offer": dispatcher,
        "requeue_farmout": requeue,
        "interpret_reply": InterpretReplyUseCase(
            driver_directory=directory,
            reservation_repo=reservation_repo,
            offer_repo=offer_repo,
            transaction_manager=tx_manager,
            effect_publisher=publisher,
            effects=effects,
            renderer=renderer,
            clock=_clock,
            policy=policy,
        ),
        "expire_offers": ExpireOffersUseCase(
            offer_repo=offer_repo,
            reservation_repo=reservation_repo,
            driver_repo=driver_repo,
            transaction_manager=tx_manager,
            effect_publisher=publisher,
            effects=effects,
            requeue=requeue,
            clock=_clock,
        ),
        "cancel_farmout": CancelFarmoutUseCase(
            reservation_repo=reservation_repo,
            offer_repo=offer_repo,
            transaction_manager=tx_manager,
            effect_publisher=publisher,
            effects=effects,
            clock=_clock,
        ),
        "override_accept": OverrideAcceptUseCase(
            reservation_repo=reservation_repo,
            offer_repo=offer_repo,
            driver_repo=driver_repo,
            transaction_manager=tx_manager,
            effect_publisher=publisher,
            effects=effects,
            clock=_clock,
        ),
        "offer_repo": offer_repo,
        "tx_manager": tx_manager,
    }


def get_use_cases(
    settings: Settings = Depends(get_settings),
    session: AsyncSession | None = Depends(get_session),
):
    return build_use_cases(settings, session)


async def _requeue_then_sweep(use_cases: dict, limit: int) -> SweepReport:
    # Reservations left in expired/declined_requeue by a closed offer window or a
    # failed webhook requeue get their next offer here.
    pending = await use_cases["requeue_farmout"].execute_pending(limit=limit)
    report = await use_cases["expire_offers"].execute(limit=limit)
    report.pending_requeue_results = pending
    return report


async def run_expiry_sweep(settings: Settings | None = None) -> SweepReport:
    """One background tick in its own session: drain waiting requeues, then expire overdue offers."""
    settings = settings or get_settings()
    limit = settings.expiry_sweep_batch_size
    if settings.use_in_memory:
        return await _requeue_then_sweep(build_use_cases(settings, None), limit)
    async with AsyncSessionLocal() as session:
        return await _requeue_then_sweep(build_use_cases(settings, session), limit)
