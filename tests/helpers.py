"""Builders compartidos por las pruebas de farmout."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from farmout_dispatch.application.driver_directory import DriverDirectory, DriverLookupCache
from farmout_dispatch.application.effect_publisher import EffectPublisher
from farmout_dispatch.application.farmout_effects import FarmoutEffects
from farmout_dispatch.application.interfaces.clock import FakeClock
from farmout_dispatch.application.messages import MessageRenderer
from farmout_dispatch.application.policy import FarmoutPolicy
from farmout_dispatch.application.use_cases import (
    CancelFarmoutUseCase,
    DispatchNextOfferUseCase,
    ExpireOffersUseCase,
    InterpretReplyUseCase,
    OverrideAcceptUseCase,
    RequeueFarmoutUseCase,
)
from farmout_dispatch.domain.entities.driver import AvailabilityStatus, Driver
from farmout_dispatch.domain.entities.reservation import Reservation
from farmout_dispatch.infrastructure.in_memory import (
    InMemoryActivityLog,
    InMemoryDriverRepo,
    InMemoryNotificationGateway,
    InMemoryOfferRepo,
    InMemoryReservationRepo,
    InMemoryTransactionManager,
)

NOW = datetime(2026, 1, 5, 14, 0, tzinfo=timezone.utc)
DISPATCH_PHONE = "+16125559999"

POOL_RATINGS = [
    ("Alice", "Anders", 10),
    ("Bob", "Baker", 10),
    ("Charlie", "Clark", 9),
    ("Dana", "Diaz", 8),
    ("Ethan", "Evans", 7),
    ("Fiona", "Fox", 6),
    ("George", "Gray", 5),
    ("Hannah", "Hill", 3),
    ("Iris", "Irwin", 1),
    ("Jack", "Jones", 1),
]


def driver_phone(driver_id: int) -> str:
    return f"+1612555{driver_id:04d}"


def make_driver(driver_id: int, first_name: str, last_name: str = "", rating: int | None = 5, **kwargs) -> Driver:
    kwargs.setdefault("phone", driver_phone(driver_id))
    return Driver(
        id=driver_id,
        first_name=first_name,
        last_name=last_name,
        rating=rating,
        **kwargs,
    )


def make_pool() -> list[Driver]:
    """Alice(10), Bob(10), Charlie(9) ... Iris(1), Jack(1), ids 1-10."""
    return [
        make_driver(index, first, last, rating)
        for index, (first, last, rating) in enumerate(POOL_RATINGS, start=1)
    ]


def make_reservation(**overrides) -> Reservation:
    values = dict(
        confirmation_number="RL-1001",
        pickup_location="123 Main St, Minneapolis, MN 55401",
        pickup_datetime=NOW + timedelta(hours=6, minutes=30),
        dropoff_location="4300 Glumack Dr, St Paul, MN 55111",
        vehicle_type="Sedan",
        passenger_name="Maria Lopez",
        passenger_count=2,
        grand_total=Decimal("150.00"),
        created_at=NOW - timedelta(days=1),
        updated_at=NOW - timedelta(days=1),
    )
    values.update(overrides)
    return Reservation(**values)


def offline(driver: Driver) -> Driver:
    driver.availability_status = AvailabilityStatus.OFFLINE
    return driver


@dataclass
class FarmoutHarness:
    """Casos de uso cableados contra stores en memoria (o SQL) y un reloj fijo."""

    clock: FakeClock
    policy: FarmoutPolicy
    reservation_repo: object
    driver_repo: object
    offer_repo: object
    activity_log: object
    gateway: InMemoryNotificationGateway
    tx_manager: object
    directory: DriverDirectory
    dispatch: DispatchNextOfferUseCase
    requeue: RequeueFarmoutUseCase
    interpret_reply: InterpretReplyUseCase
    expire_offers: ExpireOffersUseCase
    cancel: CancelFarmoutUseCase
    override_accept: OverrideAcceptUseCase

    async def add_reservation(self, **overrides) -> Reservation:
        async with self.tx_manager.start():
            return await self.reservation_repo.add(make_reservation(**overrides))

    async def reload(self, reservation_id: int) -> Reservation:
        async with self.tx_manager.start():
            return await self.reservation_repo.get_by_id(reservation_id)

    async def offers_for(self, reservation_id: int):
        async with self.tx_manager.start():
            return await self.offer_repo.list_by_reservation(reservation_id)

    async def reply(self, driver_id: int, text: str):
        return await self.interpret_reply.execute(driver_phone(driver_id), text)


def build_harness(
    clock: FakeClock | None = None,
    policy: FarmoutPolicy | None = None,
    drivers: list[Driver] | None = None,
    *,
    reservation_repo=None,
    driver_repo=None,
    offer_repo=None,
    activity_log=None,
    tx_manager=None,
    gateway: InMemoryNotificationGateway | None = None,
    cache_ttl: timedelta = timedelta(0),
) -> FarmoutHarness:
    clock = clock or FakeClock(NOW)
    policy = policy or FarmoutPolicy(dispatch_alert_phones=(DISPATCH_PHONE,))
    reservation_repo = reservation_repo or InMemoryReservationRepo()
    driver_repo = driver_repo or InMemoryDriverRepo(make_pool() if drivers is None else drivers)
    offer_repo = offer_repo or InMemoryOfferRepo()
    activity_log = activity_log or InMemoryActivityLog()
    tx_manager = tx_manager or InMemoryTransactionManager()
    gateway = gateway or InMemoryNotificationGateway()

    renderer = MessageRenderer(policy)
    effects = FarmoutEffects(policy, renderer)
    publisher = EffectPublisher(
        notification_gateway=gateway,
        activity_log=activity_log,
        clock=clock,
        transaction_manager=tx_manager,
        dispatch_alert_phones=policy.dispatch_alert_phones,
    )
    directory = DriverDirectory(driver_repo, cache=DriverLookupCache(clock, ttl=cache_ttl))
    dispatch = DispatchNextOfferUseCase(
        reservation_repo=reservation_repo,
        driver_repo=driver_repo,
        offer_repo=offer_repo,
        transaction_manager=tx_manager,
        effect_publisher=publisher,
        effects=effects,
        clock=clock,
        policy=policy,
    )
    requeue = RequeueFarmoutUseCase(
        reservation_repo=reservation_repo,
        dispatcher=dispatch,
        transaction_manager=tx_manager,
        effect_publisher=publisher,
        clock=clock,
        policy=policy,
    )
    return FarmoutHarness(
        clock=clock,
        policy=policy,
        reservation_repo=reservation_repo,
        driver_repo=driver_repo,
        offer_repo=offer_repo,
        activity_log=activity_log,
        gateway=gateway,
        tx_manager=tx_manager,
        directory=directory,
        dispatch=dispatch,
        requeue=requeue,
        interpret_reply=InterpretReplyUseCase(
            driver_directory=directory,
            reservation_repo=reservation_repo,
            offer_repo=offer_repo,
            transaction_manager=tx_manager,
            effect_publisher=publisher,
            effects=effects,
            renderer=renderer,
            clock=clock,
            policy=policy,
        ),
        expire_offers=ExpireOffersUseCase(
            offer_repo=offer_repo,
            reservation_repo=reservation_repo,
            driver_repo=driver_repo,
            transaction_manager=tx_manager,
            effect_publisher=publisher,
            effects=effects,
            requeue=requeue,
            clock=clock,
        ),
        cancel=CancelFarmoutUseCase(
            reservation_repo=reservation_repo,
            offer_repo=offer_repo,
            transaction_manager=tx_manager,
            effect_publisher=publisher,
            effects=effects,
            clock=clock,
        ),
        override_accept=OverrideAcceptUseCase(
            reservation_repo=reservation_repo,
            offer_repo=offer_repo,
            driver_repo=driver_repo,
            transaction_manager=tx_manager,
            effect_publisher=publisher,
            effects=effects,
            clock=clock,
        ),
    )
