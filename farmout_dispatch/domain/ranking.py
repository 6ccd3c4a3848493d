"""Selección y orden de candidatos para una oferta de farmout.

Función pura: mismas entradas, mismo orden. No consulta almacenamiento ni reloj.
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import datetime, timedelta
from functools import cached_property

from farmout_dispatch.domain.entities.driver import Driver
from farmout_dispatch.domain.entities.reservation import Reservation

RATING_WEIGHT = 1000
SERVICE_AREA_BONUS = 500
VEHICLE_TYPE_BONUS = 300
ON_DEMAND_BONUS = 100


@dataclass(frozen=True)
class RankingOptions:
    """
    Interruptores del algoritmo de orden.

    Con los valores por defecto el puntaje es solo rating * 1000 y el resto
    de bonos queda apagado.
    """

    rating_priority: bool = True
    service_area_matching: bool = False
    vehicle_type_matching: bool = False
    on_demand_priority: bool = False
    on_demand_threshold: timedelta = timedelta(hours=2)
    driver_cooldown: timedelta = timedelta(0)


@dataclass(frozen=True)
class RankedCandidate:
    driver: Driver
    score: int


def _is_eligible(
    driver: Driver,
    reservation: Reservation,
    excluded: frozenset[int],
    options: RankingOptions,
    now: datetime | None,
) -> bool:
    if not driver.is_available or driver.id in excluded:
        return False
    if (
        reservation.affiliate_id is not None
        and driver.affiliate_id is not None
        and driver.affiliate_id != reservation.affiliate_id
    ):
        return False
    if options.driver_cooldown > timedelta(0) and now is not None and driver.last_offer_at:
        if now - driver.last_offer_at < options.driver_cooldown:
            return False
    return True


def _is_on_demand(reservation: Reservation, options: RankingOptions, now: datetime | None) -> bool:
    if now is None or reservation.pickup_datetime is None:
        return False
    return reservation.pickup_datetime - now <= options.on_demand_threshold


def score_driver(
    driver: Driver,
    reservation: Reservation,
    options: RankingOptions,
    now: datetime | None = None,
) -> int:
    """
    Puntaje de un conductor elegible.

    Con prioridad por rating apagada el rating no aporta nada: no se pondera,
    se ignora.
    """
    score = driver.effective_rating * RATING_WEIGHT if options.rating_priority else 0
    if options.service_area_matching and driver.serves_area(reservation.pickup_city):
        score += SERVICE_AREA_BONUS
    if options.vehicle_type_matching and driver.prefers_vehicle(reservation.vehicle_type):
        score += VEHICLE_TYPE_BONUS
    if options.on_demand_priority and _is_on_demand(reservation, options, now):
        score += ON_DEMAND_BONUS
    return score


class CandidateSequence:
    """
    Secuencia perezosa, finita y reiniciable de candidatos ordenados.

    El orden se calcula en el primer uso; cada iteración empieza desde el
    primer candidato.
    """

    def __init__(
        self,
        reservation: Reservation,
        pool: Iterable[Driver],
        excluded_driver_ids: Iterable[int],
        options: RankingOptions,
        now: datetime | None,
    ) -> None:
        self._reservation = reservation
        self._pool = tuple(pool)
        self._excluded = frozenset(excluded_driver_ids)
        self._options = options
        self._now = now

    @cached_property
    def _ranked(self) -> tuple[RankedCandidate, ...]:
        candidates = [
            RankedCandidate(
                driver=driver,
                score=score_driver(driver, self._reservation, self._options, self._now),
            )
            for driver in self._pool
            if _is_eligible(driver, self._reservation, self._excluded, self._options, self._now)
        ]
        rating_priority = self._options.rating_priority
        candidates.sort(
            key=lambda c: (
                -c.score,
                -c.driver.effective_rating if rating_priority else 0,
                c.driver.name.strip().casefold(),
                c.driver.id if c.driver.id is not None else 0,
            )
        )
        return tuple(candidates)

    def __iter__(self) -> Iterator[Driver]:
        return (candidate.driver for candidate in self._ranked)

    def __len__(self) -> int:
        return len(self._ranked)

    def __bool__(self) -> bool:
        return bool(self._ranked)

    def first(self) -> Driver | None:
        return self._ranked[0].driver if self._ranked else None

    def scored(self) -> tuple[RankedCandidate, ...]:
        """Candidatos con su puntaje, en orden."""
        return self._ranked


def rank_candidates(
    reservation: Reservation,
    driver_pool: Iterable[Driver],
    excluded_driver_ids: Iterable[int] = (),
    options: RankingOptions | None = None,
    now: datetime | None = None,
) -> CandidateSequence:
    """
    Ordena el pool de conductores para una reservación.

    Args:
        reservation: Reservación a ofrecer.
        driver_pool: Conductores candidatos.
        excluded_driver_ids: Conductores que ya rechazaron o dejaron vencer la oferta.
        options: Interruptores de puntaje. Por defecto solo prioridad por rating.
        now: Momento de referencia para cooldown y viajes inmediatos.

    Returns:
        CandidateSequence; vacía si nadie es elegible.
    """
    return CandidateSequence(
        reservation=reservation,
        pool=driver_pool,
        excluded_driver_ids=excluded_driver_ids,
        options=options or RankingOptions(),
        now=now,
    )
