"""Búsqueda de conductores por teléfono con caché acotada."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from farmout_dispatch.application.interfaces.clock import Clock
from farmout_dispatch.application.interfaces.driver_repo import DriverRepo
from farmout_dispatch.domain.entities.driver import Driver
from farmout_dispatch.domain.errors import AmbiguousDriverPhoneError, DriverNotFoundError
from farmout_dispatch.domain.value_objects.phone_number import PhoneNumber

logger = logging.getLogger(__name__)


@dataclass
class _CacheEntry:
    driver: Driver
    stored_at: datetime


class DriverLookupCache:
    """
    Caché teléfono -> conductor con TTL e invalidación explícita.

    ttl de cero desactiva la caché.
    """

    def __init__(self, clock: Clock, ttl: timedelta = timedelta(seconds=60)) -> None:
        self._clock = clock
        self._ttl = ttl
        self._entries: dict[str, _CacheEntry] = {}

    @property
    def enabled(self) -> bool:
        return self._ttl > timedelta(0)

    def get(self, key: str) -> Driver | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock.now() - entry.stored_at >= self._ttl:
            del self._entries[key]
            return None
        return entry.driver

    def put(self, key: str, driver: Driver) -> None:
        if self.enabled:
            self._entries[key] = _CacheEntry(driver=driver, stored_at=self._clock.now())

    def invalidate(self, key: str | None = None) -> None:
        """Borra una entrada, o toda la caché si key es None."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)


class DriverDirectory:
    """Resuelve el conductor que envió un mensaje a partir de su teléfono."""

    def __init__(self, driver_repo: DriverRepo, cache: DriverLookupCache | None = None) -> None:
        self._driver_repo = driver_repo
        self._cache = cache

    async def resolve_driver_by_phone(self, phone: str | None) -> Driver:
        """
        Busca al conductor probando dígitos, E.164 y valor crudo, en ese orden.

        Args:
            phone: Teléfono del remitente tal como llegó.

        Returns:
            El único conductor que coincide con la primera forma con resultados.

        Raises:
            DriverNotFoundError: Si ninguna forma coincide.
            AmbiguousDriverPhoneError: Si la forma ganadora coincide con varios conductores.
        """
        number = PhoneNumber.from_string(phone)
        if number.is_blank:
            raise DriverNotFoundError(phone or "")

        cache_key = number.digits or number.raw.strip()
        if self._cache is not None:
            cached = self._cache.get(cache_key)
            if cached is not None:
                return cached

        for candidate in number.lookup_candidates():
            matches = await self._driver_repo.find_by_phone(candidate)
            if not matches:
                continue
            if len(matches) > 1:
                driver_ids = sorted(d.id for d in matches if d.id is not None)
                logger.error(
                    "Ambiguous driver phone",
                    extra={"phone_form": candidate, "driver_ids": driver_ids},
                )
                raise AmbiguousDriverPhoneError(phone=candidate, driver_ids=driver_ids)
            driver = matches[0]
            if self._cache is not None:
                self._cache.put(cache_key, driver)
            return driver

        raise DriverNotFoundError(number.raw)

    def invalidate(self, phone: str | None = None) -> None:
        """Invalida la caché para un teléfono o completa."""
        if self._cache is None:
            return
        if phone is None:
            self._cache.invalidate()
            return
        number = PhoneNumber.from_string(phone)
        self._cache.invalidate(number.digits or number.raw.strip())
