from copy import deepcopy
from datetime import datetime

from farmout_dispatch.application.interfaces.driver_repo import DriverRepo
from farmout_dispatch.domain.entities.driver import Driver


class InMemoryDriverRepo(DriverRepo):
    def __init__(self, drivers: list[Driver] | None = None) -> None:
        self.drivers: dict[int, Driver] = {}
        self._next_id = 1
        for driver in drivers or []:
            self._store(driver)

    def _store(self, driver: Driver) -> Driver:
        if driver.id is None:
            driver.id = self._next_id
        self._next_id = max(self._next_id, driver.id) + 1
        self.drivers[driver.id] = deepcopy(driver)
        return driver

    async def get_by_id(self, driver_id: int) -> Driver | None:
        driver = self.drivers.get(driver_id)
        return deepcopy(driver) if driver else None

    async def find_by_phone(self, phone: str) -> list[Driver]:
        return [deepcopy(d) for d in self.drivers.values() if d.phone == phone]

    async def list_pool(
        self, affiliate_id: int | None = None, available_only: bool = True
    ) -> list[Driver]:
        pool = []
        for driver in sorted(self.drivers.values(), key=lambda d: d.id):
            if available_only and not driver.is_available:
                continue
            if affiliate_id is not None and driver.affiliate_id not in (None, affiliate_id):
                continue
            pool.append(deepcopy(driver))
        return pool

    async def add(self, driver: Driver) -> Driver:
        return self._store(driver)

    async def touch_last_offer(self, driver_id: int, offered_at: datetime) -> None:
        if driver_id in self.drivers:
            self.drivers[driver_id].last_offer_at = offered_at
