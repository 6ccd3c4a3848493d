"""Búsqueda de conductores por teléfono."""

from datetime import timedelta

import pytest

from farmout_dispatch.application.driver_directory import DriverDirectory, DriverLookupCache
from farmout_dispatch.application.interfaces.clock import FakeClock
from farmout_dispatch.domain.errors import AmbiguousDriverPhoneError, DriverNotFoundError
from farmout_dispatch.infrastructure.in_memory.driver_repo import InMemoryDriverRepo
from tests.helpers import NOW, make_driver


class CountingDriverRepo(InMemoryDriverRepo):
    def __init__(self, drivers):
        super().__init__(drivers)
        self.lookups: list[str] = []

    async def find_by_phone(self, phone):
        self.lookups.append(phone)
        return await super().find_by_phone(phone)


class TestResolveDriverByPhone:
    @pytest.mark.asyncio
    async def test_digits_form_matches_first(self):
        repo = CountingDriverRepo([make_driver(1, "Alice", phone="6125551234")])
        directory = DriverDirectory(repo)

        driver = await directory.resolve_driver_by_phone("+16125551234")

        assert driver.id == 1
        assert repo.lookups == ["6125551234"]

    @pytest.mark.asyncio
    async def test_falls_back_to_e164(self):
        repo = CountingDriverRepo([make_driver(1, "Alice", phone="+16125551234")])
        directory = DriverDirectory(repo)

        driver = await directory.resolve_driver_by_phone("(612) 555-1234")

        assert driver.id == 1
        assert repo.lookups == ["6125551234", "+16125551234"]

    @pytest.mark.asyncio
    async def test_falls_back_to_raw_value(self):
        repo = InMemoryDriverRepo([make_driver(1, "Alice", phone="(612) 555-1234")])

        driver = await DriverDirectory(repo).resolve_driver_by_phone("(612) 555-1234")

        assert driver.id == 1

    @pytest.mark.asyncio
    async def test_unknown_phone(self):
        directory = DriverDirectory(InMemoryDriverRepo([make_driver(1, "Alice")]))

        with pytest.raises(DriverNotFoundError):
            await directory.resolve_driver_by_phone("+19995550000")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("phone", [None, "", "   "])
    async def test_blank_phone(self, phone):
        directory = DriverDirectory(InMemoryDriverRepo([make_driver(1, "Alice")]))

        with pytest.raises(DriverNotFoundError):
            await directory.resolve_driver_by_phone(phone)

    @pytest.mark.asyncio
    async def test_ambiguous_phone_is_a_configuration_error(self):
        repo = InMemoryDriverRepo(
            [
                make_driver(1, "Alice", phone="6125551234"),
                make_driver(2, "Alicia", phone="6125551234"),
            ]
        )

        with pytest.raises(AmbiguousDriverPhoneError) as exc_info:
            await DriverDirectory(repo).resolve_driver_by_phone("+16125551234")

        assert exc_info.value.driver_ids == [1, 2]


class TestLookupCache:
    @pytest.mark.asyncio
    async def test_cache_hit_skips_repo_until_ttl(self):
        clock = FakeClock(NOW)
        repo = CountingDriverRepo([make_driver(1, "Alice", phone="6125551234")])
        directory = DriverDirectory(repo, cache=DriverLookupCache(clock, ttl=timedelta(seconds=60)))

        await directory.resolve_driver_by_phone("+16125551234")
        await directory.resolve_driver_by_phone("612-555-1234")
        assert len(repo.lookups) == 1

        clock.advance(seconds=61)
        await directory.resolve_driver_by_phone("+16125551234")
        assert len(repo.lookups) == 2

    @pytest.mark.asyncio
    async def test_invalidate_forces_reload(self):
        clock = FakeClock(NOW)
        repo = CountingDriverRepo([make_driver(1, "Alice", phone="6125551234")])
        directory = DriverDirectory(repo, cache=DriverLookupCache(clock))

        await directory.resolve_driver_by_phone("6125551234")
        directory.invalidate("+16125551234")
        await directory.resolve_driver_by_phone("6125551234")

        assert len(repo.lookups) == 2

    def test_zero_ttl_disables_cache(self):
        cache = DriverLookupCache(FakeClock(NOW), ttl=timedelta(0))

        cache.put("6125551234", make_driver(1, "Alice"))

        assert not cache.enabled
        assert len(cache) == 0
