from datetime import datetime

from farmout_dispatch.domain.entities.driver import Driver


class DriverRepo:
    """Directorio de conductores (solo lectura salvo last_offer_at)."""

    async def get_by_id(self, driver_id: int) -> Driver | None:
        raise NotImplementedError

    async def find_by_phone(self, phone: str) -> list[Driver]:
        """
        Conductores cuyo teléfono almacenado es exactamente `phone`.

        Args:
            phone: Una de las formas candidatas (dígitos, E.164 o crudo).

        Returns:
            Todas las coincidencias; el llamador decide si hay ambigüedad.
        """
        raise NotImplementedError

    async def list_pool(
        self, affiliate_id: int | None = None, available_only: bool = True
    ) -> list[Driver]:
        """
        Pool de candidatos para una reservación.

        Args:
            affiliate_id: Si se indica, incluye conductores de ese afiliado y sin afiliado.
            available_only: Solo conductores disponibles.
        """
        raise NotImplementedError

    async def add(self, driver: Driver) -> Driver:
        raise NotImplementedError

    async def touch_last_offer(self, driver_id: int, offered_at: datetime) -> None:
        raise NotImplementedError
