"""Excepciones de dominio para el flujo de farmout."""


class DomainError(Exception):
    """Clase base para todos los errores de dominio."""

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)


# === No encontrado ===


class NotFoundError(DomainError):
    """Una entidad requerida no existe."""


class ReservationNotFoundError(NotFoundError):
    """La reservación no existe."""

    def __init__(self, reservation_id: int):
        super().__init__(
            message=f"Reservación no encontrada: {reservation_id}",
            code="RESERVATION_NOT_FOUND",
        )
        self.reservation_id = reservation_id


class DriverNotFoundError(NotFoundError):
    """No hay conductor registrado con ese teléfono o id."""

    def __init__(self, phone: str | None = None, driver_id: int | None = None):
        target = f"id {driver_id}" if driver_id is not None else f"teléfono {phone!r}"
        super().__init__(
            message=f"Conductor no encontrado para {target}",
            code="DRIVER_NOT_FOUND",
        )
        self.phone = phone
        self.driver_id = driver_id


class OfferNotFoundError(NotFoundError):
    """La oferta no existe."""

    def __init__(self, offer_id: int):
        super().__init__(
            message=f"Oferta no encontrada: {offer_id}",
            code="OFFER_NOT_FOUND",
        )
        self.offer_id = offer_id


class OfferNotPendingError(NotFoundError):
    """La oferta ya fue resuelta; no hay oferta pendiente que resolver."""

    def __init__(self, offer_id: int, current_status: str):
        super().__init__(
            message=f"La oferta {offer_id} ya no está pendiente (estado: {current_status})",
            code="OFFER_NOT_PENDING",
        )
        self.offer_id = offer_id
        self.current_status = current_status


class NoPendingOfferError(NotFoundError):
    """No existe oferta pendiente para la reservación o el conductor."""

    def __init__(self, reservation_id: int | None = None, driver_id: int | None = None):
        target = f"reservación {reservation_id}" if reservation_id is not None else f"conductor {driver_id}"
        super().__init__(
            message=f"No hay oferta pendiente para {target}",
            code="NO_PENDING_OFFER",
        )
        self.reservation_id = reservation_id
        self.driver_id = driver_id


# === Conflictos ===


class ConflictError(DomainError):
    """Operación en conflicto con el estado almacenado."""


class PendingOfferExistsError(ConflictError):
    """Ya existe una oferta pendiente para la reservación."""

    def __init__(self, reservation_id: int):
        super().__init__(
            message=f"Ya existe una oferta pendiente para la reservación {reservation_id}",
            code="PENDING_OFFER_EXISTS",
        )
        self.reservation_id = reservation_id


class OptimisticLockError(DomainError):
    """Conflicto de concurrencia al actualizar la reservación."""

    def __init__(self, reservation_id: int, expected_version: int, actual_version: int | None):
        super().__init__(
            message=f"Conflicto de concurrencia en reservación {reservation_id}: "
            f"versión esperada {expected_version}, versión actual {actual_version}",
            code="OPTIMISTIC_LOCK_ERROR",
        )
        self.reservation_id = reservation_id
        self.expected_version = expected_version
        self.actual_version = actual_version


# === Configuración ===


class ConfigurationError(DomainError):
    """Los datos de configuración no permiten una decisión segura."""


class AmbiguousDriverPhoneError(ConfigurationError):
    """Más de un conductor coincide con el mismo teléfono."""

    def __init__(self, phone: str, driver_ids: list[int]):
        super().__init__(
            message=f"Teléfono {phone!r} coincide con varios conductores: {driver_ids}",
            code="AMBIGUOUS_DRIVER_PHONE",
        )
        self.phone = phone
        self.driver_ids = driver_ids


# === Estado de farmout ===


class InvalidFarmoutTransitionError(DomainError):
    """La transición solicitada no existe en la máquina de estados."""

    def __init__(self, current_status: str, trigger: str):
        super().__init__(
            message=f"Transición inválida: '{trigger}' desde estado '{current_status}'",
            code="INVALID_FARMOUT_TRANSITION",
        )
        self.current_status = current_status
        self.trigger = trigger


class FarmoutNotEnabledError(DomainError):
    """La reservación no está en modo farmout."""

    def __init__(self, reservation_id: int):
        super().__init__(
            message=f"La reservación {reservation_id} no está en modo farmout",
            code="FARMOUT_NOT_ENABLED",
        )
        self.reservation_id = reservation_id
