"""Value Object PhoneNumber - teléfono normalizado para buscar conductores."""

import re
from dataclasses import dataclass

_NON_DIGITS = re.compile(r"\D")


@dataclass(frozen=True)
class PhoneNumber:
    """
    Teléfono tal como llega del canal de respuesta.

    Los registros almacenados y los mensajes entrantes usan formatos
    distintos ("+16125551234", "6125551234", "(612) 555-1234"), por eso la
    búsqueda prueba varias formas en orden de prioridad.
    """

    raw: str

    def __str__(self) -> str:
        return self.raw

    @property
    def digits(self) -> str:
        """Quita un "+1" inicial y luego todo lo que no sea dígito."""
        value = self.raw.strip()
        if value.startswith("+1"):
            value = value[2:]
        return _NON_DIGITS.sub("", value)

    @property
    def e164(self) -> str:
        digits = self.digits
        return f"+1{digits}" if digits else ""

    @property
    def is_blank(self) -> bool:
        return not self.raw.strip()

    def lookup_candidates(self) -> list[str]:
        """
        Formas a probar, en orden: dígitos normalizados, E.164, valor crudo.

        Returns:
            Lista sin duplicados ni vacíos.
        """
        candidates: list[str] = []
        for value in (self.digits, self.e164, self.raw.strip()):
            if value and value not in candidates:
                candidates.append(value)
        return candidates

    @classmethod
    def from_string(cls, value: str | None) -> "PhoneNumber":
        return cls(raw=value or "")
