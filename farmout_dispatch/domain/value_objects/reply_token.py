"""Clasificación de la respuesta de texto de un conductor."""

from enum import Enum


class ReplyIntent(str, Enum):
    ACCEPT = "accept"
    DECLINE = "decline"
    UNRECOGNIZED = "unrecognized"


ACCEPT_TOKENS = frozenset({"Y", "YES", "ACCEPT"})
DECLINE_TOKENS = frozenset({"N", "NO", "DECLINE", "REJECT"})


def classify_reply(raw_text: str | None) -> ReplyIntent:
    """
    Clasifica el texto recibido (sin distinguir mayúsculas, sin espacios).

    Args:
        raw_text: Cuerpo del mensaje tal como llegó.

    Returns:
        ACCEPT, DECLINE o UNRECOGNIZED.
    """
    token = (raw_text or "").strip().upper()
    if token in ACCEPT_TOKENS:
        return ReplyIntent.ACCEPT
    if token in DECLINE_TOKENS:
        return ReplyIntent.DECLINE
    return ReplyIntent.UNRECOGNIZED
