"""Value Objects del dominio de farmout."""

from farmout_dispatch.domain.value_objects.phone_number import PhoneNumber
from farmout_dispatch.domain.value_objects.reply_token import ReplyIntent, classify_reply

__all__ = [
    "PhoneNumber",
    "ReplyIntent",
    "classify_reply",
]
