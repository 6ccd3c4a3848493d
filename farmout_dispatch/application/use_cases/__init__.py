"""Casos de uso del flujo de farmout."""

from farmout_dispatch.application.use_cases.cancel_farmout import CancelFarmoutUseCase
from farmout_dispatch.application.use_cases.dispatch_next_offer import DispatchNextOfferUseCase
from farmout_dispatch.application.use_cases.expire_offers import ExpireOffersUseCase
from farmout_dispatch.application.use_cases.interpret_reply import InterpretReplyUseCase
from farmout_dispatch.application.use_cases.override_accept import OverrideAcceptUseCase
from farmout_dispatch.application.use_cases.requeue_farmout import RequeueFarmoutUseCase

__all__ = [
    "CancelFarmoutUseCase",
    "DispatchNextOfferUseCase",
    "ExpireOffersUseCase",
    "InterpretReplyUseCase",
    "OverrideAcceptUseCase",
    "RequeueFarmoutUseCase",
]
