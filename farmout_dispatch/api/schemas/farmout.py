from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from farmout_dispatch.application.dtos import (
    AcceptanceResult,
    DispatchOutcome,
    DispatchResult,
    SweepReport,
)
from farmout_dispatch.domain.entities.farmout_offer import FarmoutOffer, OfferStatus, ResponseMethod
from farmout_dispatch.domain.entities.reservation import Reservation
from farmout_dispatch.domain.farmout_state_machine import FarmoutStatus


class FarmoutStateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    confirmation_number: str
    farmout_status: FarmoutStatus
    assigned_driver_id: int | None = None
    farmout_attempts: int
    declined_driver_ids: list[int] = Field(default_factory=list)
    lock_version: int

    @field_validator("declined_driver_ids", mode="before")
    @classmethod
    def _sorted_ids(cls, value):
        return sorted(value or [])

    @classmethod
    def from_entity(cls, reservation: Reservation) -> "FarmoutStateResponse":
        return cls.model_validate(reservation)


class OfferResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    reservation_id: int
    driver_id: int
    status: OfferStatus
    created_at: datetime
    expires_at: datetime
    responded_at: datetime | None = None
    decline_reason: str | None = None
    response_method: ResponseMethod | None = None

    @classmethod
    def from_entity(cls, offer: FarmoutOffer | None) -> "OfferResponse | None":
        return cls.model_validate(offer) if offer is not None else None


class DispatchResponse(BaseModel):
    outcome: DispatchOutcome
    reservation: FarmoutStateResponse
    offer: OfferResponse | None = None
    notification_delivered: bool | None = None

    @classmethod
    def from_result(cls, result: DispatchResult) -> "DispatchResponse":
        return cls(
            outcome=result.outcome,
            reservation=FarmoutStateResponse.from_entity(result.reservation),
            offer=OfferResponse.from_entity(result.offer),
            notification_delivered=result.notification_delivered,
        )


class CancelFarmoutRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    reason: str | None = Field(default=None, max_length=255)


class OverrideAcceptRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    driver_id: int


class AcceptanceResponse(BaseModel):
    reservation: FarmoutStateResponse
    offer: OfferResponse
    notification_delivered: bool

    @classmethod
    def from_result(cls, result: AcceptanceResult) -> "AcceptanceResponse":
        return cls(
            reservation=FarmoutStateResponse.from_entity(result.reservation),
            offer=OfferResponse.from_entity(result.offer),
            notification_delivered=result.notification_delivered,
        )


class SweepResponse(BaseModel):
    expired_offer_ids: list[int]
    skipped_offer_ids: list[int]
    requeued: list[DispatchResponse]

    @classmethod
    def from_report(cls, report: SweepReport) -> "SweepResponse":
        return cls(
            expired_offer_ids=report.expired_offer_ids,
            skipped_offer_ids=report.skipped_offer_ids,
            requeued=[DispatchResponse.from_result(r) for r in report.requeue_results],
        )


class RequeueResponse(BaseModel):
    results: list[DispatchResponse]
