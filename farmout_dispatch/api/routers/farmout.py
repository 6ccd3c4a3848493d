from fastapi import APIRouter, Depends, status

from farmout_dispatch.api.dependencies import get_use_cases
from farmout_dispatch.api.schemas.farmout import (
    AcceptanceResponse,
    CancelFarmoutRequest,
    DispatchResponse,
    FarmoutStateResponse,
    OfferResponse,
    OverrideAcceptRequest,
)

router = APIRouter()


@router.post(
    "/farmout/reservations/{reservation_id}/dispatch",
    response_model=DispatchResponse,
    status_code=status.HTTP_200_OK,
)
async def dispatch_reservation(
    reservation_id: int,
    use_cases=Depends(get_use_cases),
) -> DispatchResponse:
    result = await use_cases["dispatch_next_offer"].execute(reservation_id)
    return DispatchResponse.from_result(result)


@router.post(
    "/farmout/reservations/{reservation_id}/cancel",
    response_model=FarmoutStateResponse,
    status_code=status.HTTP_200_OK,
)
async def cancel_farmout(
    reservation_id: int,
    payload: CancelFarmoutRequest | None = None,
    use_cases=Depends(get_use_cases),
) -> FarmoutStateResponse:
    reason = payload.reason if payload else None
    reservation = await use_cases["cancel_farmout"].execute(reservation_id, reason=reason)
    return FarmoutStateResponse.from_entity(reservation)


@router.post(
    "/farmout/reservations/{reservation_id}/override-accept",
    response_model=AcceptanceResponse,
    status_code=status.HTTP_200_OK,
)
async def override_accept(
    reservation_id: int,
    payload: OverrideAcceptRequest,
    use_cases=Depends(get_use_cases),
) -> AcceptanceResponse:
    result = await use_cases["override_accept"].execute(reservation_id, payload.driver_id)
    return AcceptanceResponse.from_result(result)


@router.get(
    "/farmout/reservations/{reservation_id}/offers",
    response_model=list[OfferResponse],
    status_code=status.HTTP_200_OK,
)
async def list_offers(
    reservation_id: int,
    use_cases=Depends(get_use_cases),
) -> list[OfferResponse]:
    async with use_cases["tx_manager"].start():
        offers = await use_cases["offer_repo"].list_by_reservation(reservation_id)
    return [OfferResponse.from_entity(offer) for offer in offers]
