from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from farmout_dispatch.api.dependencies import get_use_cases
from farmout_dispatch.api.schemas.farmout import DispatchResponse, RequeueResponse, SweepResponse
from farmout_dispatch.infrastructure.db.retry import retry_on_deadlock

router = APIRouter()


@router.post(
    "/workers/farmout/expire-offers",
    response_model=SweepResponse,
    status_code=status.HTTP_200_OK,
)
async def expire_offers(
    use_cases: Annotated[dict, Depends(get_use_cases)],
    limit: int = Query(default=50, ge=1, le=500),
) -> SweepResponse:
    """
    Expire overdue offers and requeue their reservations, with deadlock retry.

    Safe to call from several schedulers at once.
    """

    async def execute_sweep():
        return await use_cases["expire_offers"].execute(limit=limit)

    report = await retry_on_deadlock(execute_sweep, max_attempts=3, base_delay=0.1)
    return SweepResponse.from_report(report)


@router.post(
    "/workers/farmout/requeue",
    response_model=RequeueResponse,
    status_code=status.HTTP_200_OK,
)
async def requeue_pending(
    use_cases: Annotated[dict, Depends(get_use_cases)],
    limit: int = Query(default=50, ge=1, le=500),
) -> RequeueResponse:
    """Dispatch the next offer for every reservation waiting in declined_requeue or expired."""

    async def execute_requeue():
        return await use_cases["requeue_farmout"].execute_pending(limit=limit)

    results = await retry_on_deadlock(execute_requeue, max_attempts=3, base_delay=0.1)
    return RequeueResponse(results=[DispatchResponse.from_result(r) for r in results])
