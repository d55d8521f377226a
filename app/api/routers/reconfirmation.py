from typing import Annotated

from fastapi import APIRouter, Depends, status

from app.api.dependencies import get_reconfirmation_poller
from app.api.schemas.reconfirmation import ReconfirmationRunResponse, ReconfirmationStatusResponse
from app.infrastructure.messaging.reconfirmation_poller import ReconfirmationPoller

router = APIRouter()


@router.get(
    "/reconfirmation/status",
    response_model=ReconfirmationStatusResponse,
    status_code=status.HTTP_200_OK,
)
async def reconfirmation_status(
    poller: Annotated[ReconfirmationPoller, Depends(get_reconfirmation_poller)],
) -> ReconfirmationStatusResponse:
    return ReconfirmationStatusResponse(**poller.get_status())


@router.post(
    "/reconfirmation/run",
    response_model=ReconfirmationRunResponse,
    status_code=status.HTTP_200_OK,
)
async def run_reconfirmation(
    poller: Annotated[ReconfirmationPoller, Depends(get_reconfirmation_poller)],
) -> ReconfirmationRunResponse:
    """Ejecuta un ciclo ahora; si ya hay uno en curso no se lanza otro."""
    result = await poller.run_cycle()
    if result is None:
        return ReconfirmationRunResponse(checked=0, updated=0, already_running=True)
    return ReconfirmationRunResponse(
        checked=result.checked,
        updated=result.updated,
        failed=result.failed,
        skipped=result.skipped,
    )
