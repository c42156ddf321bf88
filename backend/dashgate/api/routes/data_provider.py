"""Data provider authorization endpoint.

The dashboard server calls this before opening a widget's data feed. On a
grant the response carries the rewritten data provider configuration whose
``queryData.query`` is the tenant-scoped query to execute.
"""

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from dashgate.api.deps import get_authorizer
from dashgate.core.errors import DataProviderError, ErrorKind
from dashgate.schemas.data_provider import AuthorizationResponse, SubscriptionRequest
from dashgate.services.data_provider_authorizer import DashboardDataProviderAuthorizer

router = APIRouter()
logger = structlog.stdlib.get_logger("dashgate.data_provider")

ERROR_STATUS: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.CONFIGURATION: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.DASHBOARD_LOOKUP: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.REMOTE_UNAUTHORIZED: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.REMOTE_UNREACHABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorKind.REMOTE_DECODE: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.REMOTE_ERROR: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.DATA_INTEGRITY: status.HTTP_409_CONFLICT,
    ErrorKind.PERSISTENCE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


@router.post("/authorize", response_model=AuthorizationResponse)
async def authorize(
    body: SubscriptionRequest,
    authorizer: DashboardDataProviderAuthorizer = Depends(get_authorizer),
):
    """Authorize a widget data subscription and assemble its query."""
    structlog.contextvars.bind_contextvars(
        username=body.username,
        dashboard_id=body.dashboard_id,
        widget_name=body.widget_name,
    )
    try:
        granted = await authorizer.authorize(body)
    except DataProviderError as e:
        raise HTTPException(
            status_code=ERROR_STATUS[e.kind],
            detail={"kind": e.kind.value, "message": e.message, "retryable": e.kind.retryable},
        ) from e

    logger.info("data_provider_authorized", action=body.action.value, authorized=granted)
    return AuthorizationResponse(
        authorized=granted, query_configuration=body.query_configuration
    )
