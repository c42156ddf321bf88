"""Data provider authorizer: decides whether a widget may subscribe to its data.

A request is granted when the user can see the dashboard, the dashboard
renders the widget, and the widget's trusted configuration yields a query.
Granting has a side effect: the final, tenant-scoped query is written into
the request's data provider configuration (see QueryAssembler).

Denials are ``False``; malformed input and downstream failures raise
DataProviderError.

The dashboard and widget stores are synchronous (database or file backed), so
their calls run in worker threads and never block the event loop.
"""

import asyncio

import structlog

from dashgate.core.errors import (
    DashboardError,
    DataProviderError,
    ErrorKind,
    UnauthorizedError,
)
from dashgate.core.metrics import authorization_decisions_total
from dashgate.schemas.dashboard import WidgetType
from dashgate.schemas.data_provider import DataProviderAction, SubscriptionRequest
from dashgate.services.dashboard_widgets import find_widgets
from dashgate.services.ports import DashboardMetadataProvider, WidgetMetadataProvider
from dashgate.services.query_assembler import QueryAssembler

logger = structlog.stdlib.get_logger(__name__)

_REQUIRED_FIELDS = (
    ("dashboard_id", "Dashboard Id"),
    ("username", "Username"),
    ("widget_name", "Widget Name"),
)


class DashboardDataProviderAuthorizer:
    def __init__(
        self,
        dashboard_metadata_provider: DashboardMetadataProvider,
        widget_metadata_provider: WidgetMetadataProvider,
        query_assembler: QueryAssembler,
    ):
        self._dashboards = dashboard_metadata_provider
        self._widgets = widget_metadata_provider
        self._assembler = query_assembler

    async def authorize(self, request: SubscriptionRequest) -> bool:
        try:
            granted = await self._authorize(request)
        except DataProviderError:
            authorization_decisions_total.labels(outcome="error").inc()
            raise
        authorization_decisions_total.labels(
            outcome="granted" if granted else "denied"
        ).inc()
        return granted

    async def _authorize(self, request: SubscriptionRequest) -> bool:
        # Unsubscribe carries no query and the client sends no identity with it
        if request.action is DataProviderAction.UNSUBSCRIBE:
            return True

        for field, label in _REQUIRED_FIELDS:
            if not getattr(request, field):
                message = f"{label} in the Data Provider Config cannot be empty."
                logger.error("authorization_request_invalid", error=message)
                raise DataProviderError(kind=ErrorKind.VALIDATION, message=message)

        username: str = request.username  # type: ignore[assignment]
        dashboard_id: str = request.dashboard_id  # type: ignore[assignment]
        widget_name: str = request.widget_name  # type: ignore[assignment]
        log = logger.bind(
            username=username, dashboard_id=dashboard_id, widget_name=widget_name
        )

        try:
            dashboard = await asyncio.to_thread(
                self._dashboards.get_dashboard_by_user, username, dashboard_id, None
            )
        except UnauthorizedError:
            log.info("authorization_denied", reason="dashboard_unauthorized")
            return False
        except DashboardError as e:
            log.error("dashboard_lookup_failed", error=str(e))
            raise DataProviderError(
                kind=ErrorKind.DASHBOARD_LOOKUP, message=str(e)
            ) from e

        if dashboard is None:
            log.info("authorization_denied", reason="dashboard_not_found")
            return False

        if not self._dashboard_has_widget(dashboard.content, widget_name):
            log.info("authorization_denied", reason="widget_not_in_dashboard")
            return False

        try:
            widget_meta_info = await asyncio.to_thread(
                self._widgets.get_widget_configuration, widget_name
            )
        except DashboardError as e:
            log.error("widget_configuration_lookup_failed", error=str(e))
            raise DataProviderError(
                kind=ErrorKind.DASHBOARD_LOOKUP, message=str(e)
            ) from e

        if widget_meta_info is None:
            message = "Widget configuration cannot be found."
            log.error("widget_configuration_missing", error=message)
            raise DataProviderError(kind=ErrorKind.DATA_INTEGRITY, message=message)

        await self._assembler.assemble(
            username, request, widget_meta_info.configs.provider_config
        )
        log.debug("authorization_granted")
        return True

    @staticmethod
    def _dashboard_has_widget(content, widget_name: str) -> bool:
        """Case-insensitive match against CUSTOM widgets, then GENERATED ones."""
        widgets = find_widgets(content)
        wanted = widget_name.casefold()
        for widget_type in (WidgetType.CUSTOM, WidgetType.GENERATED):
            if any(name.casefold() == wanted for name in widgets[widget_type]):
                return True
        return False
