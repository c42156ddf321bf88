"""Collaborator interfaces consumed by the authorizer.

Implementations are owned by the host dashboard server; the authorizer only
depends on these shapes.
"""

from typing import Protocol

from dashgate.schemas.dashboard import DashboardMetadata, WidgetMetaInfo


class DashboardMetadataProvider(Protocol):
    def get_dashboard_by_user(
        self, username: str, dashboard_id: str, revision: str | None = None
    ) -> DashboardMetadata | None:
        """Look up a dashboard as seen by ``username``.

        Raises:
            UnauthorizedError: the user may not see this dashboard.
            DashboardError: the lookup itself failed.
        """
        ...


class WidgetMetadataProvider(Protocol):
    def get_widget_configuration(self, widget_id: str) -> WidgetMetaInfo | None: ...

    def get_all_widget_configurations(self) -> list[WidgetMetaInfo]: ...

    def delete(self, widget_id: str) -> int: ...
