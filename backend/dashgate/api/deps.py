"""Dependency injection for FastAPI routes.

All services are provided via Depends() from this module.
Route handlers never instantiate services directly.
"""

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy import Engine

from dashgate.core.config_provider import ConfigProvider, SettingsConfigProvider
from dashgate.core.database import get_engine as _get_engine
from dashgate.services.data_provider_authorizer import DashboardDataProviderAuthorizer
from dashgate.services.ports import DashboardMetadataProvider
from dashgate.services.query_assembler import QueryAssembler
from dashgate.services.tenant_resolver import AdminTenantResolver
from dashgate.services.widget_metadata_provider import FileWidgetMetadataProvider


def get_engine() -> Engine:
    """Provide the widget metadata database engine."""
    return _get_engine()


def get_config_provider() -> ConfigProvider:
    return SettingsConfigProvider()


def get_tenant_resolver(
    config_provider: ConfigProvider = Depends(get_config_provider),
) -> AdminTenantResolver:
    return AdminTenantResolver(config_provider=config_provider)


def get_query_assembler(
    tenant_resolver: AdminTenantResolver = Depends(get_tenant_resolver),
) -> QueryAssembler:
    return QueryAssembler(tenant_resolver=tenant_resolver)


def get_widget_metadata_provider(request: Request) -> FileWidgetMetadataProvider:
    """Return the widget metadata provider started in the app lifespan."""
    return request.app.state.widget_metadata_provider


def get_dashboard_metadata_provider(request: Request) -> DashboardMetadataProvider:
    """Return the dashboard store attached by the host dashboard server."""
    provider = getattr(request.app.state, "dashboard_metadata_provider", None)
    if provider is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Dashboard metadata provider is not configured",
        )
    return provider


def get_authorizer(
    dashboards: DashboardMetadataProvider = Depends(get_dashboard_metadata_provider),
    widgets: FileWidgetMetadataProvider = Depends(get_widget_metadata_provider),
    query_assembler: QueryAssembler = Depends(get_query_assembler),
) -> DashboardDataProviderAuthorizer:
    return DashboardDataProviderAuthorizer(
        dashboard_metadata_provider=dashboards,
        widget_metadata_provider=widgets,
        query_assembler=query_assembler,
    )
