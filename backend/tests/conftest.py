"""Shared test fixtures.

External collaborators (dashboard store, admin service) are mocked.
The widget metadata table lives in a throwaway SQLite file per test.
"""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine

from dashgate.api.deps import (
    get_dashboard_metadata_provider,
    get_engine,
    get_tenant_resolver,
    get_widget_metadata_provider,
)
from dashgate.dao.widget_metadata_dao import WidgetMetadataDao
from dashgate.main import app
from dashgate.schemas.dashboard import DashboardMetadata
from dashgate.services.widget_metadata_provider import FileWidgetMetadataProvider

from tests.factories import make_dashboard_content, make_widget_conf


@pytest.fixture
def sqlite_engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'dashgate.db'}")
    yield engine
    engine.dispose()


@pytest.fixture
def widgets_dir(tmp_path):
    root = tmp_path / "widgets"
    widget_dir = root / "SalesChart"
    widget_dir.mkdir(parents=True)
    (widget_dir / "widgetConf.json").write_text(json.dumps(make_widget_conf("SalesChart")))
    return root


@pytest.fixture
def widget_provider(widgets_dir, sqlite_engine) -> FileWidgetMetadataProvider:
    provider = FileWidgetMetadataProvider(widgets_dir, WidgetMetadataDao(sqlite_engine))
    provider.start()
    yield provider
    provider.stop()


@pytest.fixture
def dashboard_provider():
    """Dashboard store whose only dashboard renders SalesChart."""
    provider = MagicMock()
    provider.get_dashboard_by_user.return_value = DashboardMetadata(
        url="sales",
        name="Sales",
        owner="admin",
        content=make_dashboard_content(custom=["SalesChart"]),
    )
    return provider


@pytest.fixture
def tenant_resolver():
    resolver = MagicMock()
    resolver.resolve_tenant_id = AsyncMock(return_value="-1234")
    return resolver


@pytest.fixture
async def client(
    sqlite_engine, widget_provider, dashboard_provider, tenant_resolver
) -> AsyncClient:
    """httpx AsyncClient wired to the FastAPI app with collaborators overridden."""
    app.dependency_overrides[get_engine] = lambda: sqlite_engine
    app.dependency_overrides[get_widget_metadata_provider] = lambda: widget_provider
    app.dependency_overrides[get_dashboard_metadata_provider] = lambda: dashboard_provider
    app.dependency_overrides[get_tenant_resolver] = lambda: tenant_resolver

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
