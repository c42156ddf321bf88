"""Dashgate FastAPI application entry point.

The host dashboard server owns dashboard storage and access control. It
attaches its DashboardMetadataProvider before serving:

    from dashgate.main import app
    app.state.dashboard_metadata_provider = my_dashboard_store
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from dashgate.api.routes import data_provider, health, metrics, widgets
from dashgate.core.config import settings
from dashgate.core.database import get_engine
from dashgate.core.logging_config import configure_logging
from dashgate.core.metrics import app_info
from dashgate.core.middleware import ObservabilityMiddleware
from dashgate.dao.widget_metadata_dao import WidgetMetadataDao
from dashgate.services.widget_metadata_provider import FileWidgetMetadataProvider

configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle events."""
    app_info.info({"version": "0.1.0", "env": settings.app_env})

    # Host or tests may inject their own provider
    widget_provider = getattr(app.state, "widget_metadata_provider", None)
    if widget_provider is None:
        widget_provider = FileWidgetMetadataProvider(
            settings.widgets.widgets_dir, WidgetMetadataDao(get_engine())
        )
        app.state.widget_metadata_provider = widget_provider
    widget_provider.start()

    yield

    widget_provider.stop()


app = FastAPI(
    title="Dashgate",
    description="Widget data provider authorization and tenant-scoped query assembly",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Routes — all REST under /api/v1/
app.include_router(health.router, tags=["health"])
app.include_router(
    data_provider.router, prefix="/api/v1/data-provider", tags=["data-provider"]
)
app.include_router(widgets.router, prefix="/api/v1/widgets", tags=["widgets"])
if settings.metrics_enabled:
    app.include_router(metrics.router, tags=["metrics"])
