"""Pydantic schemas for dashboard and widget metadata."""

import enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# ── Dashboard ────────────────────────────────────────────────────────────


class Page(BaseModel):
    """One dashboard page. ``content`` is the layout tree of rows, columns and components."""

    id: str
    name: str | None = None
    content: list[Any] = []
    pages: list["Page"] = []


class DashboardMetadataContent(BaseModel):
    pages: list[Page] = []


class DashboardMetadata(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int | None = None
    url: str
    name: str
    owner: str | None = None
    description: str | None = None
    parent_id: str | None = None
    content: DashboardMetadataContent = DashboardMetadataContent()


# ── Widget ───────────────────────────────────────────────────────────────


class WidgetType(str, enum.Enum):
    CUSTOM = "CUSTOM"
    GENERATED = "GENERATED"
    ALL = "ALL"


class WidgetConfigs(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    is_generated: bool = False
    # Trusted, server-side tree: {"configs": {"config": {"queryData": {...}}}}
    provider_config: dict[str, Any] | None = None


class WidgetMetaInfo(BaseModel):
    """Contents of a widget's widgetConf.json."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    name: str
    id: str
    version: str | None = None
    configs: WidgetConfigs = Field(default_factory=WidgetConfigs)
