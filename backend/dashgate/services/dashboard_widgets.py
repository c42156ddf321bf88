"""Extract the widgets a dashboard renders, split by widget type.

Dashboard pages carry a layout tree of rows/columns/stacks. Leaves with
``"type": "component"`` are widgets: ``component`` is the widget name and
``props.configs.isGenerated`` marks widgets generated by the widget generator.
"""

from typing import Any

from dashgate.schemas.dashboard import DashboardMetadataContent, Page, WidgetType

COMPONENT_TYPE = "component"


def find_widgets(content: DashboardMetadataContent) -> dict[WidgetType, set[str]]:
    """Return {CUSTOM: names, GENERATED: names} for every page and sub-page."""
    widgets: dict[WidgetType, set[str]] = {
        WidgetType.CUSTOM: set(),
        WidgetType.GENERATED: set(),
    }
    for page in content.pages:
        _collect_page(page, widgets)
    return widgets


def _collect_page(page: Page, widgets: dict[WidgetType, set[str]]) -> None:
    _collect(page.content, widgets)
    for sub_page in page.pages:
        _collect_page(sub_page, widgets)


def _collect(element: Any, widgets: dict[WidgetType, set[str]]) -> None:
    if isinstance(element, list):
        for child in element:
            _collect(child, widgets)
        return
    if not isinstance(element, dict):
        return

    if element.get("type") == COMPONENT_TYPE and isinstance(element.get("component"), str):
        widget_type = (
            WidgetType.GENERATED if _is_generated(element) else WidgetType.CUSTOM
        )
        widgets[widget_type].add(element["component"])
        return

    for value in element.values():
        _collect(value, widgets)


def _is_generated(component: dict) -> bool:
    props = component.get("props")
    if not isinstance(props, dict):
        return False
    configs = props.get("configs")
    if not isinstance(configs, dict):
        return False
    return configs.get("isGenerated") is True
