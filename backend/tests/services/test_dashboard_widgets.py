"""Tests for find_widgets: walking dashboard layouts for rendered widgets."""

from dashgate.schemas.dashboard import DashboardMetadataContent, WidgetType
from dashgate.services.dashboard_widgets import find_widgets

from tests.factories import make_dashboard_content


def test_splits_custom_and_generated_widgets():
    content = DashboardMetadataContent.model_validate(
        make_dashboard_content(custom=["SalesChart", "AreaChart"], generated=["Gen1"])
    )

    widgets = find_widgets(content)

    assert widgets[WidgetType.CUSTOM] == {"SalesChart", "AreaChart"}
    assert widgets[WidgetType.GENERATED] == {"Gen1"}


def test_walks_sub_pages():
    content = DashboardMetadataContent.model_validate(
        {
            "pages": [
                {
                    "id": "home",
                    "content": [],
                    "pages": [
                        {
                            "id": "details",
                            "content": [{"type": "component", "component": "DetailTable"}],
                            "pages": [
                                {
                                    "id": "deeper",
                                    "content": [{"type": "component", "component": "DeepChart"}],
                                }
                            ],
                        }
                    ],
                }
            ]
        }
    )

    assert find_widgets(content)[WidgetType.CUSTOM] == {"DetailTable", "DeepChart"}


def test_ignores_layout_nodes_and_malformed_components():
    content = DashboardMetadataContent.model_validate(
        {
            "pages": [
                {
                    "id": "home",
                    "content": [
                        {"type": "row", "content": []},
                        {"type": "component"},
                        {"type": "component", "component": 42},
                        {"type": "component", "component": "Kept", "props": "oops"},
                        "stray text",
                    ],
                }
            ]
        }
    )

    widgets = find_widgets(content)

    assert widgets[WidgetType.CUSTOM] == {"Kept"}
    assert widgets[WidgetType.GENERATED] == set()


def test_only_a_true_flag_marks_a_widget_generated():
    content = DashboardMetadataContent.model_validate(
        {
            "pages": [
                {
                    "id": "home",
                    "content": [
                        {"type": "component", "component": "A", "props": {"configs": {"isGenerated": "true"}}},
                        {"type": "component", "component": "B", "props": {"configs": {"isGenerated": True}}},
                    ],
                }
            ]
        }
    )

    widgets = find_widgets(content)

    assert widgets[WidgetType.CUSTOM] == {"A"}
    assert widgets[WidgetType.GENERATED] == {"B"}


def test_empty_dashboard_has_no_widgets():
    widgets = find_widgets(DashboardMetadataContent())

    assert widgets == {WidgetType.CUSTOM: set(), WidgetType.GENERATED: set()}
