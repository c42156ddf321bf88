"""Tests for FileWidgetMetadataProvider."""

import json

import pytest
from sqlalchemy import text

from dashgate.core.errors import DashboardError
from dashgate.dao.widget_metadata_dao import WidgetMetadataDao
from dashgate.schemas.dashboard import WidgetType
from dashgate.services.widget_metadata_provider import FileWidgetMetadataProvider

from tests.factories import make_widget_conf


def test_start_is_idempotent(widgets_dir, sqlite_engine):
    provider = FileWidgetMetadataProvider(widgets_dir, WidgetMetadataDao(sqlite_engine))

    provider.start()
    provider.start()
    assert provider.started is True

    provider.stop()
    assert provider.started is False


def test_reads_widget_configuration(widget_provider):
    widget = widget_provider.get_widget_configuration("SalesChart")

    assert widget.name == "SalesChart"
    assert widget.version == "1.0.0"
    assert "salesQuery" in widget.configs.provider_config["configs"]["config"]["queryData"]


@pytest.mark.parametrize("widget_id", ["Unknown", "", ".", "..", "../SalesChart", "SalesChart/..", "a\\b"])
def test_unknown_or_escaping_ids_return_none(widget_provider, widget_id):
    assert widget_provider.get_widget_configuration(widget_id) is None


def test_unreadable_configuration_raises(widget_provider, widgets_dir):
    broken = widgets_dir / "Broken"
    broken.mkdir()
    (broken / "widgetConf.json").write_text("{not json")

    with pytest.raises(DashboardError):
        widget_provider.get_widget_configuration("Broken")


def test_configuration_without_name_raises(widget_provider, widgets_dir):
    nameless = widgets_dir / "Nameless"
    nameless.mkdir()
    (nameless / "widgetConf.json").write_text(json.dumps({"id": "Nameless"}))

    with pytest.raises(DashboardError):
        widget_provider.get_widget_configuration("Nameless")


def test_lists_all_configurations_sorted(widget_provider, widgets_dir):
    area = widgets_dir / "AreaChart"
    area.mkdir()
    (area / "widgetConf.json").write_text(json.dumps(make_widget_conf("AreaChart")))
    (widgets_dir / "EmptyDir").mkdir()

    widgets = widget_provider.get_all_widget_configurations()

    assert [w.name for w in widgets] == ["AreaChart", "SalesChart"]


def test_missing_widgets_dir_lists_nothing(tmp_path, sqlite_engine):
    provider = FileWidgetMetadataProvider(tmp_path / "absent", WidgetMetadataDao(sqlite_engine))

    assert provider.get_all_widget_configurations() == []


def test_is_widget_present(widget_provider):
    assert widget_provider.is_widget_present("SalesChart") is True
    assert widget_provider.is_widget_present("SalesChart", WidgetType.ALL) is True
    assert widget_provider.is_widget_present("SalesChart", WidgetType.GENERATED) is False
    assert widget_provider.is_widget_present("Unknown") is False


def test_delete_goes_through_the_dao(widget_provider, sqlite_engine):
    with sqlite_engine.begin() as connection:
        connection.execute(text("INSERT INTO WIDGET_RESOURCE (id) VALUES ('Generated1')"))

    assert widget_provider.delete("Generated1") == 1
    assert widget_provider.delete("Generated1") == 0
