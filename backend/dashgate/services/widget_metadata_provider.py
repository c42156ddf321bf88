"""File-backed widget metadata provider.

Each widget is a directory under ``widgets_dir`` holding a ``widgetConf.json``:

    widgets/
      LineChart/widgetConf.json
      SalesTable/widgetConf.json

Generated widgets are not stored on disk; their rows live in WIDGET_RESOURCE.
"""

import json
from pathlib import Path

import structlog
from pydantic import ValidationError

from dashgate.core.errors import DashboardError
from dashgate.dao.widget_metadata_dao import WidgetMetadataDao
from dashgate.schemas.dashboard import WidgetMetaInfo, WidgetType

logger = structlog.stdlib.get_logger(__name__)

WIDGET_CONF_FILE = "widgetConf.json"


class FileWidgetMetadataProvider:
    def __init__(self, widgets_dir: Path | str, dao: WidgetMetadataDao):
        self._widgets_dir = Path(widgets_dir)
        self._dao = dao
        self._started = False

    def start(self) -> None:
        """Ensure the widget table exists. Safe to call more than once."""
        created = self._dao.init_table()
        self._started = True
        logger.info(
            "widget_metadata_provider_started",
            widgets_dir=str(self._widgets_dir),
            table_created=created,
        )

    def stop(self) -> None:
        self._started = False
        logger.info("widget_metadata_provider_stopped")

    @property
    def started(self) -> bool:
        return self._started

    def get_widget_configuration(self, widget_id: str) -> WidgetMetaInfo | None:
        conf_path = self._conf_path(widget_id)
        if conf_path is None or not conf_path.is_file():
            return None
        return self._read(conf_path)

    def get_all_widget_configurations(self) -> list[WidgetMetaInfo]:
        if not self._widgets_dir.is_dir():
            return []
        return [
            self._read(widget_dir / WIDGET_CONF_FILE)
            for widget_dir in sorted(self._widgets_dir.iterdir())
            if (widget_dir / WIDGET_CONF_FILE).is_file()
        ]

    def is_widget_present(
        self, widget_name: str, widget_type: WidgetType = WidgetType.CUSTOM
    ) -> bool:
        match widget_type:
            case WidgetType.CUSTOM | WidgetType.ALL:
                conf_path = self._conf_path(widget_name)
                return conf_path is not None and conf_path.is_file()
            case _:
                return False

    def delete(self, widget_id: str) -> int:
        return self._dao.delete(widget_id)

    def _conf_path(self, widget_id: str) -> Path | None:
        """Map a widget id to its widgetConf.json; None for ids that leave widgets_dir."""
        if not widget_id or widget_id in (".", "..") or "/" in widget_id or "\\" in widget_id:
            return None
        return self._widgets_dir / widget_id / WIDGET_CONF_FILE

    @staticmethod
    def _read(conf_path: Path) -> WidgetMetaInfo:
        try:
            raw = json.loads(conf_path.read_text(encoding="utf-8"))
            return WidgetMetaInfo.model_validate(raw)
        except (OSError, ValueError, ValidationError) as e:
            raise DashboardError(
                f"Cannot read widget configuration '{conf_path}'."
            ) from e
