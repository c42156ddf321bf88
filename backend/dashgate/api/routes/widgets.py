"""Widget metadata endpoints.

Widget configurations (and their query templates) are never served to
clients; only metadata rows can be dropped here.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from dashgate.api.deps import get_widget_metadata_provider
from dashgate.core.errors import PersistenceError
from dashgate.services.widget_metadata_provider import FileWidgetMetadataProvider

router = APIRouter()


@router.delete("/{widget_id}")
def delete_widget(
    widget_id: str,
    widgets: FileWidgetMetadataProvider = Depends(get_widget_metadata_provider),
):
    """Delete a widget's metadata row. Deleting an unknown id is a no-op."""
    try:
        deleted = widgets.delete(widget_id)
    except PersistenceError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=e.message,
        ) from e
    return {"widgetId": widget_id, "deleted": deleted}
