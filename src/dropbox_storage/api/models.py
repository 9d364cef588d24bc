"""Response field names and SDK-to-dict conversion for Dropbox API v2 records."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from dropbox.files import DeletedMetadata, FileMetadata, FolderMetadata, ListFolderResult

# Dropbox API JSON field names
FIELD_TAG = ".tag"
FIELD_ID = "id"
FIELD_NAME = "name"
FIELD_PATH_LOWER = "path_lower"
FIELD_PATH_DISPLAY = "path_display"
FIELD_SERVER_MODIFIED = "server_modified"
FIELD_CLIENT_MODIFIED = "client_modified"
FIELD_SIZE = "size"
FIELD_REV = "rev"
FIELD_CONTENT_HASH = "content_hash"

# list_folder response keys
FIELD_ENTRIES = "entries"
FIELD_CURSOR = "cursor"
FIELD_HAS_MORE = "has_more"

# .tag values
TAG_FILE = "file"
TAG_FOLDER = "folder"
TAG_DELETED = "deleted"

# Wire format of server_modified / client_modified
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def format_timestamp(value: datetime) -> str:
    """Render an SDK datetime (naive, UTC) in the API's wire format."""
    return value.strftime(TIMESTAMP_FORMAT)


def metadata_to_dict(metadata: Any) -> dict[str, Any]:
    """Map an SDK metadata object to the loosely-typed API record shape.

    Args:
        metadata: A ``FileMetadata``, ``FolderMetadata`` or ``DeletedMetadata``.

    Returns:
        Dict keyed by the API's own field names, with ``.tag`` set from the
        concrete metadata type. Fields the API left unset are omitted.
    """
    record: dict[str, Any] = {FIELD_NAME: metadata.name}
    if metadata.path_lower is not None:
        record[FIELD_PATH_LOWER] = metadata.path_lower
    if metadata.path_display is not None:
        record[FIELD_PATH_DISPLAY] = metadata.path_display

    if isinstance(metadata, FileMetadata):
        record[FIELD_TAG] = TAG_FILE
        record[FIELD_ID] = metadata.id
        record[FIELD_SERVER_MODIFIED] = format_timestamp(metadata.server_modified)
        record[FIELD_CLIENT_MODIFIED] = format_timestamp(metadata.client_modified)
        record[FIELD_SIZE] = metadata.size
        record[FIELD_REV] = metadata.rev
        if metadata.content_hash is not None:
            record[FIELD_CONTENT_HASH] = metadata.content_hash
    elif isinstance(metadata, FolderMetadata):
        record[FIELD_TAG] = TAG_FOLDER
        record[FIELD_ID] = metadata.id
    elif isinstance(metadata, DeletedMetadata):
        record[FIELD_TAG] = TAG_DELETED
    else:
        raise TypeError(f"Unsupported metadata type: {type(metadata).__name__}")

    return record


def list_result_to_dict(result: ListFolderResult) -> dict[str, Any]:
    """Map an SDK ``ListFolderResult`` to ``{entries, cursor, has_more}``."""
    return {
        FIELD_ENTRIES: [metadata_to_dict(entry) for entry in result.entries],
        FIELD_CURSOR: result.cursor,
        FIELD_HAS_MORE: result.has_more,
    }
