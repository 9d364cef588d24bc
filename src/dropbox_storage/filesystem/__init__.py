"""Generic filesystem interface and its Dropbox implementation."""

from dropbox_storage.filesystem.adapter import DropboxAdapter, dropbox_adapter_from_config
from dropbox_storage.filesystem.base import (
    Config,
    FilesystemAdapter,
    Metadata,
    PathTraversalError,
    UnsupportedOperationError,
)

__all__ = [
    "Config",
    "DropboxAdapter",
    "FilesystemAdapter",
    "Metadata",
    "PathTraversalError",
    "UnsupportedOperationError",
    "dropbox_adapter_from_config",
]
