"""Smoke tests — validate the package wires together end-to-end."""

from unittest.mock import patch

import dropbox_storage
from dropbox_storage.config import AppConfig
from dropbox_storage.filesystem import (
    DropboxAdapter,
    FilesystemAdapter,
    dropbox_adapter_from_config,
)


def test_version() -> None:
    assert dropbox_storage.__version__ == "0.1.0"


def test_adapter_from_config_implements_interface() -> None:
    """The configured adapter is a complete FilesystemAdapter (no abstract gaps)."""
    with patch("dropbox_storage.api.client.dropbox.Dropbox"):
        adapter = dropbox_adapter_from_config(AppConfig(access_token="tok"))

    assert isinstance(adapter, DropboxAdapter)
    assert isinstance(adapter, FilesystemAdapter)
