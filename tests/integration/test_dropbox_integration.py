"""Integration tests against a real Dropbox account.

These tests require real Dropbox credentials and are skipped in CI/CD unless
the DBX_ACCESS_TOKEN environment variable is set. They work under a scratch
folder below DBX_PATH_PREFIX and remove it afterwards.
"""

import io
import os
import uuid
from collections.abc import Iterator

import pytest

from dropbox_storage.config import load_config
from dropbox_storage.filesystem.adapter import DropboxAdapter, dropbox_adapter_from_config

pytestmark = pytest.mark.skipif(
    not os.getenv("DBX_ACCESS_TOKEN"),
    reason="Real Dropbox credentials not available",
)


@pytest.fixture
def adapter() -> DropboxAdapter:
    return dropbox_adapter_from_config(load_config())


@pytest.fixture
def scratch(adapter: DropboxAdapter) -> Iterator[str]:
    folder = f"integration-{uuid.uuid4().hex[:8]}"
    yield folder
    adapter.delete_dir(folder)


def test_file_lifecycle_real(adapter: DropboxAdapter, scratch: str) -> None:
    path = f"{scratch}/Hello.txt"

    written = adapter.write(path, b"hello")
    assert written.type == "file"
    assert written.name == "Hello.txt"

    assert adapter.read(path).contents == b"hello"
    assert adapter.has(path)
    assert adapter.get_size(path) == 5

    assert adapter.copy(path, f"{scratch}/copy.txt")
    assert adapter.rename(f"{scratch}/copy.txt", f"{scratch}/moved.txt")

    names = sorted(entry.name for entry in adapter.list_contents(scratch))
    assert names == ["Hello.txt", "moved.txt"]

    assert adapter.delete(path)
    assert not adapter.has(path)


def test_stream_upload_real(adapter: DropboxAdapter, scratch: str) -> None:
    path = f"{scratch}/stream.bin"

    adapter.write_stream(path, io.BytesIO(b"\x00" * 1024))
    result = adapter.read_stream(path)

    assert result.stream is not None
    with result.stream:
        assert len(result.stream.read()) == 1024


def test_create_dir_twice_real(adapter: DropboxAdapter, scratch: str) -> None:
    assert adapter.create_dir(scratch) is not None
    assert adapter.create_dir(scratch) is None
