"""Generic filesystem adapter interface, metadata record and per-call options."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any, BinaryIO

TYPE_FILE = "file"
TYPE_DIR = "dir"

VISIBILITY_PUBLIC = "public"
VISIBILITY_PRIVATE = "private"


class UnsupportedOperationError(Exception):
    """Raised when an adapter cannot perform an operation of the interface."""


class PathTraversalError(ValueError):
    """Raised when a logical path resolves outside the adapter root."""


@dataclass
class Metadata:
    """Normalized description of a file or directory.

    ``path`` is the canonical (lowercase on case-insensitive backends) path
    relative to the adapter root; ``path_display`` keeps the casing the
    backend reports. Payload fields are only set by read operations.
    """

    type: str
    path: str
    name: str = ""
    path_display: str = ""
    timestamp: int | None = None
    size: int | None = None
    mimetype: str | None = None
    contents: bytes | None = None
    stream: BinaryIO | None = None

    @property
    def is_file(self) -> bool:
        return self.type == TYPE_FILE

    @property
    def is_dir(self) -> bool:
        return self.type == TYPE_DIR

    def to_dict(self) -> dict[str, Any]:
        """Return the mapping form of the record, omitting unset fields."""
        result: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None or (f.name == "path_display" and value == ""):
                continue
            result[f.name] = value
        return result


class Config:
    """Per-call options with an optional fallback mapping."""

    def __init__(self, settings: Mapping[str, Any] | None = None) -> None:
        self._settings: dict[str, Any] = dict(settings or {})
        self._fallback: Config | None = None

    def get(self, key: str, default: Any = None) -> Any:
        """Return the option for ``key``, consulting the fallback before ``default``."""
        if key in self._settings:
            return self._settings[key]
        if self._fallback is not None:
            return self._fallback.get(key, default)
        return default

    def has(self, key: str) -> bool:
        """True if ``key`` is set here or in the fallback."""
        if key in self._settings:
            return True
        return self._fallback is not None and self._fallback.has(key)

    def set(self, key: str, value: Any) -> Config:
        """Set ``key`` for this call and return self for chaining."""
        self._settings[key] = value
        return self

    def with_fallback(self, fallback: Config) -> Config:
        """Attach ``fallback`` and return self for chaining."""
        self._fallback = fallback
        return self


class FilesystemAdapter(ABC):
    """Contract every storage backend implements.

    Content operations (write, update, read and their stream variants) raise
    on backend failure. Mutating operations (delete, delete_dir, rename, copy)
    report failure as ``False``; lookups and create_dir report it as ``None``.
    """

    @abstractmethod
    def write(self, path: str, contents: bytes, config: Config | None = None) -> Metadata: ...

    @abstractmethod
    def write_stream(
        self, path: str, stream: BinaryIO, config: Config | None = None
    ) -> Metadata: ...

    @abstractmethod
    def update(self, path: str, contents: bytes, config: Config | None = None) -> Metadata: ...

    @abstractmethod
    def update_stream(
        self, path: str, stream: BinaryIO, config: Config | None = None
    ) -> Metadata: ...

    @abstractmethod
    def read(self, path: str) -> Metadata: ...

    @abstractmethod
    def read_stream(self, path: str) -> Metadata: ...

    @abstractmethod
    def delete(self, path: str) -> bool: ...

    @abstractmethod
    def delete_dir(self, path: str) -> bool: ...

    @abstractmethod
    def create_dir(self, path: str, config: Config | None = None) -> Metadata | None: ...

    @abstractmethod
    def rename(self, from_path: str, to_path: str) -> bool: ...

    @abstractmethod
    def copy(self, from_path: str, to_path: str) -> bool: ...

    @abstractmethod
    def has(self, path: str) -> bool: ...

    @abstractmethod
    def get_metadata(self, path: str) -> Metadata | None: ...

    @abstractmethod
    def get_timestamp(self, path: str) -> int | None: ...

    @abstractmethod
    def get_size(self, path: str) -> int | None: ...

    @abstractmethod
    def get_mimetype(self, path: str) -> str | None: ...

    @abstractmethod
    def list_contents(self, directory: str = "", recursive: bool = False) -> list[Metadata]: ...

    def get_visibility(self, path: str) -> str:
        raise UnsupportedOperationError(
            f"{type(self).__name__} does not support visibility. Path: {path}"
        )

    def set_visibility(self, path: str, visibility: str) -> bool:
        raise UnsupportedOperationError(
            f"{type(self).__name__} does not support visibility. Path: {path}"
        )
