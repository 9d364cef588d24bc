"""Filesystem adapter backed by the Dropbox API client."""

from __future__ import annotations

import logging
import mimetypes
from contextlib import closing
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, BinaryIO

from dropbox_storage.api.client import (
    WRITE_MODE_OVERWRITE,
    BadRequest,
    DropboxClient,
    dropbox_client_from_config,
)
from dropbox_storage.api.models import (
    FIELD_CURSOR,
    FIELD_ENTRIES,
    FIELD_HAS_MORE,
    FIELD_NAME,
    FIELD_PATH_DISPLAY,
    FIELD_PATH_LOWER,
    FIELD_SERVER_MODIFIED,
    FIELD_SIZE,
    FIELD_TAG,
    TAG_FOLDER,
    TIMESTAMP_FORMAT,
)
from dropbox_storage.filesystem import paths
from dropbox_storage.filesystem.base import (
    TYPE_DIR,
    TYPE_FILE,
    Config,
    FilesystemAdapter,
    Metadata,
)

if TYPE_CHECKING:
    from dropbox_storage.config import AppConfig

logger = logging.getLogger(__name__)


def parse_timestamp(value: str) -> int:
    """Convert an API timestamp (``2015-05-12T15:50:38Z``) to epoch seconds."""
    parsed = datetime.strptime(value, TIMESTAMP_FORMAT).replace(tzinfo=UTC)
    return int(parsed.timestamp())


class DropboxAdapter(FilesystemAdapter):
    """Maps filesystem operations onto a DropboxClient under a path prefix.

    All paths passed in and returned are relative to ``prefix``. Per-call
    ``Config`` options are accepted for interface compatibility and ignored.
    """

    def __init__(self, client: DropboxClient, prefix: str = "") -> None:
        """Initialise the adapter.

        Args:
            client: Client used for every remote call.
            prefix: Remote folder all logical paths are resolved under.
        """
        self._client = client
        self._prefix = prefix.strip("/")

    def get_client(self) -> DropboxClient:
        """Return the underlying client for raw API access."""
        return self._client

    def apply_path_prefix(self, path: str) -> str:
        return paths.apply_prefix(path, self._prefix)

    def remove_path_prefix(self, path: str) -> str:
        return paths.remove_prefix(path, self._prefix)

    # ------------------------------------------------------------------
    # Content operations: failures propagate
    # ------------------------------------------------------------------

    def write(self, path: str, contents: bytes, config: Config | None = None) -> Metadata:
        return self._upload(path, contents, "write")

    def write_stream(self, path: str, stream: BinaryIO, config: Config | None = None) -> Metadata:
        return self._upload(path, stream, "write_stream")

    def update(self, path: str, contents: bytes, config: Config | None = None) -> Metadata:
        return self._upload(path, contents, "update")

    def update_stream(self, path: str, stream: BinaryIO, config: Config | None = None) -> Metadata:
        return self._upload(path, stream, "update_stream")

    def read(self, path: str) -> Metadata:
        """Download the file at ``path`` into memory.

        Raises:
            BadRequest: If the file cannot be downloaded.
        """
        response, stream = self._client.download(self.apply_path_prefix(path))
        with closing(stream):
            contents = stream.read()
        result = self._normalize_response(response)
        result.contents = contents
        logger.info("[read] downloaded; path:%s;bytes:%d", result.path, len(contents))
        return result

    def read_stream(self, path: str) -> Metadata:
        """Open a download stream for ``path``. The caller must close ``stream``.

        Raises:
            BadRequest: If the file cannot be downloaded.
        """
        response, stream = self._client.download(self.apply_path_prefix(path))
        try:
            result = self._normalize_response(response)
        except Exception:
            stream.close()
            raise
        result.stream = stream
        return result

    def list_contents(self, directory: str = "", recursive: bool = False) -> list[Metadata]:
        """List the entries of ``directory``, following continuation cursors.

        Pages are fetched one after another until the API reports no more.
        The listed directory itself, which the API reports among the entries of
        a recursive listing, is left out.
        A failure on any page propagates and nothing is returned.
        """
        listed = paths.normalize_path(directory).lower()
        response = self._client.list_folder(self.apply_path_prefix(directory), recursive)
        entries = self._page_entries(response, listed)
        pages = 1
        while response.get(FIELD_HAS_MORE):
            response = self._client.list_folder_continue(response[FIELD_CURSOR])
            entries.extend(self._page_entries(response, listed))
            pages += 1

        logger.info(
            "[list_contents] listed; directory:%s;recursive:%s;entries:%d;pages:%d",
            directory,
            recursive,
            len(entries),
            pages,
        )
        return entries

    def get_temporary_link(self, path: str) -> str:
        """Return a short-lived direct download link for ``path``."""
        return self._client.get_temporary_link(self.apply_path_prefix(path))

    def get_thumbnail(self, path: str, format: str = "jpeg", size: str = "w64h64") -> bytes:
        """Return thumbnail bytes for the image at ``path``."""
        return self._client.get_thumbnail(self.apply_path_prefix(path), format=format, size=size)

    # ------------------------------------------------------------------
    # Best-effort operations: BadRequest becomes False or None
    # ------------------------------------------------------------------

    def delete(self, path: str) -> bool:
        location = self.apply_path_prefix(path)
        try:
            self._client.delete(location)
        except BadRequest as exc:
            logger.warning(
                "[delete] delete failed; path:%s;status:%d", location, exc.status_code
            )
            return False
        return True

    def delete_dir(self, path: str) -> bool:
        return self.delete(path)

    def create_dir(self, path: str, config: Config | None = None) -> Metadata | None:
        location = self.apply_path_prefix(path)
        try:
            response = self._client.create_folder(location)
        except BadRequest as exc:
            logger.warning(
                "[create_dir] create folder failed; path:%s;status:%d",
                location,
                exc.status_code,
            )
            return None
        return self._normalize_response(response)

    def rename(self, from_path: str, to_path: str) -> bool:
        source = self.apply_path_prefix(from_path)
        destination = self.apply_path_prefix(to_path)
        try:
            self._client.move(source, destination)
        except BadRequest as exc:
            logger.warning(
                "[rename] move failed; from:%s;to:%s;status:%d",
                source,
                destination,
                exc.status_code,
            )
            return False
        return True

    def copy(self, from_path: str, to_path: str) -> bool:
        source = self.apply_path_prefix(from_path)
        destination = self.apply_path_prefix(to_path)
        try:
            self._client.copy(source, destination)
        except BadRequest as exc:
            logger.warning(
                "[copy] copy failed; from:%s;to:%s;status:%d",
                source,
                destination,
                exc.status_code,
            )
            return False
        return True

    # ------------------------------------------------------------------
    # Lookups: absence is not failure
    # ------------------------------------------------------------------

    def get_metadata(self, path: str) -> Metadata | None:
        """Return metadata for ``path``, or None if the API rejects the lookup."""
        location = self.apply_path_prefix(path)
        try:
            response = self._client.get_metadata(location)
        except BadRequest as exc:
            logger.info(
                "[get_metadata] lookup rejected; path:%s;status:%d", location, exc.status_code
            )
            return None
        return self._normalize_response(response)

    def has(self, path: str) -> bool:
        return self.get_metadata(path) is not None

    def get_timestamp(self, path: str) -> int | None:
        metadata = self.get_metadata(path)
        return metadata.timestamp if metadata is not None else None

    def get_size(self, path: str) -> int | None:
        metadata = self.get_metadata(path)
        return metadata.size if metadata is not None else None

    def get_mimetype(self, path: str) -> str | None:
        """Guess the MIME type of the file at ``path`` from its name.

        The API stores no content types, so the guess comes from the
        standard ``mimetypes`` table. Directories and absent paths give None.
        """
        metadata = self.get_metadata(path)
        if metadata is None or not metadata.is_file:
            return None
        return metadata.mimetype

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _page_entries(self, response: dict[str, Any], listed: str) -> list[Metadata]:
        """Normalize one listing page, dropping the entry for the listed directory."""
        entries = [self._normalize_response(raw) for raw in response.get(FIELD_ENTRIES, [])]
        return [entry for entry in entries if entry.path.lower() != listed]

    def _upload(self, path: str, contents: bytes | BinaryIO, operation: str) -> Metadata:
        """Upload in overwrite mode; create and replace are the same remote call."""
        location = self.apply_path_prefix(path)
        response = self._client.upload(location, contents, mode=WRITE_MODE_OVERWRITE)
        result = self._normalize_response(response)
        logger.info("[%s] stored; path:%s;size:%s", operation, result.path, result.size)
        return result

    def _normalize_response(self, response: dict[str, Any]) -> Metadata:
        """Map a raw API record to a prefix-free Metadata record.

        ``path`` comes from ``path_lower`` so it matches the API's
        case-insensitive identity; ``path_display`` keeps the reported casing,
        rebuilt from ``path_lower`` and ``name`` when the API omits it.
        """
        path_lower = response.get(FIELD_PATH_LOWER)
        reported_display = response.get(FIELD_PATH_DISPLAY)

        if path_lower is not None:
            path = self.remove_path_prefix(path_lower)
        else:
            path = self.remove_path_prefix(reported_display or "")
        # The prefix folder is the root; its own name is never exposed.
        name = (response.get(FIELD_NAME) or paths.basename(path)) if path else ""

        if not path:
            path_display = ""
        elif reported_display is not None:
            path_display = self.remove_path_prefix(reported_display)
        elif path_lower is not None:
            path_display = paths.display_path(path_lower, name, self._prefix)
        else:
            path_display = path

        if response.get(FIELD_TAG) == TAG_FOLDER:
            return Metadata(type=TYPE_DIR, path=path, name=name, path_display=path_display)

        result = Metadata(
            type=TYPE_FILE,
            path=path,
            name=name,
            path_display=path_display,
            mimetype=mimetypes.guess_type(name)[0],
        )
        if FIELD_SERVER_MODIFIED in response:
            result.timestamp = parse_timestamp(response[FIELD_SERVER_MODIFIED])
        if FIELD_SIZE in response:
            result.size = int(response[FIELD_SIZE])
        return result


def dropbox_adapter_from_config(config: AppConfig) -> DropboxAdapter:
    """Construct a DropboxAdapter and its client from application configuration.

    Args:
        config: Application configuration instance.

    Returns:
        Configured DropboxAdapter instance.
    """
    return DropboxAdapter(client=dropbox_client_from_config(config), prefix=config.path_prefix)
