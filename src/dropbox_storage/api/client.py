"""Dropbox API v2 client wrapping the official SDK."""

from __future__ import annotations

import io
import logging
import re
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, BinaryIO

import dropbox
from dropbox.exceptions import ApiError, AuthError, BadInputError, HttpError
from dropbox.files import (
    CommitInfo,
    PathOrLink,
    ThumbnailFormat,
    ThumbnailSize,
    UploadSessionCursor,
    WriteMode,
)

from dropbox_storage.api.models import list_result_to_dict, metadata_to_dict
from dropbox_storage.config import DEFAULT_UPLOAD_CHUNK_SIZE

if TYPE_CHECKING:
    from dropbox_storage.config import AppConfig

logger = logging.getLogger(__name__)

# Status the API uses for endpoint-specific (route) errors such as not_found or conflict
ROUTE_ERROR_STATUS = 409
BAD_INPUT_STATUS = 400

WRITE_MODE_ADD = "add"
WRITE_MODE_OVERWRITE = "overwrite"
_WRITE_MODES: dict[str, WriteMode] = {
    WRITE_MODE_ADD: WriteMode.add,
    WRITE_MODE_OVERWRITE: WriteMode.overwrite,
}

# References the API accepts verbatim instead of a slash-rooted path
_PATH_REFERENCE = re.compile(r"^id:.*|^rev:.*|^(ns:[0-9]+(/.*)?)")


class DropboxAuthError(Exception):
    """Raised when the API rejects the configured credentials."""


class DropboxApiError(Exception):
    """Raised when the Dropbox API returns a non-2xx response."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"Dropbox API error {status_code}: {message}")
        self.status_code = status_code
        self.message = message


class BadRequest(DropboxApiError):
    """Raised when the API rejects a request (route error or malformed input).

    Route errors (HTTP 409) cover not-found lookups and write conflicts.
    """


def normalize_remote_path(path: str) -> str:
    """Bring a path into the form the API expects.

    ``id:``, ``rev:`` and ``ns:`` references are returned unchanged. Any other
    path is trimmed of surrounding slashes and re-rooted with a single leading
    slash; the root itself becomes the empty string.
    """
    if _PATH_REFERENCE.match(path):
        return path
    trimmed = path.strip("/")
    return f"/{trimmed}" if trimmed else ""


@contextmanager
def _translate_errors(operation: str) -> Iterator[None]:
    """Convert SDK exceptions raised inside the block to client exceptions."""
    try:
        yield
    except ApiError as exc:
        message = exc.user_message_text or str(exc.error)
        logger.info(
            "[%s] route error; status:%d;request_id:%s;error:%s",
            operation,
            ROUTE_ERROR_STATUS,
            exc.request_id,
            exc.error,
        )
        raise BadRequest(ROUTE_ERROR_STATUS, message) from exc
    except AuthError as exc:
        logger.error("[%s] authentication failed; error:%s", operation, exc.error)
        raise DropboxAuthError(f"Dropbox authentication failed: {exc.error}") from exc
    except BadInputError as exc:
        raise BadRequest(BAD_INPUT_STATUS, str(exc.message)) from exc
    except HttpError as exc:
        raise DropboxApiError(exc.status_code, str(exc.body)) from exc


def _read_chunk(stream: BinaryIO, size: int) -> bytes:
    """Read up to ``size`` bytes, looping over short reads until EOF."""
    buffer = bytearray()
    while len(buffer) < size:
        piece = stream.read(size - len(buffer))
        if not piece:
            break
        buffer.extend(piece)
    return bytes(buffer)


class DropboxClient:
    """Authenticated client for the Dropbox API v2.

    Every method takes remote paths (already prefixed by the caller) and
    returns loosely-typed dicts keyed by the API's own field names.
    """

    def __init__(
        self,
        access_token: str | None = None,
        refresh_token: str | None = None,
        app_key: str | None = None,
        app_secret: str | None = None,
        timeout: float = 100.0,
        max_retries_on_error: int = 4,
        upload_chunk_size: int = DEFAULT_UPLOAD_CHUNK_SIZE,
    ) -> None:
        """Initialise the SDK client.

        Args:
            access_token: OAuth2 access token.
            refresh_token: OAuth2 refresh token; the SDK refreshes access
                tokens with it when ``app_key`` is also given.
            app_key: Dropbox app key.
            app_secret: Dropbox app secret.
            timeout: HTTP timeout in seconds.
            max_retries_on_error: SDK retry count for 5xx responses.
            upload_chunk_size: Streams larger than this are sent through an
                upload session in chunks of this size.
        """
        if upload_chunk_size <= 0:
            raise ValueError("upload_chunk_size must be positive")
        self._dbx = dropbox.Dropbox(
            oauth2_access_token=access_token,
            oauth2_refresh_token=refresh_token,
            app_key=app_key,
            app_secret=app_secret,
            timeout=timeout,
            max_retries_on_error=max_retries_on_error,
        )
        self._upload_chunk_size = upload_chunk_size

    @property
    def sdk(self) -> dropbox.Dropbox:
        """The wrapped SDK instance, for endpoints this client does not cover."""
        return self._dbx

    def upload(
        self,
        path: str,
        contents: bytes | BinaryIO,
        mode: str = WRITE_MODE_OVERWRITE,
    ) -> dict[str, Any]:
        """Upload content to ``path``.

        Content that fits in one chunk is sent with a single upload call;
        anything larger goes through an upload session.

        Args:
            path: Remote destination path.
            contents: Raw bytes or a binary file object.
            mode: ``"add"`` or ``"overwrite"``.

        Returns:
            File metadata of the stored object.

        Raises:
            BadRequest: If the API rejects the upload.
            ValueError: If ``mode`` is unknown.
        """
        if mode not in _WRITE_MODES:
            raise ValueError(f"Unknown write mode: {mode}")
        write_mode = _WRITE_MODES[mode]
        remote_path = normalize_remote_path(path)
        stream: BinaryIO = (
            io.BytesIO(contents) if isinstance(contents, bytes | bytearray) else contents
        )

        with _translate_errors("upload"):
            first = _read_chunk(stream, self._upload_chunk_size)
            if len(first) < self._upload_chunk_size:
                metadata = self._dbx.files_upload(first, remote_path, mode=write_mode)
            else:
                metadata = self._upload_session(stream, first, remote_path, write_mode)

        logger.info("[upload] uploaded; path:%s;size:%d", remote_path, metadata.size)
        return metadata_to_dict(metadata)

    def _upload_session(
        self,
        stream: BinaryIO,
        first: bytes,
        remote_path: str,
        write_mode: WriteMode,
    ) -> Any:
        """Send a stream in chunks through an upload session."""
        start = self._dbx.files_upload_session_start(first)
        cursor = UploadSessionCursor(session_id=start.session_id, offset=len(first))
        commit = CommitInfo(path=remote_path, mode=write_mode)
        logger.info(
            "[upload] started upload session; path:%s;session_id:%s",
            remote_path,
            start.session_id,
        )
        while True:
            chunk = _read_chunk(stream, self._upload_chunk_size)
            if len(chunk) < self._upload_chunk_size:
                return self._dbx.files_upload_session_finish(chunk, cursor, commit)
            self._dbx.files_upload_session_append_v2(chunk, cursor)
            cursor.offset += len(chunk)

    def download(self, path: str) -> tuple[dict[str, Any], BinaryIO]:
        """Download the file at ``path``.

        Returns:
            A tuple of (metadata, stream). The caller owns the stream and
            must close it.

        Raises:
            BadRequest: If the file does not exist or cannot be downloaded.
        """
        with _translate_errors("download"):
            metadata, response = self._dbx.files_download(normalize_remote_path(path))
        response.raw.decode_content = True
        return metadata_to_dict(metadata), response.raw

    def delete(self, path: str) -> dict[str, Any]:
        """Delete the file or folder at ``path`` and return its last metadata."""
        with _translate_errors("delete"):
            result = self._dbx.files_delete_v2(normalize_remote_path(path))
        return metadata_to_dict(result.metadata)

    def move(self, from_path: str, to_path: str) -> dict[str, Any]:
        """Move a file or folder and return the metadata at the destination."""
        with _translate_errors("move"):
            result = self._dbx.files_move_v2(
                normalize_remote_path(from_path),
                normalize_remote_path(to_path),
            )
        return metadata_to_dict(result.metadata)

    def copy(self, from_path: str, to_path: str) -> dict[str, Any]:
        """Copy a file or folder and return the metadata of the copy."""
        with _translate_errors("copy"):
            result = self._dbx.files_copy_v2(
                normalize_remote_path(from_path),
                normalize_remote_path(to_path),
            )
        return metadata_to_dict(result.metadata)

    def create_folder(self, path: str) -> dict[str, Any]:
        """Create a folder at ``path``.

        Raises:
            BadRequest: If something already exists at ``path``.
        """
        with _translate_errors("create_folder"):
            result = self._dbx.files_create_folder_v2(normalize_remote_path(path))
        return metadata_to_dict(result.metadata)

    def get_metadata(self, path: str) -> dict[str, Any]:
        """Return metadata for a file or folder.

        Raises:
            BadRequest: If nothing exists at ``path``.
        """
        with _translate_errors("get_metadata"):
            metadata = self._dbx.files_get_metadata(normalize_remote_path(path))
        return metadata_to_dict(metadata)

    def list_folder(self, path: str, recursive: bool = False) -> dict[str, Any]:
        """Return the first page of a folder listing as ``{entries, cursor, has_more}``."""
        with _translate_errors("list_folder"):
            result = self._dbx.files_list_folder(normalize_remote_path(path), recursive=recursive)
        return list_result_to_dict(result)

    def list_folder_continue(self, cursor: str) -> dict[str, Any]:
        """Return the next page of a folder listing for ``cursor``."""
        with _translate_errors("list_folder_continue"):
            result = self._dbx.files_list_folder_continue(cursor)
        return list_result_to_dict(result)

    def get_temporary_link(self, path: str) -> str:
        """Return a short-lived direct download link for the file at ``path``."""
        with _translate_errors("get_temporary_link"):
            result = self._dbx.files_get_temporary_link(normalize_remote_path(path))
        return str(result.link)

    def get_thumbnail(self, path: str, format: str = "jpeg", size: str = "w64h64") -> bytes:
        """Return thumbnail image bytes for the image file at ``path``.

        Args:
            path: Remote image path.
            format: Thumbnail format tag (e.g. ``"jpeg"``, ``"png"``).
            size: Thumbnail size tag (e.g. ``"w64h64"``, ``"w256h256"``).

        Raises:
            ValueError: If ``format`` or ``size`` is not a known tag.
        """
        if format not in ThumbnailFormat._tagmap:
            raise ValueError(f"Unknown thumbnail format: {format}")
        if size not in ThumbnailSize._tagmap:
            raise ValueError(f"Unknown thumbnail size: {size}")
        with _translate_errors("get_thumbnail"):
            _, response = self._dbx.files_get_thumbnail_v2(
                PathOrLink.path(normalize_remote_path(path)),
                format=ThumbnailFormat(format),
                size=ThumbnailSize(size),
            )
        return bytes(response.content)


def dropbox_client_from_config(config: AppConfig) -> DropboxClient:
    """Construct a DropboxClient from application configuration.

    Args:
        config: Application configuration instance.

    Returns:
        Configured DropboxClient instance.
    """
    return DropboxClient(
        access_token=config.access_token,
        refresh_token=config.refresh_token,
        app_key=config.app_key,
        app_secret=config.app_secret,
        timeout=config.timeout,
        max_retries_on_error=config.max_retries_on_error,
        upload_chunk_size=config.upload_chunk_size,
    )
