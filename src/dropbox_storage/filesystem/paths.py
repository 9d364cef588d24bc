"""Pure helpers for logical paths, the adapter prefix and display paths."""

from dropbox_storage.filesystem.base import PathTraversalError


def normalize_path(path: str) -> str:
    """Return ``path`` as a root-relative logical path without a leading slash.

    Duplicate slashes and ``.`` segments are dropped and ``..`` segments are
    resolved against their parent.

    Raises:
        PathTraversalError: If ``..`` would climb above the root.
    """
    parts: list[str] = []
    for segment in path.split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            if not parts:
                raise PathTraversalError(f"Path is outside of the defined root: {path}")
            parts.pop()
            continue
        parts.append(segment)
    return "/".join(parts)


def apply_prefix(path: str, prefix: str) -> str:
    """Join ``prefix`` and the logical ``path`` into a slash-rooted remote path."""
    segments = [s for s in (prefix.strip("/"), normalize_path(path)) if s]
    return "/" + "/".join(segments)


def remove_prefix(remote_path: str, prefix: str) -> str:
    """Strip ``prefix`` and the leading slash from a path reported by the API.

    The comparison ignores case, since the API may report the prefix folder
    in either its lowercase or its display casing. Paths outside the prefix
    are returned with only the leading slash removed.
    """
    stripped = remote_path.strip("/")
    bare_prefix = prefix.strip("/")
    if not bare_prefix:
        return stripped
    lowered = stripped.lower()
    lowered_prefix = bare_prefix.lower()
    if lowered == lowered_prefix:
        return ""
    if lowered.startswith(lowered_prefix + "/"):
        return stripped[len(bare_prefix) + 1 :]
    return stripped


def display_path(path_lower: str, name: str, prefix: str) -> str:
    """Rebuild a case-correct display path from a lowercase path and a name.

    The directory portion comes from the prefix-stripped ``path_lower`` and
    the leaf is the unmodified ``name``, so the final component keeps its
    true casing.

    >>> display_path("/prefix/dirname/file", "File", "prefix")
    'dirname/File'
    """
    parent = remove_prefix(path_lower, prefix).rpartition("/")[0]
    return f"{parent}/{name}" if parent else name


def basename(path: str) -> str:
    """Return the last segment of a logical path."""
    return path.rstrip("/").rpartition("/")[2]
