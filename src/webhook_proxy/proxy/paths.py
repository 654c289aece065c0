"""Allow-list matching for upstream paths."""

from collections.abc import Collection


def _normalize(path: str) -> str:
    return path.rstrip("/")


def is_path_allowed(allowed_paths: Collection[str], path: str) -> bool:
    """
    Check whether a request path may be forwarded upstream.

    An empty allow-list allows every path. Otherwise the path must equal one
    of the entries once trailing slashes are ignored on both sides, so `/a/`
    matches an entry `/a` but `/a/b` does not. Matching is case-sensitive.

    Args:
        allowed_paths: The configured allow-list
        path: The request path, as decoded by the server

    Returns:
        True if the path is allowed, False otherwise
    """
    if not allowed_paths:
        return True

    normalized = _normalize(path)
    return any(_normalize(entry) == normalized for entry in allowed_paths)
