"""
paths.py - Confine request paths to the served root.
"""

import os
from urllib.parse import quote

from werkzeug.security import safe_join


class PathEscapesRoot(ValueError):
    """The request path resolves to somewhere outside the served root."""

    def __init__(self, request_path):
        super().__init__(f'{request_path!r} resolves outside the served root')
        self.request_path = request_path


def canonical_root(root):
    return os.path.realpath(os.path.abspath(root))


def is_within(path, root):
    try:
        return os.path.commonpath([path, root]) == root
    except ValueError:
        # Different drives on Windows
        return False


def resolve(request_path, root):
    """
    Map a URL path onto the filesystem below `root`.

    `root` must already be canonical (see canonical_root). The result is
    canonical too, so symlinks inside the tree are followed, and any path
    whose real location leaves the root raises PathEscapesRoot.
    """
    relative = request_path.lstrip('/')
    if not relative:
        return root

    joined = safe_join(root, relative)
    if joined is None:
        raise PathEscapesRoot(request_path)

    try:
        resolved = os.path.realpath(joined)
    except ValueError:
        # Embedded NUL, no such file can exist
        raise PathEscapesRoot(request_path)
    if not is_within(resolved, root):
        raise PathEscapesRoot(request_path)
    return resolved


def url_path(path, root):
    """Root-relative URL for `path`, with a leading slash."""
    relative = os.path.relpath(path, root)
    if relative == os.curdir:
        return '/'
    # Quote the raw bytes so names that are not valid UTF-8 still get a link
    return '/' + quote(os.fsencode(relative.replace(os.sep, '/')))
