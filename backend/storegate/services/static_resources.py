"""
Storegate Backend - Static Resource Detection
==============================================

What:  Predicate telling whether a request path names a static file
       (stylesheet, script, image, font, ...).
How:   A path is static when its extension maps to a known content type,
       the same test static-file servers use to pick a Content-Type.
Who:   The page-not-found interceptor (a missing .css stays a plain 404)
       and the install redirect (assets load before installation).
"""

import mimetypes
import posixpath


def is_static_resource(path: str) -> bool:
    """True if the last segment of `path` has an extension with a known MIME type."""
    _, extension = posixpath.splitext(posixpath.basename(path))
    if not extension:
        return False
    content_type, _ = mimetypes.guess_type(f"file{extension}", strict=False)
    return content_type is not None
