"""
Storegate Backend - Request Re-execution Scope
===============================================

What:  Context managers that point a request at an internal path for the
       duration of a `with` block and put it back afterwards.
How:   try/finally. Restoration runs on normal exit, on any exception, and
       on asyncio cancellation; it never swallows or replaces the exception.

Usage:
    with reexecution(context, "/page-not-found") as feature:
        await call_next(context)
    # context.path / path_base / query_string are the originals again,
    # and StatusCodeReExecuteFeature is gone from context.features

Path base:
    The target is joined onto the current path base, so an app mounted at
    root_path "/shop" re-executes "/shop/page-not-found" and starlette's
    router still resolves "/page-not-found".
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from storegate.pipeline.context import RequestContext
from storegate.pipeline.features import StatusCodeReExecuteFeature

logger = logging.getLogger(__name__)


@contextmanager
def rewritten_path(context: RequestContext, path: str) -> Iterator[None]:
    """Rewrite path and clear the query string; restore both on exit."""
    original_path_base = context.path_base
    original_path = context.path
    original_query_string = context.query_string

    context.path = original_path_base + path
    context.query_string = ""
    try:
        yield
    finally:
        context.query_string = original_query_string
        context.path = original_path
        context.path_base = original_path_base


@contextmanager
def reexecution(context: RequestContext, path: str) -> Iterator[StatusCodeReExecuteFeature]:
    """
    Re-execute scope for status code pages.

    Stores a StatusCodeReExecuteFeature describing the original request,
    rewrites the path, and on exit restores the request and removes the
    feature. At most one such feature may be active per request.
    """
    if StatusCodeReExecuteFeature in context.features:
        raise RuntimeError(f"Request {context!r} is already being re-executed")

    query_string = context.query_string
    feature = StatusCodeReExecuteFeature(
        original_path_base=context.path_base,
        original_path=context.path,
        original_query_string=query_string or None,
    )
    context.features.set(StatusCodeReExecuteFeature, feature)
    try:
        with rewritten_path(context, path):
            logger.debug("Re-executing %s as %s", feature.original_path, context.path)
            yield feature
    finally:
        context.features.set(StatusCodeReExecuteFeature, None)
