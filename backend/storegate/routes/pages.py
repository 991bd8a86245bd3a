"""
Storegate Backend - Internal Page Routes
=========================================

What:  The pages the pipeline re-executes requests against.
       - /page-not-found: target of PageNotFoundInterceptor
       - /errorpage.htm:  target of ErrorPageInterceptor (friendly mode)
       - /install:        target of InstallUrlInterceptor

How:   Re-execution keeps the original HTTP method, so these routes accept
       every method. They read what the interceptors left in the request's
       feature bag (original path, fault) and never read the request body.
"""

import html

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse

from storegate.config import Settings
from storegate.pipeline.features import (
    ExceptionHandlerFeature,
    FeatureCollection,
    StatusCodeReExecuteFeature,
)

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

_PAGE = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>{title}</title></head>
<body>
<h1>{title}</h1>
<p>{message}</p>
</body>
</html>
"""


def _page(title: str, message: str) -> str:
    return _PAGE.format(title=html.escape(title), message=html.escape(message))


def create_router(app_settings: Settings) -> APIRouter:
    """Build the router with the page paths configured in `app_settings`."""
    router = APIRouter(tags=["Pages"], include_in_schema=False)

    @router.api_route(app_settings.page_not_found_path, methods=ALL_METHODS)
    async def page_not_found(request: Request) -> HTMLResponse:
        """Rendered 404. Shows the path the client originally asked for."""
        feature = FeatureCollection.of_scope(request.scope).get(StatusCodeReExecuteFeature)
        requested = feature.original_path if feature else request.url.path
        return HTMLResponse(
            _page("Page not found", f"The page {requested} does not exist."),
            status_code=404,
        )

    @router.api_route(app_settings.error_page_path, methods=ALL_METHODS)
    async def error_page(request: Request) -> HTMLResponse:
        """Friendly error page. Answers 500 while rendering a fault, 200 otherwise."""
        feature = FeatureCollection.of_scope(request.scope).get(ExceptionHandlerFeature)
        rid = getattr(request.state, "request_id", "")
        message = "Something went wrong while processing your request."
        if rid:
            message += f" Reference: {rid}."
        return HTMLResponse(
            _page("Error", message),
            status_code=500 if feature else 200,
        )

    @router.get(app_settings.install_path)
    async def install() -> HTMLResponse:
        """Landing page shown until the audit store is installed."""
        return HTMLResponse(
            _page(
                "Installation required",
                "Run the database migrations and set DATABASE_INSTALLED=true.",
            )
        )

    return router
