"""
Storegate Backend - Install URL Interceptor
============================================

What:  Sends every page request to the installer until the store is installed.
How:   302 to INSTALL_PATH for any non-static path other than the installer
       itself and the health probe. Static assets still load so the
       installer page can render.
"""

import logging
from typing import Callable

from storegate.pipeline.chain import Interceptor, RequestDelegate
from storegate.pipeline.context import RequestContext

logger = logging.getLogger(__name__)


class InstallUrlInterceptor(Interceptor):
    def __init__(
        self,
        is_store_installed: Callable[[], bool],
        is_static_resource: Callable[[str], bool],
        install_path: str = "/install",
        exempt_paths=("/health/live",),
    ):
        self._is_store_installed = is_store_installed
        self._is_static_resource = is_static_resource
        self._install_path = install_path
        self._exempt_paths = frozenset(exempt_paths) | {install_path}

    async def dispatch(self, context: RequestContext, call_next: RequestDelegate) -> None:
        if self._is_store_installed():
            await call_next(context)
            return

        install_url = context.path_base + self._install_path
        if (
            context.path in self._exempt_paths
            or context.path == install_url
            or self._is_static_resource(context.path)
        ):
            await call_next(context)
            return

        logger.debug("Store not installed; redirecting %s to %s", context.path, install_url)
        context.response.status_code = 302
        context.response.headers["location"] = install_url
