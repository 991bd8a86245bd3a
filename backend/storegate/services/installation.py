"""
Storegate Backend - Installation State
=======================================

What:  Whether the persistent store is installed and may be written to.
How:   Installation is an explicit operator decision recorded in settings
       (DATABASE_INSTALLED=true after migrations ran), not a probe: a
       request-time connectivity check would turn every fault into a
       database round trip.
Who:   The exception audit, bad request audit and install redirect
       interceptors receive `installation_predicate(settings)`.
"""

from functools import partial
from typing import Callable

from storegate.config import Settings


def database_is_installed(settings: Settings) -> bool:
    return settings.database_installed and bool(settings.database_url)


def installation_predicate(settings: Settings) -> Callable[[], bool]:
    """Zero-argument predicate bound to `settings`, as the interceptors expect."""
    return partial(database_is_installed, settings)
