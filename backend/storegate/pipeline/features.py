"""
Storegate Backend - Request Features
=====================================

What:  A typed feature bag for cross-interceptor communication, plus the
       feature types the pipeline stores in it.
How:   Features are keyed by their class. The bag lives inside the ASGI
       scope, so endpoints can read what interceptors put there:

           feature = FeatureCollection.of_scope(request.scope).get(
               StatusCodeReExecuteFeature
           )

       Setting a feature to None removes it.
"""

from dataclasses import dataclass
from typing import Any, Dict, MutableMapping, Optional, Type, TypeVar

T = TypeVar("T")

# Reserved scope key holding the feature dict
FEATURES_SCOPE_KEY = "storegate.features"


class FeatureCollection:
    """Mapping of feature class -> feature instance for one request."""

    def __init__(self, store: Optional[Dict[type, Any]] = None):
        self._features: Dict[type, Any] = store if store is not None else {}

    @classmethod
    def of_scope(cls, scope: MutableMapping[str, Any]) -> "FeatureCollection":
        """Bind to the bag stored in `scope`, creating it on first access."""
        return cls(scope.setdefault(FEATURES_SCOPE_KEY, {}))

    def get(self, key: Type[T]) -> Optional[T]:
        return self._features.get(key)

    def set(self, key: Type[T], value: Optional[T]) -> None:
        if value is None:
            self._features.pop(key, None)
        else:
            self._features[key] = value

    def __contains__(self, key: object) -> bool:
        return key in self._features

    def __len__(self) -> int:
        return len(self._features)

    def __repr__(self) -> str:
        names = ", ".join(k.__name__ for k in self._features)
        return f"<FeatureCollection({names})>"


@dataclass(frozen=True)
class StatusCodeReExecuteFeature:
    """
    Original request description captured when a status code triggers a
    re-execution. Present only while the re-executed request runs.

    Attributes:
        original_path_base:    ASGI root_path before the reroute
        original_path:         Request path before the reroute
        original_query_string: Query string without '?', None when empty
    """

    original_path_base: str
    original_path: str
    original_query_string: Optional[str]


@dataclass(frozen=True)
class ExceptionHandlerFeature:
    """The fault being rendered by the error page, and the path that raised it."""

    error: BaseException
    path: str


@dataclass(frozen=True)
class ActorFeature:
    """Identity of the actor the request runs as, set by the host's auth stage."""

    actor_id: str
