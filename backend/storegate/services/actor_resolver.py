"""
Storegate Backend - Actor Resolution
=====================================

What:  Abstract contract for "who is this request running as", plus the
       default implementation reading the feature bag.
How:   Authentication is the host's business. Its stage stores an
       ActorFeature on the request; FeatureActorResolver reads it back.
Who:   Called by the audit interceptors, and only when the audit store is
       installed.

Design Decision:
    An abstract base keeps the audit interceptors independent of how
    identity is established (cookie session, bearer token, impersonation).
    Tests pass a stub resolver; production wires FeatureActorResolver.
"""

from abc import ABC, abstractmethod
from typing import Optional

from storegate.pipeline.context import RequestContext
from storegate.pipeline.features import ActorFeature


class ActorResolver(ABC):
    """
    Contract:
        - current_actor_id() returns an identifier or None when anonymous
        - Implementations may raise; callers guard the call
    """

    @abstractmethod
    async def current_actor_id(self, context: RequestContext) -> Optional[str]:
        """Identifier of the actor `context` runs as, or None."""
        ...


class FeatureActorResolver(ActorResolver):
    """Reads the ActorFeature placed on the request by the auth stage."""

    async def current_actor_id(self, context: RequestContext) -> Optional[str]:
        feature = context.features.get(ActorFeature)
        return feature.actor_id if feature else None
