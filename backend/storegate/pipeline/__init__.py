"""
Storegate Backend - Request Pipeline Core
==========================================

What:  The per-request context and the interceptor chain that wraps it.

Module Inventory:
    - context.py:    RequestContext (mutable view over the ASGI scope)
    - response.py:   BufferedResponse (holds back 4xx/5xx so they can be replaced)
    - features.py:   Typed feature bag and the features stored in it
    - chain.py:      Interceptor base class and InterceptorChain composition
    - outcome.py:    Outcome (handled vs. propagate-fault)
    - classifier.py: API vs. browser caller classification
    - reexecute.py:  Scoped path rewrite with guaranteed restoration
    - hosting.py:    ASGI middleware hosting the chain + composition root

hosting.py is deliberately not re-exported here: it imports the concrete
interceptors, which themselves import this package.
"""

from storegate.pipeline.chain import Interceptor, InterceptorChain, RequestDelegate
from storegate.pipeline.classifier import CallerClass, classify_caller
from storegate.pipeline.context import RequestContext
from storegate.pipeline.features import (
    ActorFeature,
    ExceptionHandlerFeature,
    FeatureCollection,
    StatusCodeReExecuteFeature,
)
from storegate.pipeline.outcome import Outcome
from storegate.pipeline.reexecute import reexecution, rewritten_path

__all__ = [
    "ActorFeature",
    "CallerClass",
    "ExceptionHandlerFeature",
    "FeatureCollection",
    "Interceptor",
    "InterceptorChain",
    "Outcome",
    "RequestContext",
    "RequestDelegate",
    "StatusCodeReExecuteFeature",
    "classify_caller",
    "reexecution",
    "rewritten_path",
]
