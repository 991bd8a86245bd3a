"""
Storegate Backend - Application Package Initializer
====================================================

What: Marks the `storegate` directory as a Python package.
Who:  Imported by uvicorn (`storegate.main:app`), Alembic, and pytest.

Architecture Note:
    Every inbound request runs through one ordered interceptor chain
    hosted by a single ASGI middleware:

    ┌─────────────────────────────────────┐
    │     Pipeline (storegate.pipeline)   │  ← RequestContext, chain, outcome
    ├─────────────────────────────────────┤
    │  Interceptors (storegate.middleware)│  ← error page, audit, re-execution
    ├─────────────────────────────────────┤
    │     Services (storegate.services)   │  ← audit logger, actor, predicates
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy audit store
    └─────────────────────────────────────┘

    Interceptors never look their collaborators up; they receive them in
    __init__ from configure_request_pipeline(), the single composition root.
"""

__version__ = "1.0.0"
