"""
Storegate Backend - Pipeline Interceptors
==========================================

What:  The concrete stages of the request pipeline.

Interceptor Chain (order matters!):
    Request → [Request ID] → [Access Log] → [Powered-By] → [Error Page]
            → [Exception Audit] → [Page Not Found] → [Bad Request Audit]
            → [Install URL] → Route Handler

    Responses unwind in reverse. In particular:
    - Page Not Found restores the original path before Exception Audit,
      Error Page or Access Log look at the request again
    - Exception Audit sees faults raised while re-executing /page-not-found
    - Error Page renders whatever Exception Audit re-raises
"""
