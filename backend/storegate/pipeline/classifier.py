"""
Storegate Backend - Caller Classification
==========================================

What:  Decides whether a request comes from a programmatic client or a browser.
How:   A request carrying `Authorization: Bearer <token>` is an API caller;
       everything else (no header, empty header, Basic auth, ...) is a browser.
Who:   The exception audit interceptor (terse body vs. error page) and the
       page-not-found interceptor (API callers keep their raw 404).
"""

import enum
from typing import Mapping

AUTHORIZATION_HEADER = "authorization"
BEARER_SCHEME = "Bearer"


class CallerClass(enum.Enum):
    API = "api"
    BROWSER = "browser"


def classify_caller(headers: Mapping[str, str]) -> CallerClass:
    """
    Classify a request by its first Authorization header value.

    The scheme comparison is case-sensitive, matching what API clients send.
    Total: never raises, absent or empty header means BROWSER.
    """
    value = headers.get(AUTHORIZATION_HEADER) or ""
    tokens = value.split(None, 1)
    if tokens and tokens[0] == BEARER_SCHEME:
        return CallerClass.API
    return CallerClass.BROWSER
