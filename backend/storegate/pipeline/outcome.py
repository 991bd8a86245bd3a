"""
Storegate Backend - Fault Handling Outcome
===========================================

What:  The result of handling a downstream fault: either the interceptor
       produced the final response, or the original fault must keep
       travelling outward.
How:   Fault handlers return an Outcome; only the interceptor's dispatch()
       turns Outcome.propagate(...) back into a bare `raise`, so the original
       exception object (type, message, traceback) is what propagates.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Outcome:
    fault: Optional[BaseException] = None

    @classmethod
    def handled(cls) -> "Outcome":
        """The response is final; stop propagation."""
        return cls()

    @classmethod
    def propagate(cls, fault: BaseException) -> "Outcome":
        """Re-raise `fault` unchanged for an outer stage to render."""
        return cls(fault=fault)

    @property
    def propagates(self) -> bool:
        return self.fault is not None
