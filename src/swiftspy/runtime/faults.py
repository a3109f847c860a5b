"""Faults raised by generated spies at use time.

These mirror the places where generated Swift traps: force-unwrapping a
value the test never configured, and a forced cast that does not hold.
"""

from __future__ import annotations

from swiftspy.diagnostics import SwiftSpyError


class SpyFault(SwiftSpyError):
    """Base class for spy use-time faults."""


class UnwrapFault(SpyFault):
    """An implicitly unwrapped field was read before it was configured."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Unexpectedly found nil while unwrapping {field!r} - configure it first")


class TypeMismatchFault(SpyFault):
    """A value does not conform to the type it is cast or assigned to."""

    def __init__(self, value: object, expected: str, site: str | None = None):
        self.value = value
        self.expected = expected
        self.site = site
        message = f"Could not cast value {value!r} of type {type(value).__name__!r} to {expected!r}"
        if site:
            message += f" ({site})"
        super().__init__(message)
