"""SwiftSpy runtime - run generated spies in Python."""

from swiftspy.runtime.conformance import conforms
from swiftspy.runtime.faults import SpyFault, TypeMismatchFault, UnwrapFault
from swiftspy.runtime.instance import SpyInstance

__all__ = [
    "SpyFault",
    "SpyInstance",
    "TypeMismatchFault",
    "UnwrapFault",
    "conforms",
]
