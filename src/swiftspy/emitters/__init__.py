"""SwiftSpy emitters - render spy declarations as source text."""

from swiftspy.emitters.base import Emitter, SourceWriter
from swiftspy.emitters.swift import SwiftEmitter, render_type

__all__ = [
    "Emitter",
    "SourceWriter",
    "SwiftEmitter",
    "render_type",
]
