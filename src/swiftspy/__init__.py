"""SwiftSpy - recording spy generation for Swift protocols."""

__version__ = "0.1.0"
