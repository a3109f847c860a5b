"""Base emitter interface for SwiftSpy.

An emitter turns a generated SpyDeclaration into source text. Formatting
concerns (indentation, line layout) live here and nowhere in the generator.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator

from swiftspy.generator.declarations import SpyDeclaration


class SourceWriter:
    """Accumulates indented source lines."""

    def __init__(self, indent_width: int = 4):
        self._indent_unit = " " * indent_width
        self._level = 0
        self._lines: list[str] = []

    def line(self, text: str = "") -> None:
        """Write one line at the current indentation (blank lines stay empty)."""
        if text:
            self._lines.append(f"{self._indent_unit * self._level}{text}")
        else:
            self._lines.append("")

    @contextmanager
    def block(self, opener: str, closer: str = "}") -> Iterator[None]:
        """Write ``opener``, indent everything inside, then ``closer``."""
        self.line(opener)
        self._level += 1
        try:
            yield
        finally:
            self._level -= 1
            self.line(closer)

    @contextmanager
    def indented(self) -> Iterator[None]:
        """Indent one level without writing an opener or closer."""
        self._level += 1
        try:
            yield
        finally:
            self._level -= 1

    def getvalue(self) -> str:
        return "\n".join(self._lines) + "\n"


class Emitter(ABC):
    """Base class for language-specific emitters."""

    #: File extension of emitted sources, including the dot.
    extension: str = ""

    @abstractmethod
    def emit(self, spy: SpyDeclaration) -> str:
        """Render a spy declaration as source text.

        Args:
            spy: The generated declaration.

        Returns:
            Complete source text for one file.
        """
        ...

    def file_name(self, spy: SpyDeclaration) -> str:
        """File name the spy should be written to."""
        return f"{spy.name}{self.extension}"
