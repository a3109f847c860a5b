"""Diagnostics and error reporting for SwiftSpy.

Provides detailed error messages with actionable suggestions.
"""

from dataclasses import dataclass, field


@dataclass
class Check:
    """Record of a single validation check performed on a member."""

    subject: str  # What was checked (member, parameter, name, ...)
    passed: bool  # Whether the check passed
    reason: str | None = None  # Why it failed (if not passed)


@dataclass
class DiagnosticContext:
    """Accumulated context while generating one member."""

    member: str  # Human-readable description of the member
    checks: list[Check] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)

    def add_check(self, subject: str, passed: bool, reason: str | None = None) -> None:
        """Record a check."""
        self.checks.append(Check(subject, passed, reason))

    def add_suggestion(self, suggestion: str) -> None:
        """Add a suggested fix."""
        self.suggestions.append(suggestion)

    def format_error(self, summary: str) -> str:
        """Format a detailed error message.

        Args:
            summary: The main error message.

        Returns:
            Formatted error with check history and suggestions.
        """
        lines = [summary]

        if self.checks:
            lines.append("")
            lines.append("Checked:")
            for check in self.checks:
                icon = "✓" if check.passed else "✗"
                line = f"  {icon} {check.subject}"
                if check.reason:
                    line += f" ({check.reason})"
                lines.append(line)

        if self.suggestions:
            lines.append("")
            lines.append("Suggestions:")
            for i, suggestion in enumerate(self.suggestions, 1):
                lines.append(f"  {i}. {suggestion}")

        return "\n".join(lines)


class SwiftSpyError(Exception):
    """Base class for all SwiftSpy errors."""


class ParseError(SwiftSpyError):
    """Raised when Swift source is outside the accepted protocol subset."""

    def __init__(self, message: str, line: int | None = None, column: int | None = None):
        self.line = line
        self.column = column
        if line is not None:
            message = f"{message} (line {line}, column {column})"
        super().__init__(message)


class GenerationError(SwiftSpyError):
    """Raised when a member cannot be turned into spy declarations.

    Includes diagnostic context about the checks that were performed.
    """

    def __init__(self, message: str, member: str, context: DiagnosticContext | None = None):
        self.member = member
        self.summary = message
        self.context = context
        if context:
            message = context.format_error(message)
        super().__init__(message)


def describe_member(member: object) -> str:
    """Short human-readable description of an IR member for messages."""
    kind = getattr(member, "kind", type(member).__name__)
    name = getattr(member, "name", None)
    if kind == "subscript":
        labels = ", ".join(p.internal_name for p in getattr(member, "parameters", ()))
        return f"subscript({labels})"
    if kind == "function":
        labels = "".join(f"{p.label or '_'}:" for p in getattr(member, "parameters", ()))
        return f"func {name}({labels})"
    return f"{kind} {name}"
