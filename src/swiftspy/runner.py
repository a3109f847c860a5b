"""Generation runner - load interfaces, generate spies, write Swift files."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from swiftspy.compiler.ir import InterfaceSpecification
from swiftspy.config import MemberErrorPolicy, SwiftSpyConfig
from swiftspy.diagnostics import GenerationError, SwiftSpyError
from swiftspy.emitters.swift import SwiftEmitter
from swiftspy.generator.orchestrator import GenerationReport, SpyGenerator

logger = logging.getLogger(__name__)

# Files are picked up from source directories only when they carry this attribute
SPYABLE_MARKER = "@Spyable"


def load_interface(path: Path) -> InterfaceSpecification:
    """Load an interface from Swift source or IR JSON."""
    if path.suffix == ".swift":
        from swiftspy.compiler.parser import parse_file

        return parse_file(path)

    with open(path) as f:
        data = json.load(f)
    return InterfaceSpecification.model_validate(data)


def discover_sources(paths: list[Path]) -> list[Path]:
    """Expand directories into the annotated Swift files inside them.

    Explicit file paths are kept as given.
    """
    found: list[Path] = []
    for path in paths:
        if path.is_dir():
            for candidate in sorted(path.rglob("*.swift")):
                if SPYABLE_MARKER in candidate.read_text():
                    found.append(candidate)
        elif path.exists():
            found.append(path)
        else:
            logger.warning("Source path %s does not exist", path)
    return found


@dataclass
class SpyResult:
    """Outcome of generating the spy for one input file."""

    source: Path
    report: GenerationReport | None = None
    text: str | None = None
    output: Path | None = None
    error: SwiftSpyError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.report is not None and self.report.ok


@dataclass
class RunSummary:
    """All results of one generation run."""

    results: list[SpyResult] = field(default_factory=list)

    @property
    def failed(self) -> list[SpyResult]:
        return [r for r in self.results if r.error is not None]

    @property
    def partial(self) -> list[SpyResult]:
        return [r for r in self.results if r.report is not None and not r.report.ok]


def generate_source(
    interface: InterfaceSpecification,
    config: SwiftSpyConfig | None = None,
    guard: str | None = None,
) -> tuple[GenerationReport, str]:
    """Generate and emit the spy for one interface.

    Returns:
        The generation report and the emitted Swift source.
    """
    config = config or SwiftSpyConfig()
    report = SpyGenerator(config.generator).generate_report(interface, guard)
    text = SwiftEmitter(config.emitter).emit(report.spy)
    return report, text


def run_generation(
    sources: list[Path],
    config: SwiftSpyConfig,
    output_directory: Path | None = None,
    guard: str | None = None,
) -> RunSummary:
    """Generate spies for every source file.

    Args:
        sources: Swift or IR JSON files.
        config: Loaded configuration.
        output_directory: Where to write ``<Name>Spy.swift`` files. If None,
            nothing is written and the text is kept on the results.
        guard: Conditional-compilation flag overriding source and config.

    Raises:
        SwiftSpyError: For the first failing file, unless the member error
            policy is SKIP.
    """
    keep_going = config.generator.member_errors == MemberErrorPolicy.SKIP
    emitter = SwiftEmitter(config.emitter)
    summary = RunSummary()

    for source in sources:
        result = SpyResult(source=source)
        summary.results.append(result)
        try:
            interface = load_interface(source)
            result.report, result.text = generate_source(interface, config, guard)
        except (SwiftSpyError, ValueError) as e:
            if not keep_going:
                raise
            # pydantic ValidationError is a ValueError
            result.error = e if isinstance(e, SwiftSpyError) else SwiftSpyError(str(e))
            logger.warning("Skipping %s: %s", source, e)
            continue

        if output_directory is not None:
            output_directory.mkdir(parents=True, exist_ok=True)
            result.output = output_directory / emitter.file_name(result.report.spy)
            result.output.write_text(result.text)
            logger.info("Wrote %s", result.output)

    return summary


def format_summary(summary: RunSummary) -> str:
    """Format run results for display."""
    lines = []

    for result in summary.results:
        if result.error is not None:
            lines.append(f"✗ {result.source}")
            lines.append(f"    {result.error}")
            continue

        assert result.report is not None
        spy = result.report.spy
        destination = f" -> {result.output}" if result.output else ""
        icon = "✓" if result.report.ok else "!"
        lines.append(f"{icon} {spy.name} ({len(spy.members)} declarations){destination}")
        for failure in result.report.failures:
            lines.append(f"    skipped {failure.member}: {_first_line(failure)}")

    total = len(summary.results)
    failed = len(summary.failed)
    lines.append("")
    lines.append(f"Summary: {total - failed} generated, {failed} failed, {len(summary.partial)} partial")

    return "\n".join(lines)


def _first_line(error: GenerationError) -> str:
    return error.summary.splitlines()[0] if error.summary else str(error)
