"""SwiftSpy CLI entry point."""

import logging
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel

from swiftspy import __version__

console = Console()


def configure_logging(debug: bool) -> None:
    """Route library logging through rich."""
    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler, RichHandler):
            root.removeHandler(handler)
    root.addHandler(RichHandler(console=console, show_time=False, show_path=False, markup=False))
    root.setLevel(logging.DEBUG if debug else logging.WARNING)


@click.group()
@click.version_option(__version__, prog_name="swiftspy")
def cli() -> None:
    """SwiftSpy - test spies for Swift protocols."""
    pass


@cli.command()
@click.argument("paths", nargs=-1, type=click.Path(exists=True, path_type=Path))
@click.option(
    "--output",
    "-o",
    type=click.Path(file_okay=False, path_type=Path),
    help="Output directory. Defaults to output_directory from the config.",
)
@click.option(
    "--stdout",
    "to_stdout",
    is_flag=True,
    help="Print generated spies instead of writing files.",
)
@click.option(
    "--guard",
    "-g",
    help="Wrap spies in #if GUARD ... #endif (overrides source and config).",
)
@click.option(
    "--project",
    "-p",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Project root directory. Defaults to current directory.",
)
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to swiftspy.yaml config file.",
)
@click.option(
    "--keep-going",
    is_flag=True,
    help="Skip members and files that cannot be generated instead of stopping.",
)
@click.option(
    "--debug",
    is_flag=True,
    help="Enable debug output.",
)
def generate(
    paths: tuple[Path, ...],
    output: Path | None,
    to_stdout: bool,
    guard: str | None,
    project: Path | None,
    config: Path | None,
    keep_going: bool,
    debug: bool,
) -> None:
    """Generate spies for annotated Swift protocols.

    PATHS are .swift files, IR JSON files or directories to scan for
    @Spyable protocols. Defaults to the configured source_paths.
    """
    from swiftspy.config import MemberErrorPolicy, load_config, resolve_paths
    from swiftspy.diagnostics import SwiftSpyError
    from swiftspy.runner import discover_sources, format_summary, run_generation

    configure_logging(debug)
    project_root = project or Path.cwd()

    try:
        cfg = resolve_paths(load_config(config_path=config, project_root=project_root), project_root)
    except Exception as e:
        console.print(f"[red]Error loading config:[/red] {escape(str(e))}")
        raise SystemExit(1)

    if keep_going:
        cfg = cfg.model_copy(
            update={
                "generator": cfg.generator.model_copy(
                    update={"member_errors": MemberErrorPolicy.SKIP}
                )
            }
        )

    if debug:
        console.print(f"[dim]Config: {cfg.model_dump_json(indent=2)}[/dim]\n")

    sources = discover_sources(list(paths) or [Path(p) for p in cfg.source_paths])
    if not sources:
        console.print("[yellow]No @Spyable protocols found[/yellow]")
        raise SystemExit(1)

    output_directory = None if to_stdout else (output or Path(cfg.output_directory))

    try:
        summary = run_generation(sources, cfg, output_directory=output_directory, guard=guard)
    except SwiftSpyError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise SystemExit(1)
    except ValueError as e:
        console.print(f"[red]Invalid input:[/red] {escape(str(e))}")
        raise SystemExit(1)

    if to_stdout:
        for result in summary.results:
            if result.text is not None:
                click.echo(result.text, nl=False)
        if summary.failed:
            raise SystemExit(1)
        return

    output_text = escape(format_summary(summary))
    if summary.failed:
        console.print(Panel(output_text, title="[red]Generation Failed[/red]", border_style="red"))
        raise SystemExit(1)
    if summary.partial:
        console.print(
            Panel(output_text, title="[yellow]Generated With Skips[/yellow]", border_style="yellow")
        )
    else:
        console.print(Panel(output_text, title="[green]Spies Generated[/green]", border_style="green"))


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--project",
    "-p",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Project root directory. Defaults to current directory.",
)
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to swiftspy.yaml config file.",
)
def check(path: Path, project: Path | None, config: Path | None) -> None:
    """Validate a protocol without writing anything.

    PATH is the path to a .swift file or JSON file containing the interface IR.
    Generation settings come from swiftspy.yaml, as for generate.
    """
    from swiftspy.config import load_config
    from swiftspy.generator.orchestrator import SpyGenerator
    from swiftspy.runner import load_interface

    project_root = project or Path.cwd()
    try:
        cfg = load_config(config_path=config, project_root=project_root)
    except Exception as e:
        console.print(f"[red]Error loading config:[/red] {escape(str(e))}")
        raise SystemExit(1)

    try:
        interface = load_interface(path)
        report = SpyGenerator(cfg.generator).generate_report(interface)

        console.print(
            f"[green]✓[/green] Valid: {interface.name} "
            f"({len(interface.members)} members, {len(report.spy.members)} declarations)"
        )
        for failure in report.failures:
            console.print(f"[yellow]![/yellow] Skipped {escape(failure.member)}: {escape(failure.summary)}")
    except Exception as e:
        console.print(f"[red]✗[/red] Invalid: {escape(str(e))}")
        raise SystemExit(1)


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    help="Output file for IR JSON. Defaults to stdout.",
)
@click.option(
    "--pretty/--compact",
    default=True,
    help="Pretty-print JSON output (default: pretty).",
)
def compile(path: Path, output: Path | None, pretty: bool) -> None:
    """Compile a Swift protocol to IR JSON.

    PATH is the path to a .swift file to compile.
    """
    from swiftspy.compiler.parser import parse_file

    try:
        interface = parse_file(path)
    except Exception as e:
        console.print(f"[red]Parse error:[/red] {escape(str(e))}")
        raise SystemExit(1)

    # Convert to JSON
    json_output = interface.model_dump_json(indent=2 if pretty else None)

    if output:
        output.write_text(json_output)
        console.print(f"[green]✓[/green] Compiled to {output}")
    else:
        click.echo(json_output)


@cli.command()
def init() -> None:
    """Initialize SwiftSpy in the current directory.

    Creates:
    - swiftspy.yaml
    """
    project_root = Path.cwd()

    config_file = project_root / "swiftspy.yaml"
    if not config_file.exists():
        config_file.write_text(
            """\
# SwiftSpy configuration
version: "0.1"

generator:
  # Overloads that derive the same variable prefix: disambiguate | keep
  #   disambiguate: append parameter (then return) type names (default)
  #   keep: keep the colliding names and warn
  overloads: disambiguate

  # A member that cannot be generated: fail | skip
  member_errors: fail

  # Wrap spies in #if GUARD ... #endif unless the protocol names a flag
  # guard: DEBUG

emitter:
  # Spaces per indentation level
  indent_width: 4

  # Declare spies as `final class`
  # final_class: false

  # Comment line placed above each spy
  # header: "Generated by swiftspy. Do not edit."

# Directories searched for @Spyable protocols
# source_paths:
#   - Sources

# Directory generated spies are written to
# output_directory: Generated
"""
        )
        console.print(f"[green]✓[/green] Created {config_file.name}")
    else:
        console.print(f"[yellow]-[/yellow] {config_file.name} already exists")

    console.print("\n[dim]SwiftSpy initialized. Annotate protocols with @Spyable[/dim]")


@cli.command()
@click.option(
    "--project",
    "-p",
    type=click.Path(exists=True, path_type=Path),
    help="Project root directory. Defaults to current directory.",
)
def config(project: Path | None) -> None:
    """Show the current configuration."""
    from swiftspy.config import load_config

    project_root = project or Path.cwd()
    cfg = load_config(project_root=project_root)

    console.print(Panel(cfg.model_dump_json(indent=2), title="SwiftSpy Config"))


if __name__ == "__main__":
    cli()
