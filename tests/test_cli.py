"""Tests for the swiftspy command line."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from swiftspy import __version__
from swiftspy.cli.main import cli
from swiftspy.config import MemberErrorPolicy, load_config

BROKEN_MEMBER = """\
@Spyable
protocol Tracker {
    func ping()
    func track(invocations: Int)
}
"""

REPEATED_OVERLOAD = """\
protocol Loader {
    func load(id: Int) -> String
    func load(id: Int) -> String
}
"""


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def project(runner, tmp_path, fetch_protocol):
    """An isolated project directory with one annotated protocol under Sources/."""
    with runner.isolated_filesystem(temp_dir=tmp_path) as root:
        sources = Path(root) / "Sources"
        sources.mkdir()
        (sources / "Service.swift").write_text(fetch_protocol)
        (sources / "Plain.swift").write_text("protocol Plain {}\n")
        yield Path(root)


def test_version(runner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


class TestGenerate:
    def test_writes_spies_from_configured_sources(self, runner, project):
        result = runner.invoke(cli, ["generate"])

        assert result.exit_code == 0, result.output
        assert "Spies Generated" in result.output
        text = (project / "Generated" / "ServiceSpy.swift").read_text()
        assert text.startswith("#if DEBUG\nclass ServiceSpy: Service {\n")
        assert "var fetchIdReturnValue: String!" in text
        # Files without @Spyable are not picked up from directories
        assert not (project / "Generated" / "PlainSpy.swift").exists()

    def test_output_option(self, runner, project):
        result = runner.invoke(cli, ["generate", "Sources/Service.swift", "-o", "Mocks"])
        assert result.exit_code == 0, result.output
        assert (project / "Mocks" / "ServiceSpy.swift").exists()

    def test_stdout(self, runner, project):
        result = runner.invoke(cli, ["generate", "Sources/Service.swift", "--stdout"])

        assert result.exit_code == 0, result.output
        assert "func fetch(id: Int) -> String {" in result.output
        assert not (project / "Generated").exists()

    def test_guard_option_overrides_source(self, runner, project):
        result = runner.invoke(cli, ["generate", "Sources/Service.swift", "--stdout", "-g", "TESTING"])
        assert result.output.startswith("#if TESTING\n")

    def test_config_file_is_applied(self, runner, project):
        (project / "swiftspy.yaml").write_text('emitter:\n  final_class: true\n  header: "Generated"\n')
        result = runner.invoke(cli, ["generate", "Sources/Service.swift", "--stdout"])
        assert result.output.startswith("// Generated\n#if DEBUG\nfinal class ServiceSpy")

    def test_member_error_fails(self, runner, project):
        (project / "Tracker.swift").write_text(BROKEN_MEMBER)
        result = runner.invoke(cli, ["generate", "Tracker.swift"])

        assert result.exit_code == 1
        assert "trackInvocationsReceivedInvocations" in result.output
        assert not (project / "Generated").exists()

    def test_keep_going_skips_member(self, runner, project):
        (project / "Tracker.swift").write_text(BROKEN_MEMBER)
        result = runner.invoke(cli, ["generate", "Tracker.swift", "--keep-going"])

        assert result.exit_code == 0, result.output
        assert "Generated With Skips" in result.output
        assert "skipped func track(invocations:)" in result.output
        text = (project / "Generated" / "TrackerSpy.swift").read_text()
        assert "pingCallsCount" in text
        assert "trackInvocations" not in text

    def test_keep_going_reports_unparseable_file(self, runner, project):
        (project / "Broken.swift").write_text("@Spyable\nprotocol Broken {\n    static func make()\n}\n")
        result = runner.invoke(
            cli, ["generate", "Broken.swift", "Sources/Service.swift", "--keep-going"]
        )

        assert result.exit_code == 1
        assert "Generation Failed" in result.output
        assert (project / "Generated" / "ServiceSpy.swift").exists()

    def test_no_sources(self, runner, tmp_path):
        with runner.isolated_filesystem(temp_dir=tmp_path):
            result = runner.invoke(cli, ["generate"])
        assert result.exit_code == 1
        assert "No @Spyable protocols found" in result.output


class TestCheck:
    def test_valid(self, runner, project):
        result = runner.invoke(cli, ["check", "Sources/Service.swift"])
        assert result.exit_code == 0
        assert "Valid: Service (3 members" in result.output

    def test_invalid(self, runner, project):
        (project / "Tracker.swift").write_text(BROKEN_MEMBER)
        result = runner.invoke(cli, ["check", "Tracker.swift"])
        assert result.exit_code == 1
        assert "Invalid" in result.output

    def test_uses_project_config(self, runner, project):
        (project / "Loader.swift").write_text(REPEATED_OVERLOAD)
        assert runner.invoke(cli, ["check", "Loader.swift"]).exit_code == 1

        (project / "swiftspy.yaml").write_text("generator:\n  overloads: keep\n")
        result = runner.invoke(cli, ["check", "Loader.swift"])
        assert result.exit_code == 0, result.output
        assert "Valid: Loader" in result.output
        generated = runner.invoke(cli, ["generate", "Loader.swift", "--stdout"])
        assert generated.exit_code == 0

    def test_explicit_config_reports_skipped_members(self, runner, project):
        (project / "Tracker.swift").write_text(BROKEN_MEMBER)
        (project / "lenient.yaml").write_text("generator:\n  member_errors: skip\n")
        result = runner.invoke(cli, ["check", "Tracker.swift", "-c", "lenient.yaml"])
        assert result.exit_code == 0, result.output
        assert "Skipped func track(invocations:)" in result.output


class TestCompile:
    def test_to_stdout(self, runner, project):
        result = runner.invoke(cli, ["compile", "Sources/Service.swift", "--compact"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["name"] == "Service"
        assert data["guard"] == "DEBUG"
        assert [m["kind"] for m in data["members"]] == ["property", "function", "function"]

    def test_ir_json_round_trips_through_generate(self, runner, project):
        result = runner.invoke(cli, ["compile", "Sources/Service.swift", "-o", "service.json"])
        assert result.exit_code == 0
        assert "Compiled to service.json" in result.output

        from_json = runner.invoke(cli, ["generate", "service.json", "--stdout"])
        from_swift = runner.invoke(cli, ["generate", "Sources/Service.swift", "--stdout"])
        assert from_json.output == from_swift.output

    def test_parse_error(self, runner, project):
        (project / "Bad.swift").write_text("struct Bad {}\n")
        result = runner.invoke(cli, ["compile", "Bad.swift"])
        assert result.exit_code == 1
        assert "Parse error" in result.output


class TestInit:
    def test_creates_loadable_config(self, runner, tmp_path):
        with runner.isolated_filesystem(temp_dir=tmp_path) as root:
            result = runner.invoke(cli, ["init"])
            assert result.exit_code == 0
            assert "Created swiftspy.yaml" in result.output

            config = load_config(project_root=Path(root))
            assert config.generator.member_errors == MemberErrorPolicy.FAIL

            again = runner.invoke(cli, ["init"])
            assert "already exists" in again.output


def test_config_command(runner, project):
    (project / "swiftspy.yaml").write_text("output_directory: Mocks\n")
    result = runner.invoke(cli, ["config"])
    assert result.exit_code == 0
    assert "SwiftSpy Config" in result.output
    assert "Mocks" in result.output
