# cargo_cover/tests/test_grcov.py
"""
Tests for grcov.py
"""
import json
import sys
from pathlib import Path
from unittest import mock

import click
import pytest

from cargo_cover.config_utils import CoverConfig
from cargo_cover.errors import ConfigurationError, SubprocessExitError, SubprocessLaunchError
from cargo_cover.grcov import (
    TEST_MODULE_START,
    TEST_MODULE_STOP,
    GrcovOptions,
    ReportFormat,
    generate_reports,
    run_markdown,
)
from cargo_cover.project import ProjectLayout


DEPS = Path("/work/demo/target/debug/deps")


class TestGrcovOptions:
    """Tests for GrcovOptions.args"""

    def test_markdown_args(self):
        args = GrcovOptions(binary_path=DEPS).args(ReportFormat.MARKDOWN)
        assert args == [
            ".",
            "--binary-path", str(DEPS),
            "-s", ".",
            "--branch",
            "--ignore-not-existing",
            "--ignore", "../*",
            "--ignore", "/*",
            "-t", "markdown",
        ]

    def test_html_and_lcov_share_filters(self):
        options = GrcovOptions(binary_path=DEPS)
        html = options.args(ReportFormat.HTML, Path("/out/html"))
        lcov = options.args(ReportFormat.LCOV, Path("/out/lcov.info"))
        assert html[:-4] == lcov[:-4] == options.args(ReportFormat.MARKDOWN)[:-2]
        assert html[-4:] == ["-t", "html", "-o", "/out/html"]
        assert lcov[-4:] == ["-t", "lcov", "-o", "/out/lcov.info"]

    def test_output_required_for_files(self):
        options = GrcovOptions(binary_path=DEPS)
        with pytest.raises(ConfigurationError):
            options.args(ReportFormat.LCOV)
        with pytest.raises(ConfigurationError):
            options.args(ReportFormat.HTML)

    def test_branch_off(self):
        args = GrcovOptions(binary_path=DEPS, branch=False).args(ReportFormat.MARKDOWN)
        assert "--branch" not in args

    def test_exclusion_markers(self):
        options = GrcovOptions(binary_path=DEPS, excl_start="START", excl_stop="STOP")
        args = options.args(ReportFormat.MARKDOWN)
        i = args.index("--excl-start")
        assert args[i:i + 4] == ["--excl-start", "START", "--excl-stop", "STOP"]

    def test_unpaired_marker_rejected(self):
        with pytest.raises(ConfigurationError):
            GrcovOptions(binary_path=DEPS, excl_start="START").validate()

    def test_empty_scan_root_rejected(self):
        with pytest.raises(ConfigurationError):
            GrcovOptions(binary_path=DEPS, scan_root="").validate()

    def test_from_config(self):
        layout = ProjectLayout.from_root(Path("/work/demo"))
        config = CoverConfig(branch=False, ignore=["vendor/*"], exclude_test_modules=True)
        options = GrcovOptions.from_config(config, layout)
        assert options.binary_path == DEPS
        assert options.branch is False
        assert options.ignore == ("vendor/*",)
        assert options.excl_start == TEST_MODULE_START
        assert options.excl_stop == TEST_MODULE_STOP

    def test_from_config_without_exclusion(self):
        layout = ProjectLayout.from_root(Path("/work/demo"))
        options = GrcovOptions.from_config(CoverConfig(), layout)
        assert options.excl_start is None
        assert options.excl_stop is None


class TestGenerateReports:
    """Ordering and failure handling, with the per-format runners mocked"""

    @pytest.fixture
    def runners(self, mocker):
        parent = mock.Mock()
        mocker.patch("cargo_cover.grcov.run_markdown", parent.markdown)
        mocker.patch("cargo_cover.grcov.run_html", parent.html)
        mocker.patch("cargo_cover.grcov.run_lcov", parent.lcov)
        return parent

    def test_order_is_markdown_html_lcov(self, runners, tmp_path):
        layout = ProjectLayout.from_root(tmp_path)
        generate_reports("grcov", GrcovOptions(binary_path=layout.deps_dir), layout)
        assert [c[0] for c in runners.mock_calls] == ["markdown", "html", "lcov"]

    def test_failure_aborts_remaining_formats(self, runners, tmp_path):
        runners.html.side_effect = SubprocessExitError("boom", returncode=3)
        layout = ProjectLayout.from_root(tmp_path)
        with pytest.raises(SubprocessExitError):
            generate_reports("grcov", GrcovOptions(binary_path=layout.deps_dir), layout)
        runners.lcov.assert_not_called()


class TestWithFakeGrcov:
    """Runs against the fake grcov executable"""

    def test_markdown_stream_is_colorized(self, fake_tools, cargo_project):
        _, grcov = fake_tools
        lines = []
        options = GrcovOptions(binary_path=cargo_project / "target" / "debug" / "deps")

        run_markdown(str(grcov), options, cargo_project, write=lambda line, color=None: lines.append(line))

        assert lines[2] == "| src/lib.rs | " + click.style("95.50%", fg="green", bold=True) + " | 191 / 200 | 10-18 |"
        assert lines[-1] == "Total coverage: " + click.style("87.42%", fg="yellow", bold=True)
        assert not any(line.endswith("\n") for line in lines)

    def test_all_reports_written(self, fake_tools, cargo_project, tool_logs):
        _, grcov = fake_tools
        _, grcov_log = tool_logs
        layout = ProjectLayout.from_root(cargo_project)
        options = GrcovOptions(binary_path=layout.deps_dir)

        html_dir, lcov_file = generate_reports(str(grcov), options, layout, write=lambda *a, **k: None)

        assert (html_dir / "index.html").is_file()
        assert lcov_file.read_text().startswith("TN:")
        calls = [json.loads(line) for line in grcov_log.read_text().splitlines()]
        formats = [c["args"][c["args"].index("-t") + 1] for c in calls]
        assert formats == ["markdown", "html", "lcov"]
        assert all(Path(c["cwd"]).resolve() == cargo_project.resolve() for c in calls)

    def test_failed_report_raises_with_status(self, fake_tools, cargo_project, monkeypatch):
        _, grcov = fake_tools
        monkeypatch.setenv("FAKE_GRCOV_FAIL", "markdown")
        layout = ProjectLayout.from_root(cargo_project)
        with pytest.raises(SubprocessExitError) as exc:
            generate_reports(str(grcov), GrcovOptions(binary_path=layout.deps_dir), layout,
                             write=lambda *a, **k: None)
        assert exc.value.exit_code == 3
        assert not layout.html_dir.exists()
        assert not layout.lcov_file.exists()

    def test_missing_grcov_binary(self, cargo_project):
        layout = ProjectLayout.from_root(cargo_project)
        with pytest.raises(SubprocessLaunchError):
            run_markdown(str(cargo_project / "no-grcov"), GrcovOptions(binary_path=layout.deps_dir),
                         cargo_project)

    def test_undecodable_source_path_is_replaced(self, tmp_path, cargo_project):
        if sys.platform == "win32":
            pytest.skip("shebang script")
        grcov = tmp_path / "latin1-grcov"
        grcov.write_text(
            f"#!{sys.executable}\n"
            "import sys\n"
            "sys.stdout.buffer.write(b'| src/caf\\xe9.rs | 80% |\\n')\n"
        )
        grcov.chmod(0o755)
        lines = []

        run_markdown(str(grcov), GrcovOptions(binary_path=cargo_project / "target" / "debug" / "deps"),
                     cargo_project, write=lambda line, color=None: lines.append(line))

        assert lines == ["| src/caf\ufffd.rs | " + click.style("80%", fg="yellow", bold=True) + " |"]
