"""
grcov.py - Drive grcov to produce the markdown, HTML and LCOV reports

All three invocations are generated from one GrcovOptions so they always
share the same inputs and filters. LCOV is written last so tools watching
lcov.info only ever see output from a finished run.
"""

import enum
import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

import click

from .colorize import colorize_lines
from .config_utils import CoverConfig
from .errors import ConfigurationError, filesystem_error, launch_error, report_failed_error
from .project import ProjectLayout

log = logging.getLogger(__name__)

# Region between a test module attribute and the next closing brace at
# column 0, i.e. the usual `#[cfg(test)] mod tests { ... }` block.
TEST_MODULE_START = r"#\[cfg\(test\)\]"
TEST_MODULE_STOP = r"^\}"


class ReportFormat(enum.Enum):
    MARKDOWN = "markdown"
    HTML = "html"
    LCOV = "lcov"

    @property
    def needs_output(self) -> bool:
        return self is not ReportFormat.MARKDOWN


@dataclass(frozen=True)
class GrcovOptions:
    """Inputs and filters shared by every grcov invocation"""
    binary_path: Path
    scan_root: str = "."
    source_dir: str = "."
    branch: bool = True
    ignore_not_existing: bool = True
    ignore: Tuple[str, ...] = ("../*", "/*")
    excl_start: Optional[str] = None
    excl_stop: Optional[str] = None

    @classmethod
    def from_config(cls, config: CoverConfig, layout: ProjectLayout) -> "GrcovOptions":
        exclude = config.exclude_test_modules
        return cls(
            binary_path=layout.deps_dir,
            branch=config.branch,
            ignore=tuple(config.ignore),
            excl_start=TEST_MODULE_START if exclude else None,
            excl_stop=TEST_MODULE_STOP if exclude else None,
        )

    def validate(self) -> None:
        if not self.scan_root:
            raise ConfigurationError(
                message="grcov scan root cannot be empty",
                suggestion="Use '.' to scan the whole project",
            )
        if bool(self.excl_start) != bool(self.excl_stop):
            raise ConfigurationError(
                message="Exclusion markers must be given as a start/stop pair",
                context={"excl_start": self.excl_start, "excl_stop": self.excl_stop},
            )

    def args(self, fmt: ReportFormat, output: Optional[Path] = None) -> List[str]:
        """Full grcov argument list (without the program name) for one report"""
        self.validate()
        if fmt.needs_output and output is None:
            raise ConfigurationError(
                message=f"The {fmt.value} report needs an output path",
                context={"format": fmt.value},
            )

        args = [
            self.scan_root,
            "--binary-path", str(self.binary_path),
            "-s", self.source_dir,
        ]
        if self.branch:
            args.append("--branch")
        if self.ignore_not_existing:
            args.append("--ignore-not-existing")
        for pattern in self.ignore:
            args.extend(["--ignore", pattern])
        if self.excl_start:
            args.extend(["--excl-start", self.excl_start, "--excl-stop", self.excl_stop])

        args.extend(["-t", fmt.value])
        if output is not None:
            args.extend(["-o", str(output)])
        return args


def _check(fmt: ReportFormat, cmd: Sequence[str], returncode: int) -> None:
    if returncode != 0:
        raise report_failed_error(fmt.value, cmd, returncode)


def _make_dir(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise filesystem_error("create directory", path, e) from e


def run_markdown(
    grcov: str,
    options: GrcovOptions,
    cwd: Path,
    write: Callable[..., None] = click.echo,
    color: Optional[bool] = None
) -> None:
    """
    Stream the markdown summary to stdout with colored percentages.

    Source paths are not guaranteed to be UTF-8; undecodable bytes are
    shown as U+FFFD rather than aborting the remaining reports.
    """
    cmd = [grcov, *options.args(ReportFormat.MARKDOWN)]
    log.debug("$ %s", " ".join(cmd))
    try:
        proc = subprocess.Popen(
            cmd, cwd=str(cwd), stdout=subprocess.PIPE, encoding="utf-8", errors="replace"
        )
    except OSError as e:
        raise launch_error(cmd, e) from e

    with proc:
        for line in colorize_lines(proc.stdout):
            write(line, color=color)
    _check(ReportFormat.MARKDOWN, cmd, proc.returncode)


def run_html(grcov: str, options: GrcovOptions, layout: ProjectLayout) -> Path:
    _make_dir(layout.html_dir)
    _run(grcov, options, ReportFormat.HTML, layout.html_dir, layout.root)
    return layout.html_dir


def run_lcov(grcov: str, options: GrcovOptions, layout: ProjectLayout) -> Path:
    _make_dir(layout.lcov_file.parent)
    _run(grcov, options, ReportFormat.LCOV, layout.lcov_file, layout.root)
    return layout.lcov_file


def _run(grcov: str, options: GrcovOptions, fmt: ReportFormat, output: Path, cwd: Path) -> None:
    cmd = [grcov, *options.args(fmt, output)]
    log.debug("$ %s", " ".join(cmd))
    try:
        result = subprocess.run(cmd, cwd=str(cwd))
    except OSError as e:
        raise launch_error(cmd, e) from e
    _check(fmt, cmd, result.returncode)


def generate_reports(
    grcov: str,
    options: GrcovOptions,
    layout: ProjectLayout,
    write: Callable[..., None] = click.echo,
    color: Optional[bool] = None
) -> List[Path]:
    """
    Produce the markdown, HTML and LCOV reports, in that order.

    Args:
        grcov: grcov executable
        options: Shared inputs and filters
        layout: Resolved project paths (grcov runs from layout.root)
        write: Sink for markdown lines (click.echo compatible)
        color: Force color on/off; None lets click decide

    Returns:
        The HTML directory and the LCOV file

    Raises:
        SubprocessExitError: If any grcov run fails; later formats are skipped
    """
    options.validate()

    log.info("Generating markdown summary...")
    run_markdown(grcov, options, layout.root, write=write, color=color)

    log.info("Generating HTML report...")
    html_dir = run_html(grcov, options, layout)

    log.info("Generating LCOV report...")
    lcov_file = run_lcov(grcov, options, layout)

    return [html_dir, lcov_file]
