"""
pipeline.py - The coverage run, end to end

Steps, each finished before the next starts:
1. locate the project root
2. load configuration from that root
3. check that grcov is installed
4. remove stale raw profiles and the old lcov.info
5. run the instrumented test suite
6. apply the test-failure policy
7. markdown, HTML, then LCOV reports
"""

import logging
from pathlib import Path
from typing import Callable, Optional, Sequence

import click

from .config_utils import (
    CoverConfig,
    ON_FAILURE_ABORT,
    ON_FAILURE_IGNORE,
    default_cargo,
    get_config,
)
from .grcov import GrcovOptions, generate_reports
from .log_utils import resolve_level
from .project import ProjectLayout, find_package_dir
from .runner import ensure_grcov, run_tests
from .workspace import sanitize

log = logging.getLogger(__name__)


def run_pipeline(
    test_args: Sequence[str],
    start_dir: Optional[Path] = None,
    config: Optional[CoverConfig] = None,
    write: Callable[..., None] = click.echo
) -> int:
    """
    Run the tests under coverage and write all reports.

    Args:
        test_args: Arguments forwarded verbatim to `cargo test`
        start_dir: Where to start looking for Cargo.toml (defaults to cwd)
        config: Pre-resolved configuration (loaded from the project root if None)
        write: Sink for the markdown report lines

    Returns:
        Process exit code, per config.on_test_failure

    Raises:
        CoverError: Any unrecoverable step failure
    """
    cargo = config.cargo if config else default_cargo()
    root = find_package_dir(start_dir, cargo=cargo)
    if config is None:
        config = get_config(root)
        logging.getLogger("cargo_cover").setLevel(resolve_level(config.log_level))

    layout = ProjectLayout.from_root(root, config.target_dir, config.html_subdir)
    log.info("Project root: %s", layout.root)

    ensure_grcov(config.grcov)
    sanitize(layout)

    status = run_tests(test_args, layout, cargo=config.cargo, doctests=config.doctests)
    if status != 0:
        if config.on_test_failure == ON_FAILURE_ABORT:
            log.error("cargo test exited with status %d, skipping reports", status)
            return status
        log.warning("cargo test exited with status %d, generating reports anyway", status)

    options = GrcovOptions.from_config(config, layout)
    html_dir, lcov_file = generate_reports(
        config.grcov, options, layout, write=write, color=config.color_flag
    )

    log.info("HTML report: %s", html_dir / "index.html")
    log.info("LCOV report: %s", lcov_file)

    if config.on_test_failure == ON_FAILURE_IGNORE:
        return 0
    return status
