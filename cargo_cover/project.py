"""
project.py - Locate the cargo project and the paths derived from it

The root is found by asking cargo itself (`cargo locate-project`), run from
an explicit starting directory so the process cwd is never changed.
"""

import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .errors import launch_error, project_not_found_error

log = logging.getLogger(__name__)

COVERAGE_SUBDIR = "coverage"
OUTPUT_SUBDIR = "output"
DEPS_SUBDIR = Path("debug") / "deps"
LCOV_NAME = "lcov.info"
PROFRAW_SUFFIX = ".profraw"


@dataclass(frozen=True)
class ProjectLayout:
    """Every path the pipeline touches, resolved once from the project root"""
    root: Path
    deps_dir: Path
    coverage_dir: Path
    output_dir: Path
    html_dir: Path
    lcov_file: Path

    @classmethod
    def from_root(cls, root: Path, target_dir: str = "target", html_subdir: str = "html") -> "ProjectLayout":
        root = Path(root)
        target = root / target_dir
        coverage_dir = target / COVERAGE_SUBDIR
        output_dir = coverage_dir / OUTPUT_SUBDIR
        return cls(
            root=root,
            deps_dir=target / DEPS_SUBDIR,
            coverage_dir=coverage_dir,
            output_dir=output_dir,
            html_dir=output_dir / html_subdir if html_subdir else output_dir,
            lcov_file=output_dir / LCOV_NAME,
        )


def find_package_dir(
    start_dir: Optional[Path] = None,
    cargo: str = "cargo",
    workspace: bool = False
) -> Path:
    """
    Find the directory containing the package's Cargo.toml.

    Args:
        start_dir: Directory to search from (defaults to cwd)
        cargo: cargo executable
        workspace: Locate the workspace root instead of the member package

    Returns:
        Absolute path to the directory holding Cargo.toml

    Raises:
        SubprocessLaunchError: If cargo cannot be started
        ProjectNotFoundError: If cargo finds no manifest
    """
    start = Path(start_dir) if start_dir else Path.cwd()
    cmd = [cargo, "locate-project", "--message-format", "plain"]
    if workspace:
        cmd.append("--workspace")

    log.debug("$ %s", " ".join(cmd))
    try:
        result = subprocess.run(cmd, cwd=str(start), capture_output=True)
    except OSError as e:
        raise launch_error(cmd, e) from e

    stderr = os.fsdecode(result.stderr or b"")
    if result.returncode != 0:
        raise project_not_found_error(start, stderr, result.returncode)

    # Plain format is a single line: the manifest path plus a newline.
    # fsdecode keeps non-UTF-8 path bytes intact.
    manifest = os.fsdecode(result.stdout or b"").rstrip("\r\n")
    if not manifest:
        raise project_not_found_error(start, stderr)

    package_root = Path(manifest).parent
    if not package_root.is_absolute():
        package_root = (start / package_root).resolve()

    log.debug("Found project root at %s", package_root)
    return package_root
