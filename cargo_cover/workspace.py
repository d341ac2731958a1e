"""
workspace.py - Clear instrumentation artifacts left by a previous run

Every test binary writes its own .profraw file, so stale profiles from an
earlier run would be merged into this run's numbers unless removed first.
"""

import logging
from pathlib import Path
from typing import List

from .errors import filesystem_error
from .project import PROFRAW_SUFFIX, ProjectLayout

log = logging.getLogger(__name__)


def clean_profiles(coverage_dir: Path) -> List[Path]:
    """
    Delete raw profile files directly inside coverage_dir.

    Subdirectories and files with other suffixes are left alone. A missing
    directory is not an error.

    Returns:
        The paths that were removed
    """
    coverage_dir = Path(coverage_dir)
    if not coverage_dir.exists():
        log.debug("No coverage directory at %s, nothing to clean", coverage_dir)
        return []

    removed = []
    try:
        entries = list(coverage_dir.iterdir())
    except OSError as e:
        raise filesystem_error("read directory", coverage_dir, e) from e

    for path in entries:
        if path.suffix != PROFRAW_SUFFIX or not path.is_file():
            continue
        try:
            path.unlink()
        except OSError as e:
            raise filesystem_error("delete raw profile", path, e) from e
        removed.append(path)

    return removed


def remove_stale_lcov(lcov_file: Path) -> bool:
    """Best-effort removal of the previous LCOV report"""
    try:
        Path(lcov_file).unlink()
    except FileNotFoundError:
        return False
    except OSError as e:
        log.debug("Could not remove %s: %s", lcov_file, e)
        return False
    return True


def sanitize(layout: ProjectLayout) -> List[Path]:
    """Prepare a clean coverage directory for a fresh test run"""
    removed = clean_profiles(layout.coverage_dir)
    if removed:
        log.info("Removed %d stale raw profile(s) from %s", len(removed), layout.coverage_dir)

    if remove_stale_lcov(layout.lcov_file):
        log.debug("Removed previous %s", layout.lcov_file)

    try:
        layout.coverage_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise filesystem_error("create directory", layout.coverage_dir, e) from e

    return removed
