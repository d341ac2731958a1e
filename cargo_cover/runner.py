"""
runner.py - Run `cargo test` with LLVM coverage instrumentation

Environment overrides applied to the test process:
    CARGO_INCREMENTAL=0              full rebuild so every crate is instrumented
    RUSTFLAGS=-Cinstrument-coverage  emit coverage counters
    LLVM_PROFILE_FILE=<template>     where each test binary writes its profile
    RUSTDOCFLAGS=...                 same flag for doctests (optional)
"""

import logging
import os
import subprocess
from pathlib import Path
from typing import Dict, Mapping, Optional, Sequence

from .errors import grcov_missing_error, launch_error
from .project import PROFRAW_SUFFIX, ProjectLayout

log = logging.getLogger(__name__)

INSTRUMENT_FLAG = "-Cinstrument-coverage"

# %p: process id, %m: binary signature. Both are expanded by the LLVM
# profiling runtime, so parallel test binaries never share a file.
PROFILE_PATTERN = "cargo-test-%p-%m" + PROFRAW_SUFFIX


def ensure_grcov(grcov: str = "grcov") -> None:
    """
    Check that grcov can be launched.

    Only a failure to start the process counts; the help output and exit
    status are ignored.

    Raises:
        ToolMissingError: If grcov is not installed
    """
    try:
        subprocess.run([grcov, "-h"], capture_output=True)
    except OSError as e:
        raise grcov_missing_error(grcov, cause=e) from e


def profile_template(coverage_dir: Path) -> str:
    """LLVM_PROFILE_FILE value for raw profiles inside coverage_dir"""
    return str(Path(coverage_dir) / PROFILE_PATTERN)


def instrumented_env(
    coverage_dir: Path,
    doctests: bool = False,
    base: Optional[Mapping[str, str]] = None
) -> Dict[str, str]:
    """Copy of base (default: os.environ) with coverage instrumentation enabled"""
    env = dict(os.environ if base is None else base)
    env["CARGO_INCREMENTAL"] = "0"
    env["RUSTFLAGS"] = INSTRUMENT_FLAG
    env["LLVM_PROFILE_FILE"] = profile_template(coverage_dir)
    if doctests:
        env["RUSTDOCFLAGS"] = INSTRUMENT_FLAG
    return env


def run_tests(
    test_args: Sequence[str],
    layout: ProjectLayout,
    cargo: str = "cargo",
    doctests: bool = False
) -> int:
    """
    Run the instrumented test suite and wait for it.

    Args:
        test_args: Arguments forwarded verbatim to `cargo test`
        layout: Resolved project paths
        cargo: cargo executable
        doctests: Instrument doctests as well

    Returns:
        Exit status of `cargo test`

    Raises:
        SubprocessLaunchError: If cargo cannot be started
    """
    cmd = [cargo, "test", *test_args]
    env = instrumented_env(layout.coverage_dir, doctests=doctests)

    log.info("Running tests with coverage instrumentation...")
    log.debug("$ LLVM_PROFILE_FILE=%s %s", env["LLVM_PROFILE_FILE"], " ".join(cmd))
    try:
        result = subprocess.run(cmd, cwd=str(layout.root), env=env)
    except OSError as e:
        raise launch_error(cmd, e) from e

    return result.returncode
