# cargo_cover/tests/conftest.py
"""
Pytest configuration and shared fixtures for cargo-cover tests
"""
import logging
import stat
import sys
from pathlib import Path

import pytest

from cargo_cover.config_utils import CoverConfig


FAKE_CARGO = '''#!{python}
import json
import os
import sys
from pathlib import Path

args = sys.argv[1:]

if args[:1] == ["locate-project"]:
    here = Path.cwd().resolve()
    for candidate in [here, *here.parents]:
        if (candidate / "Cargo.toml").is_file():
            print(candidate / "Cargo.toml")
            sys.exit(0)
    sys.stderr.write("error: could not find `Cargo.toml` in `%s` or any parent directory\\n" % here)
    sys.exit(101)

if args[:1] == ["test"]:
    log = os.environ.get("FAKE_CARGO_LOG")
    if log:
        watched = ("CARGO_INCREMENTAL", "RUSTFLAGS", "RUSTDOCFLAGS", "LLVM_PROFILE_FILE")
        with open(log, "w") as f:
            json.dump({{
                "args": args[1:],
                "cwd": os.getcwd(),
                "env": {{k: os.environ.get(k) for k in watched}},
            }}, f)
    template = os.environ["LLVM_PROFILE_FILE"]
    for module in ("libdemo", "integration"):
        path = Path(template.replace("%p", str(os.getpid())).replace("%m", module))
        path.write_bytes(b"profraw")
    sys.exit(int(os.environ.get("FAKE_CARGO_TEST_EXIT", "0")))

sys.exit(2)
'''

FAKE_GRCOV = '''#!{python}
import json
import os
import sys
from pathlib import Path

args = sys.argv[1:]
if args == ["-h"]:
    print("grcov 0.8.19")
    sys.exit(0)

log = os.environ.get("FAKE_GRCOV_LOG")
if log:
    with open(log, "a") as f:
        f.write(json.dumps({{"args": args, "cwd": os.getcwd()}}) + "\\n")

fmt = args[args.index("-t") + 1]
if fmt == os.environ.get("FAKE_GRCOV_FAIL"):
    sys.stderr.write("grcov: failed\\n")
    sys.exit(3)

if fmt == "markdown":
    print("| file | coverage | covered | missed_lines |")
    print("|------|----------|---------|--------------|")
    print("| src/lib.rs | 95.50% | 191 / 200 | 10-18 |")
    print("| src/parse.rs | 80% | 8 / 10 | 4, 9 |")
    print("| src/io.rs | 12.5% | 1 / 8 | 2-8 |")
    print("")
    print("Total coverage: 87.42%")
elif fmt == "html":
    out = Path(args[args.index("-o") + 1])
    out.mkdir(parents=True, exist_ok=True)
    (out / "index.html").write_text("<html>coverage</html>")
elif fmt == "lcov":
    out = Path(args[args.index("-o") + 1])
    out.write_text("TN:\\nSF:src/lib.rs\\nend_of_record\\n")
'''


def _write_tool(path: Path, template: str) -> Path:
    path.write_text(template.format(python=sys.executable))
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture(autouse=True)
def reset_cargo_cover_logger():
    """Drop handlers bound to streams that CliRunner has closed"""
    yield
    logger = logging.getLogger("cargo_cover")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def isolated_home(tmp_path: Path, monkeypatch) -> Path:
    """Point HOME at an empty directory and clear cargo-cover env vars"""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for name in (
        "CARGO",
        "CARGO_COVER_GRCOV",
        "CARGO_COVER_TARGET_DIR",
        "CARGO_COVER_HTML_SUBDIR",
        "CARGO_COVER_BRANCH",
        "CARGO_COVER_EXCLUDE_TESTS",
        "CARGO_COVER_DOCTESTS",
        "CARGO_COVER_ON_TEST_FAILURE",
        "CARGO_COVER_COLOR",
        "CARGO_COVER_LOG",
    ):
        monkeypatch.delenv(name, raising=False)
    return home


@pytest.fixture
def cargo_project(tmp_path: Path, isolated_home: Path) -> Path:
    """Create a minimal cargo package layout"""
    root = tmp_path / "demo"
    (root / "src").mkdir(parents=True)
    (root / "target" / "debug" / "deps").mkdir(parents=True)
    (root / "Cargo.toml").write_text('[package]\nname = "demo"\nversion = "0.1.0"\nedition = "2021"\n')
    (root / "src" / "lib.rs").write_text("pub fn answer() -> u32 { 42 }\n")
    return root


@pytest.fixture
def fake_tools(tmp_path: Path):
    """Executable stand-ins for cargo and grcov (POSIX only)"""
    if sys.platform == "win32":
        pytest.skip("fake tools are shebang scripts")
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    cargo = _write_tool(bin_dir / "cargo", FAKE_CARGO)
    grcov = _write_tool(bin_dir / "grcov", FAKE_GRCOV)
    return cargo, grcov


@pytest.fixture
def tool_logs(tmp_path: Path, monkeypatch):
    """Have the fake tools record how they were called"""
    cargo_log = tmp_path / "cargo.json"
    grcov_log = tmp_path / "grcov.jsonl"
    monkeypatch.setenv("FAKE_CARGO_LOG", str(cargo_log))
    monkeypatch.setenv("FAKE_GRCOV_LOG", str(grcov_log))
    return cargo_log, grcov_log


@pytest.fixture
def cover_config(fake_tools, cargo_project: Path) -> CoverConfig:
    """Configuration wired to the fake tools"""
    cargo, grcov = fake_tools
    return CoverConfig(
        cargo=str(cargo),
        grcov=str(grcov),
        color="never",
        project_root=cargo_project,
    )
