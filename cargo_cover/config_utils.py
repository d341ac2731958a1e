# config_utils.py - YAML Configuration System for cargo-cover
"""
cargo-cover configuration utilities with YAML file support.

Configuration Resolution Order (highest to lowest priority):
1. Environment variables (CARGO_COVER_GRCOV, CARGO_COVER_ON_TEST_FAILURE, etc.)
2. cargo-cover.yaml in the project root (next to Cargo.toml)
3. ~/.cargo-cover/config.yaml (global defaults)

Usage:
    from cargo_cover.config_utils import get_config

    config = get_config(project_root)
    print(config.grcov)
    print(config.on_test_failure)
"""

import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List

import yaml

from .errors import ConfigurationError, invalid_option_error


PROJECT_CONFIG_NAME = "cargo-cover.yaml"

# Test exit-status policies
ON_FAILURE_REPORT = "report"
ON_FAILURE_ABORT = "abort"
ON_FAILURE_IGNORE = "ignore"
ON_FAILURE_CHOICES = (ON_FAILURE_REPORT, ON_FAILURE_ABORT, ON_FAILURE_IGNORE)

COLOR_CHOICES = ("auto", "always", "never")
LOG_LEVEL_CHOICES = ("debug", "info", "warning", "error")

TRUTHY = {"1", "true", "yes", "on"}
FALSY = {"0", "false", "no", "off"}


def default_cargo() -> str:
    """cargo sets $CARGO for its subcommands; prefer it over PATH lookup"""
    return os.environ.get("CARGO") or "cargo"


@dataclass
class CoverConfig:
    """Complete cargo-cover configuration"""
    # External tools
    grcov: str = "grcov"
    # $CARGO only: the project is located before any YAML is read
    cargo: str = field(default_factory=default_cargo)

    # Layout
    target_dir: str = "target"
    html_subdir: str = "html"

    # grcov filters
    branch: bool = True
    ignore: List[str] = field(default_factory=lambda: ["../*", "/*"])
    exclude_test_modules: bool = False

    # Instrumentation
    doctests: bool = False

    # Exit-status policy for a failing test run
    on_test_failure: str = ON_FAILURE_REPORT

    # Output
    color: str = "auto"
    log_level: str = "info"

    # Paths (resolved at load time)
    project_root: Optional[Path] = None

    # Extra settings from config file
    extra: Dict[str, Any] = field(default_factory=dict)

    # Track where values came from (for debugging)
    _sources: Dict[str, str] = field(default_factory=dict)

    @property
    def color_flag(self) -> Optional[bool]:
        """Value for click.echo(color=...): None lets click detect a terminal"""
        if self.color == "always":
            return True
        if self.color == "never":
            return False
        return None


def _parse_bool(key: str, value: Any, source: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in TRUTHY:
        return True
    if text in FALSY:
        return False
    raise invalid_option_error(key, value, ["true", "false"], source)


def _parse_choice(key: str, value: Any, choices, source: str) -> str:
    text = str(value).strip().lower()
    if text not in choices:
        raise invalid_option_error(key, value, choices, source)
    return text


class ConfigLoader:
    """Load configuration from multiple sources"""

    BOOL_KEYS = ("branch", "exclude_test_modules", "doctests")
    STRING_KEYS = ("grcov", "target_dir", "html_subdir")
    CHOICE_KEYS = {
        "on_test_failure": ON_FAILURE_CHOICES,
        "color": COLOR_CHOICES,
        "log_level": LOG_LEVEL_CHOICES,
    }

    ENV_VARS = {
        "CARGO_COVER_GRCOV": "grcov",
        "CARGO_COVER_TARGET_DIR": "target_dir",
        "CARGO_COVER_HTML_SUBDIR": "html_subdir",
        "CARGO_COVER_BRANCH": "branch",
        "CARGO_COVER_EXCLUDE_TESTS": "exclude_test_modules",
        "CARGO_COVER_DOCTESTS": "doctests",
        "CARGO_COVER_ON_TEST_FAILURE": "on_test_failure",
        "CARGO_COVER_COLOR": "color",
        "CARGO_COVER_LOG": "log_level",
    }

    def __init__(self, project_root: Optional[Path] = None, global_config: Optional[Path] = None):
        self.project_root = Path(project_root) if project_root else None
        self.global_config = global_config or Path.home() / ".cargo-cover" / "config.yaml"
        self.config = CoverConfig(project_root=self.project_root)

    def load(self) -> CoverConfig:
        """Load configuration from all sources in priority order"""
        # Load in reverse priority (lowest first, higher overwrites)
        self._load_global_config()
        self._load_project_config()
        self._load_env_vars()
        return self.config

    def _load_global_config(self):
        """Load ~/.cargo-cover/config.yaml if it exists"""
        if self.global_config.is_file():
            self._load_yaml_file(self.global_config, "global")

    def _load_project_config(self):
        """Load cargo-cover.yaml from the project root"""
        if not self.project_root:
            return
        yaml_path = self.project_root / PROJECT_CONFIG_NAME
        if yaml_path.is_file():
            self._load_yaml_file(yaml_path, PROJECT_CONFIG_NAME)

    def _load_yaml_file(self, path: Path, source_name: str):
        """Load settings from a YAML file"""
        try:
            data = yaml.safe_load(path.read_text()) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(
                message=f"Failed to parse {path}",
                suggestion="Fix the YAML syntax or remove the file",
                context={"file": str(path)},
                cause=e
            )

        if not isinstance(data, dict):
            raise ConfigurationError(
                message=f"{path.name} must contain a mapping of settings",
                suggestion=create_config_template(include_comments=False),
                context={"file": str(path), "found": type(data).__name__}
            )

        for key, value in data.items():
            if key == "ignore":
                if isinstance(value, str):
                    value = [value]
                if not isinstance(value, list):
                    raise invalid_option_error(key, value, ["a list of glob patterns"], source_name)
                self.config.ignore = [str(v) for v in value]
                self.config._sources[key] = source_name
            elif key in self.BOOL_KEYS or key in self.STRING_KEYS or key in self.CHOICE_KEYS:
                self._set(key, value, source_name)
            else:
                self.config.extra[key] = value

    def _load_env_vars(self):
        """Load from environment variables (highest priority)"""
        for env_var, key in self.ENV_VARS.items():
            value = os.environ.get(env_var)
            if value is not None and value != "":
                self._set(key, value, f"env:{env_var}")

    def _set(self, key: str, value: Any, source: str):
        if key in self.BOOL_KEYS:
            value = _parse_bool(key, value, source)
        elif key in self.CHOICE_KEYS:
            value = _parse_choice(key, value, self.CHOICE_KEYS[key], source)
        else:
            value = str(value)
        setattr(self.config, key, value)
        self.config._sources[key] = source


# ============================================================================
# Public API
# ============================================================================

def get_config(project_root: Optional[Path] = None) -> CoverConfig:
    """
    Get complete cargo-cover configuration.

    Args:
        project_root: Directory holding Cargo.toml (project file is skipped if None)

    Returns:
        CoverConfig with all settings resolved

    Raises:
        ConfigurationError: If a config file or environment value is invalid
    """
    loader = ConfigLoader(project_root)
    return loader.load()


def create_config_template(include_comments: bool = True) -> str:
    """
    Generate a cargo-cover.yaml template.

    Args:
        include_comments: Whether to include explanatory comments

    Returns:
        YAML string ready to write to file
    """
    if include_comments:
        return '''# cargo-cover configuration file
# Place next to Cargo.toml as cargo-cover.yaml

# grcov binary (name on PATH or absolute path)
grcov: grcov

# What to do when `cargo test` fails:
#   report - still generate reports, exit with the test status
#   abort  - skip reports, exit with the test status
#   ignore - still generate reports, exit 0
on_test_failure: report

# grcov filters
branch: true
ignore:
  - "../*"
  - "/*"
exclude_test_modules: false   # skip #[cfg(test)] blocks

# Also instrument doctests (sets RUSTDOCFLAGS)
doctests: false

# HTML report goes to <target_dir>/coverage/output/<html_subdir>
target_dir: target
html_subdir: html

# auto, always or never
color: auto
'''
    else:
        return '''grcov: grcov
on_test_failure: report
branch: true
ignore:
  - "../*"
  - "/*"
exclude_test_modules: false
doctests: false
target_dir: target
html_subdir: html
color: auto
'''
