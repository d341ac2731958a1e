# errors.py
"""
Custom exception classes with actionable messages for cargo-cover

All exceptions include:
- Clear error description
- Actionable suggestions
- Relevant context
"""
from pathlib import Path
from typing import Optional, Dict, Any, Sequence


GRCOV_URL = "https://github.com/mozilla/grcov"


class CoverError(Exception):
    """Base exception for all cargo-cover errors"""

    exit_code = 1

    def __init__(
        self,
        message: str,
        suggestion: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        self.message = message
        self.suggestion = suggestion
        self.context = context or {}
        self.cause = cause
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format error with all details"""
        lines = [
            "",
            "=" * 70,
            f"❌ {self.__class__.__name__}",
            "=" * 70,
            "",
            self.message,
        ]

        if self.context:
            lines.append("")
            lines.append("Context:")
            for key, value in self.context.items():
                lines.append(f"  {key}: {value}")

        if self.suggestion:
            lines.append("")
            lines.append("💡 Suggestion:")
            lines.append(f"  {self.suggestion}")

        if self.cause:
            lines.append("")
            lines.append(f"Caused by: {type(self.cause).__name__}: {self.cause}")

        lines.append("")
        lines.append("=" * 70)
        lines.append("")

        return "\n".join(lines)


class ConfigurationError(CoverError):
    """Configuration is missing or invalid"""
    pass


class ProjectNotFoundError(CoverError):
    """No Cargo.toml could be located"""
    pass


class FilesystemError(CoverError):
    """Reading, deleting or creating a file or directory failed"""
    pass


class SubprocessLaunchError(CoverError):
    """The OS could not start an external process"""
    pass


class SubprocessExitError(CoverError):
    """An external process ran but exited with a failing status"""

    def __init__(self, message: str, returncode: int, **kwargs):
        self.returncode = returncode
        super().__init__(message, **kwargs)

    @property
    def exit_code(self) -> int:
        return self.returncode or 1


class ToolMissingError(CoverError):
    """A required external tool is not installed"""

    def __init__(self, tool: str, url: Optional[str] = None, install_hint: Optional[str] = None, **kwargs):
        self.tool = tool
        self.url = url
        self.install_hint = install_hint
        super().__init__(f"{tool} is not installed", suggestion=install_hint, **kwargs)


# Specific error factory functions

def grcov_missing_error(binary: str, cause: Optional[Exception] = None) -> ToolMissingError:
    """Create error for a grcov binary that cannot be launched"""
    return ToolMissingError(
        tool=binary,
        url=GRCOV_URL,
        install_hint=(
            "Install grcov and the LLVM tools it needs:\n"
            "  cargo install grcov\n"
            "  rustup component add llvm-tools-preview\n\n"
            "Or point CARGO_COVER_GRCOV at an existing grcov binary"
        ),
        context={
            "binary": binary,
            "env_var": "CARGO_COVER_GRCOV",
        },
        cause=cause
    )


def project_not_found_error(
    start_dir: Path,
    stderr: str = "",
    returncode: Optional[int] = None
) -> ProjectNotFoundError:
    """Create error when cargo cannot locate a Cargo.toml"""
    context: Dict[str, Any] = {"searched_from": str(start_dir)}
    if returncode is not None:
        context["cargo_exit_status"] = returncode
    if stderr.strip():
        context["cargo_stderr"] = stderr.strip()
    return ProjectNotFoundError(
        message="Could not find Cargo.toml in this directory or any parent directory",
        suggestion=(
            "Run cargo-cover from inside a cargo package:\n"
            "  cd path/to/your/crate\n"
            "  cargo cover"
        ),
        context=context
    )


def launch_error(command: Sequence[str], cause: OSError) -> SubprocessLaunchError:
    """Create error when a subprocess cannot be started"""
    program = str(command[0]) if command else "<empty command>"
    return SubprocessLaunchError(
        message=f"Could not start {program}",
        suggestion=(
            f"Check that {program} is installed and on your PATH"
        ),
        context={
            "command": " ".join(str(c) for c in command),
        },
        cause=cause
    )


def report_failed_error(report_format: str, command: Sequence[str], returncode: int) -> SubprocessExitError:
    """Create error when grcov fails to produce a report"""
    return SubprocessExitError(
        message=f"grcov failed while generating the {report_format} report",
        returncode=returncode,
        suggestion=(
            "Check the grcov output above. Common causes:\n"
            "  - No .profraw files were produced (did the tests build?)\n"
            "  - llvm-tools-preview is not installed\n"
            "  - target/debug/deps is missing or stale"
        ),
        context={
            "command": " ".join(str(c) for c in command),
            "exit_status": returncode,
        }
    )


def filesystem_error(action: str, path: Path, cause: OSError) -> FilesystemError:
    """Create error for a failed file operation"""
    return FilesystemError(
        message=f"Failed to {action}: {path}",
        suggestion="Check permissions on the target directory",
        context={
            "path": str(path),
        },
        cause=cause
    )


def invalid_option_error(key: str, value: Any, valid_values: Sequence[str], source: str) -> ConfigurationError:
    """Create error for a configuration value outside its allowed set"""
    return ConfigurationError(
        message=f"Invalid value for {key}: {value!r}",
        suggestion=(
            f"Set {key} to one of:\n" +
            "\n".join(f"  - {v}" for v in valid_values)
        ),
        context={
            "key": key,
            "value": value,
            "source": source,
        }
    )
