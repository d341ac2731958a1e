"""
cargo-cover - LLVM source-based coverage for cargo test suites

Runs `cargo test` with coverage instrumentation, then drives grcov to
produce a colored markdown summary, an HTML report and an LCOV file.
"""

__version__ = "1.0.0"
__author__ = "Dale Chapman"
__license__ = "MIT"

# Make key utilities easily importable
from .config_utils import get_config
from .errors import CoverError, ConfigurationError
from .pipeline import run_pipeline

__all__ = [
    "__version__",
    "get_config",
    "run_pipeline",
    "CoverError",
    "ConfigurationError",
]
