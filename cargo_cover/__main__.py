"""Allow `python -m cargo_cover`"""
from .cli import cli

cli(prog_name="cargo-cover")
