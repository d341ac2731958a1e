# cli.py - Command line entry point for cargo-cover
"""
cargo-cover - Run a cargo test suite under LLVM coverage and report with grcov

USAGE:
    cargo cover [TEST-ARGS...]
    cargo-cover [cover] [TEST-ARGS...]

Every argument is forwarded verbatim to `cargo test`, including `--` and
anything after it. When run as `cargo cover`, cargo passes the subcommand
name first; that single leading `cover` is dropped. A lone `--help` shows
this text; `-h` still reaches `cargo test`.

REPORTS:
    stdout                                  markdown summary, colored
    target/coverage/output/html/            HTML report
    target/coverage/output/lcov.info        LCOV file

EXAMPLES:
    # Whole test suite
    cargo cover

    # One test, showing its output
    cargo cover my_test -- --nocapture

    # Only the library tests of one workspace member
    cargo cover -p my-crate --lib

Settings are read from cargo-cover.yaml next to Cargo.toml and from
CARGO_COVER_* environment variables; see config_utils.py.
"""

import os
import sys
from typing import List, Sequence

import click

from .errors import CoverError, ToolMissingError
from .log_utils import setup_logging
from .pipeline import run_pipeline


SUBCOMMAND = "cover"
HELP_ARGS = (["--help"],)


def strip_subcommand(args: Sequence[str]) -> List[str]:
    """Drop the single leading 'cover' that `cargo cover` passes along"""
    args = list(args)
    if args and args[0] == SUBCOMMAND:
        return args[1:]
    return args


class PassthroughCommand(click.Command):
    """
    Command that hands its raw arguments to the callback.

    click's own parser would consume `--`, which `cargo test` needs to see
    to separate its options from the test harness options.
    """

    def parse_args(self, ctx: click.Context, args: List[str]) -> List[str]:
        forwarded = strip_subcommand(args)
        if forwarded in HELP_ARGS:
            click.echo(ctx.get_help(), color=ctx.color)
            ctx.exit()
        ctx.args = forwarded
        return forwarded


def tool_missing_message(error: ToolMissingError) -> str:
    tool = click.style(error.tool, fg="yellow", italic=True)
    lines = [f"🚧 {tool} is not installed. Please install {tool} to continue."]
    if error.url:
        lines[0] += f" See {click.style(error.url, fg='blue', italic=True)}."
    if error.install_hint:
        lines.append("")
        lines.append(error.install_hint)
    return "\n".join(lines)


@click.command(
    cls=PassthroughCommand,
    context_settings={"ignore_unknown_options": True, "allow_extra_args": True},
)
@click.pass_context
def cli(ctx: click.Context):
    """
    Run `cargo test` with coverage instrumentation and write grcov reports
    """
    setup_logging(os.environ.get("CARGO_COVER_LOG", "info"))

    try:
        code = run_pipeline(ctx.args)
    except ToolMissingError as e:
        click.echo(tool_missing_message(e), err=True)
        sys.exit(1)
    except CoverError as e:
        click.echo(e.format_message(), err=True)
        sys.exit(e.exit_code)

    sys.exit(code)


# ============================================================================
# Entry Point
# ============================================================================

if __name__ == '__main__':
    cli()
