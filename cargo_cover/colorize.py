"""
colorize.py - Highlight coverage percentages in grcov's markdown output
"""

import enum
import re
from typing import Iterable, Iterator, Union

import click


PERCENT_PATTERN = re.compile(r"(\d+(?:\.\d+)?)%")

GOOD_THRESHOLD = 90.0
WARNING_THRESHOLD = 75.0


class Severity(enum.Enum):
    GOOD = "green"
    WARNING = "yellow"
    CRITICAL = "red"

    @property
    def color(self) -> str:
        return self.value


def severity(value: float) -> Severity:
    """Both thresholds are exclusive: 90.0 is WARNING, 75.0 is CRITICAL"""
    if value > GOOD_THRESHOLD:
        return Severity.GOOD
    if value > WARNING_THRESHOLD:
        return Severity.WARNING
    return Severity.CRITICAL


def paint(text: str, tier: Severity) -> str:
    return click.style(text, fg=tier.color, bold=True)


def colorize_line(line: str, pattern: Union[str, re.Pattern] = PERCENT_PATTERN) -> str:
    """
    Wrap every percentage in line with the color of its severity tier.

    The first group of pattern must capture the number; the whole match
    (including the % sign) is what gets colored. Matches whose number does
    not parse are returned untouched.
    """
    if isinstance(pattern, str):
        pattern = re.compile(pattern)

    def _replace(match) -> str:
        try:
            value = float(match.group(1))
        except ValueError:
            return match.group(0)
        return paint(match.group(0), severity(value))

    return pattern.sub(_replace, line)


def colorize_lines(lines: Iterable[str], pattern: Union[str, re.Pattern] = PERCENT_PATTERN) -> Iterator[str]:
    """Lazily colorize a stream of lines, dropping their line terminators"""
    for line in lines:
        yield colorize_line(line.rstrip("\r\n"), pattern)
