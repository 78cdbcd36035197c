"""Leak detection patterns — cloud credential shapes and YAML loading."""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from leaktrail.errors import PatternError


@dataclass(frozen=True)
class LeakPattern:
    """A detection pattern. The identifier doubles as the finding's leak type."""

    source: str
    name: str = ""
    ignore_case: bool = False
    regex: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        flags = re.IGNORECASE if self.ignore_case else 0
        try:
            compiled = re.compile(self.source, flags)
        except re.error as e:
            raise PatternError(f"Invalid pattern {self.source!r}: {e}") from e
        object.__setattr__(self, "regex", compiled)

    @property
    def identifier(self) -> str:
        if self.ignore_case:
            return f"(?i){self.source}"
        return self.source

    @property
    def label(self) -> str:
        return self.name or self.identifier

    def finditer(self, text: str) -> Iterator[tuple[str, int]]:
        """Yield (match text, start offset) for every non-overlapping match."""
        for match in self.regex.finditer(text):
            yield match.group(0), match.start()


DEFAULT_PATTERNS: tuple[LeakPattern, ...] = (
    LeakPattern(
        name="aws_access_key_id",
        source=r"AKIA[0-9A-Z]{16}",
    ),
    LeakPattern(
        name="aws_temporary_access_key_id",
        source=r"ASIA[0-9A-Z]{16}",
    ),
    LeakPattern(
        name="aws_secret_access_key_assignment",
        source=(
            r"(aws_secret_access_key|aws_secret_key)"
            r"\s*[:=]\s*['\"]?([A-Za-z0-9/+=]{40})"
        ),
        ignore_case=True,
    ),
    LeakPattern(
        name="access_key_id_property",
        source=r"(\"accessKeyId\"|'accessKeyId')\s*:\s*['\"]AKIA[0-9A-Z]{16}['\"]",
    ),
    LeakPattern(
        name="secret_access_key_property",
        source=(
            r"(\"secretAccessKey\"|'secretAccessKey')"
            r"\s*:\s*['\"][A-Za-z0-9/+=]{40}['\"]"
        ),
    ),
)


def load_patterns(path: str | Path) -> tuple[LeakPattern, ...]:
    """Load an ordered pattern set from a YAML file."""
    text = Path(path).read_text(encoding="utf-8")
    return load_patterns_from_string(text)


def load_patterns_from_string(text: str) -> tuple[LeakPattern, ...]:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise PatternError(f"Pattern file is not valid YAML: {e}") from e

    if isinstance(data, dict):
        data = data.get("patterns")
    if not isinstance(data, list) or not data:
        raise PatternError("Pattern file must define a non-empty 'patterns' list")

    patterns: list[LeakPattern] = []
    for entry in data:
        if isinstance(entry, str):
            patterns.append(LeakPattern(source=entry))
            continue
        if not isinstance(entry, dict) or "regex" not in entry:
            raise PatternError(f"Pattern entry needs a 'regex' key: {entry!r}")
        patterns.append(
            LeakPattern(
                source=str(entry["regex"]),
                name=str(entry.get("name", "")),
                ignore_case=bool(entry.get("ignore_case", False)),
            )
        )
    return tuple(patterns)
