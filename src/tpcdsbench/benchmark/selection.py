"""Query selection for a benchmark run.

A query runs when its number is cherry-picked, or, when nothing is
cherry-picked, when its number lies in ``[offset, offset + limit]`` and is
not explicitly skipped.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tpcdsbench.config.schema import BenchmarkConfig

_DIGITS_RE = re.compile(r"\d+")


def query_number(name: str) -> int:
    """Extract the query number embedded in a catalog name.

    Takes the text after the first ``q``, cuts it at the first ``a`` or
    ``b`` suffix marker and returns the first run of digits in what is
    left. Names without digits map to 0.

    >>> query_number("q14a")
    14
    >>> query_number("qNoDigits")
    0
    """
    _, _, rest = name.partition("q")
    rest = re.split(r"[ab]", rest, maxsplit=1)[0]
    match = _DIGITS_RE.search(rest)
    return int(match.group()) if match else 0


@dataclass(frozen=True)
class QuerySelector:
    """Decides which catalog entries run in an invocation."""

    query_offset: int = 1
    query_limit: int = 100000
    skipped: frozenset[int] = field(default_factory=frozenset)
    cherry_picked: frozenset[int] = field(default_factory=frozenset)

    @classmethod
    def from_config(cls, config: BenchmarkConfig) -> QuerySelector:
        return cls(
            query_offset=config.query_offset,
            query_limit=config.query_limit,
            skipped=config.skipped_queries,
            cherry_picked=config.cherry_picked_queries,
        )

    def accepts(self, number: int) -> bool:
        if self.cherry_picked:
            return number in self.cherry_picked
        in_range = self.query_offset <= number <= self.query_offset + self.query_limit
        return in_range and number not in self.skipped

    def should_run(self, name: str) -> bool:
        return self.accepts(query_number(name))

    def select(self, names: Iterable[str]) -> list[str]:
        """Names that run, in ascending lexical order."""
        return [name for name in sorted(names) if self.should_run(name)]
