"""Tags: key/value annotations extracted from note text.

    #reimbursable
    #project: kitchen, #paid: 2018/10/03

A key without a value maps to "". Tags.EMPTY is a valid, inert value.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import final

from plainledger.core.result import Err, Ok
from plainledger.core.types import FrozenMap

type Tags = FrozenMap[str, str]

_TAG_RE = re.compile(r"#(?P<key>\w+)(:\s*(?P<value>[^,]+\S)\s*(,|$))?")


def parse_tags(*lines: str) -> Tags:
    """Collect tags from note lines. Later duplicates overwrite earlier ones."""
    found: dict[str, str] = {}
    for line in lines:
        for m in _TAG_RE.finditer(line):
            found[m["key"]] = m["value"] or ""
    if not found:
        return FrozenMap.EMPTY
    return FrozenMap(_entries=tuple(sorted(found.items())))


@final
@dataclass(frozen=True, slots=True)
class TagMatcher:
    """Matches tags against 'KEY[:VALUE]', both parts regular expressions."""

    key: re.Pattern[str]
    value: re.Pattern[str] | None

    @staticmethod
    def parse(expression: str) -> Ok[TagMatcher] | Err[str]:
        if not expression:
            return Err("tag expression must be non-empty")
        key, sep, value = expression.partition(":")
        try:
            return Ok(TagMatcher(
                key=re.compile(key),
                value=re.compile(value) if sep else None,
            ))
        except re.error as e:
            return Err(f"invalid tag expression '{expression}': {e}")

    def match(self, tags: Tags) -> bool:
        for k, v in tags.items():
            if self.key.search(k) and (self.value is None or self.value.search(v)):
                return True
        return False
