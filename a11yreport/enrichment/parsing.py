from __future__ import annotations

import re
from typing import List, Optional

from a11yreport.enrichment.prompts import MISSING_ITEM_PLACEHOLDER

THINK_OPEN = "<think>"
THINK_CLOSE = "</think>"

_NUMBERED_LINE = re.compile(r"^(\d+)\.(.*)$")


def strip_think_tags(text: str) -> str:
    """Removes <think>...</think> reasoning blocks; an unclosed block runs to the end."""
    while True:
        start = text.find(THINK_OPEN)
        if start == -1:
            break
        end = text.find(THINK_CLOSE, start)
        if end == -1:
            text = text[:start]
            break
        text = text[:start] + text[end + len(THINK_CLOSE):]
    return text.strip()


def parse_batch_response(content: str, expected_count: int) -> List[str]:
    """Recovers one text per numbered item from a combined model reply.

    A line starting with ``<n>.`` (1 <= n <= expected_count) opens item n and
    the rest of that line is its first fragment. Any other line is appended to
    the open item. Text before the first recognised number is dropped. Items
    the reply never produced get a placeholder, so the result always has
    exactly ``expected_count`` non-empty entries.
    """
    if expected_count <= 0:
        return []

    fragments: List[List[str]] = [[] for _ in range(expected_count)]
    current: Optional[int] = None

    for raw_line in strip_think_tags(content).splitlines():
        line = raw_line.strip()
        match = _NUMBERED_LINE.match(line)
        if match:
            number = int(match.group(1))
            if 1 <= number <= expected_count:
                current = number - 1
                fragments[current] = []
                first = match.group(2).strip()
                if first:
                    fragments[current].append(first)
                continue
        if current is not None and line:
            fragments[current].append(line)

    results: List[str] = []
    for parts in fragments:
        text = " ".join(parts).strip()
        results.append(text or MISSING_ITEM_PLACEHOLDER)
    return results
