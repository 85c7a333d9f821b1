"""
Grep-like search across a channel's dated logs.

Output is plain text meant for the model: per-date headers, 5-wide line
numbers, ``--`` between non-contiguous runs, and an explicit ``[stopped: ...]``
marker whenever a limit cuts the scan short.
"""

from __future__ import annotations

import re

from dataclasses import dataclass
from typing import Literal

from irclogs.core.channels import Channel
from irclogs.core.constants import DEFAULT_SEARCH_MAX_RESULTS, SEARCH_MAX_DATES, SEARCH_OUTPUT_MAX_BYTES
from irclogs.core.exceptions import LogNotFoundError
from irclogs.utils.logger import logger


@dataclass(frozen=True, slots=True)
class SearchParams:
    """Validated search request."""

    pattern: re.Pattern[str]
    channel: Channel
    date: str | None = None
    from_date: str | None = None
    to_date: str | None = None
    order: Literal["newest", "oldest"] = "newest"
    context_before: int = 0
    context_after: int = 0
    count_only: bool = False
    max_results: int = DEFAULT_SEARCH_MAX_RESULTS

    def __post_init__(self) -> None:
        if self.max_results < 1:
            raise ValueError(f"max_results must be at least 1, got {self.max_results}")


def candidate_dates(params: SearchParams) -> list[str]:
    """The single requested date, or the channel's dates within [from, to] in scan order."""
    if params.date:
        return [params.date]
    dates = params.channel.dates()
    if params.from_date:
        dates = [d for d in dates if d >= params.from_date]
    if params.to_date:
        dates = [d for d in dates if d <= params.to_date]
    if params.order != "oldest":
        dates.reverse()
    return dates


def context_windows(matches: list[int], before: int, after: int, line_count: int) -> list[int]:
    """Sorted union of the clamped ``[i - before, i + after]`` windows around each match."""
    selected: set[int] = set()
    for i in matches:
        selected.update(range(max(0, i - before), min(line_count, i + after + 1)))
    return sorted(selected)


class _Output:
    """Text accumulator that tracks its UTF-8 size."""

    def __init__(self) -> None:
        self.parts: list[str] = []
        self.size = 0

    def write(self, text: str) -> None:
        self.parts.append(text)
        self.size += len(text.encode("utf-8"))

    def getvalue(self) -> str:
        return "".join(self.parts)


def _load_lines(params: SearchParams, date: str) -> list[str] | None:
    try:
        return params.channel.read_lines(date)
    except LogNotFoundError:
        return None
    except (OSError, ValueError) as e:
        logger.warning(f"Search skipped unreadable log {params.channel.path} {date}: {e}")
        return None


def run_search(params: SearchParams) -> str:
    """Scan the candidate dates and format the results."""
    pattern = params.pattern
    out = _Output()
    total_matches = 0
    dates_scanned = 0

    for date in candidate_dates(params):
        if dates_scanned >= SEARCH_MAX_DATES:
            out.write(f"\n[stopped: {SEARCH_MAX_DATES} dates scanned]\n")
            break
        dates_scanned += 1

        lines = _load_lines(params, date)
        if lines is None:
            continue
        matches = [i for i, line in enumerate(lines) if pattern.search(line)]
        if not matches:
            continue

        if params.count_only:
            out.write(f"{date}: {len(matches)} matches\n")
            total_matches += len(matches)
            if total_matches >= params.max_results:
                break
            continue

        # Matches beyond the limit are not shown, nor is their context
        remaining = params.max_results - total_matches
        hit_limit = len(matches) >= remaining
        shown = matches[:remaining] if hit_limit else matches
        total_matches += len(shown)

        out.write(f"--- {params.channel.path} {date} ({len(matches)} matches) ---\n")
        size_exceeded = False
        prev: int | None = None
        for j in context_windows(shown, params.context_before, params.context_after, len(lines)):
            if prev is not None and j > prev + 1:
                out.write("--\n")
            out.write(f"{j + 1:>5}: {lines[j]}\n")
            prev = j
            if out.size > SEARCH_OUTPUT_MAX_BYTES:
                size_exceeded = True
                break

        if hit_limit:
            out.write(f"\n[stopped: {params.max_results} match limit reached]\n")
            break
        if size_exceeded:
            out.write("\n[stopped: output size limit]\n")
            break

    if total_matches == 0:
        return f'no matches for "{pattern.pattern}" in {params.channel.path}'
    if params.count_only:
        return f"{out.getvalue()}total: {total_matches} matches across {dates_scanned} dates scanned"
    return out.getvalue()
