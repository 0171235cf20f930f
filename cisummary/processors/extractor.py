"""Keyword-window extraction of the log lines worth sending to the AI backend."""

import re
from typing import Iterable, List, Optional, Pattern, Sequence

from cisummary.schemas import (
    SKIPPED_MARKER,
    Excerpt,
    ExcerptStrategy,
    LogCorpus,
    MatchWindow,
)


DEFAULT_MAX_LINES = 500
DEFAULT_CONTEXT_LINES = 5

# Ordered by precedence; the first signature that matches a line wins
ERROR_SIGNATURES: List[Pattern[str]] = [
    re.compile(r"\berror\b", re.IGNORECASE),
    re.compile(r"\bfailed\b", re.IGNORECASE),
    re.compile(r"\bfailure\b", re.IGNORECASE),
    re.compile(r"\bexception\b", re.IGNORECASE),
    re.compile(r"\bfatal\b", re.IGNORECASE),
    re.compile(r"\bcannot\b", re.IGNORECASE),
    re.compile(r"\bcould not\b", re.IGNORECASE),
    re.compile(r"\bunable to\b", re.IGNORECASE),
    re.compile(r"\bundefined\b", re.IGNORECASE),
    re.compile(r"\bnull\b", re.IGNORECASE),
    re.compile(r"\btimeout\b", re.IGNORECASE),
    re.compile(r"\bexit code [1-9]", re.IGNORECASE),
    re.compile(r"\bexited with\b", re.IGNORECASE),
    re.compile(r"\bnpm ERR!"),
    re.compile(r"\bTypeError\b"),
    re.compile(r"\bSyntaxError\b"),
    re.compile(r"\bReferenceError\b"),
    re.compile(r"\bAssertionError\b"),
    re.compile(r"\bENOENT\b"),
    re.compile(r"\bEACCES\b"),
    re.compile(r"\bsegmentation fault\b", re.IGNORECASE),
    re.compile(r"\bpanic\b", re.IGNORECASE),
    re.compile(r"\bstack trace\b", re.IGNORECASE),
    re.compile(r"\btraceback\b", re.IGNORECASE),
]


def match_signature(line: str, signatures: Sequence[Pattern[str]] = ERROR_SIGNATURES) -> Optional[Pattern[str]]:
    """Return the first signature matching the line, if any."""
    for signature in signatures:
        if signature.search(line):
            return signature
    return None


def find_matches(corpus: LogCorpus, signatures: Sequence[Pattern[str]] = ERROR_SIGNATURES) -> List[int]:
    """Indices of corpus lines matching at least one signature."""
    return [
        index for index, line in enumerate(corpus.lines)
        if match_signature(line, signatures) is not None
    ]


def _kept_indices(corpus: LogCorpus, matches: Iterable[int], context_lines: int) -> List[int]:
    last = len(corpus) - 1
    kept = set()
    for index in matches:
        kept.update(range(max(0, index - context_lines), min(last, index + context_lines) + 1))
    return sorted(kept)


def merge_windows(
    corpus: LogCorpus,
    context_lines: int = DEFAULT_CONTEXT_LINES,
    signatures: Sequence[Pattern[str]] = ERROR_SIGNATURES,
) -> List[MatchWindow]:
    """Context windows around every match, with overlapping or adjacent ones coalesced."""
    windows: List[MatchWindow] = []
    start = prev = None
    for index in _kept_indices(corpus, find_matches(corpus, signatures), context_lines):
        if prev is not None and index != prev + 1:
            windows.append(MatchWindow(start=start, end=prev))
            start = None
        if start is None:
            start = index
        prev = index
    if start is not None:
        windows.append(MatchWindow(start=start, end=prev))
    return windows


def extract_relevant_lines(
    corpus: LogCorpus,
    max_lines: int = DEFAULT_MAX_LINES,
    context_lines: int = DEFAULT_CONTEXT_LINES,
    signatures: Sequence[Pattern[str]] = ERROR_SIGNATURES,
) -> Optional[Excerpt]:
    """
    Keep the lines around every error signature match.

    Non-adjacent windows are separated by a single skipped-lines marker. When the
    result is longer than ``max_lines`` only the trailing ``max_lines`` lines are
    kept, so a truncated excerpt may begin inside a window.

    Returns None when no line matches, telling the caller to use ``tail_lines``.
    """
    indices = _kept_indices(corpus, find_matches(corpus, signatures), context_lines)
    if not indices:
        return None

    lines: List[str] = []
    last_index = -2
    for index in indices:
        if index > last_index + 1 and lines:
            lines.append(SKIPPED_MARKER)
        lines.append(corpus.lines[index])
        last_index = index

    if len(lines) > max_lines:
        return Excerpt(
            lines=tuple(lines[-max_lines:]) if max_lines > 0 else (),
            strategy=ExcerptStrategy.KEYWORD,
            truncated=True,
        )
    return Excerpt(lines=tuple(lines), strategy=ExcerptStrategy.KEYWORD)


def tail_lines(corpus: LogCorpus, max_lines: int = DEFAULT_MAX_LINES) -> Excerpt:
    """Trailing ``max_lines`` corpus lines, verbatim."""
    lines = corpus.lines[-max_lines:] if max_lines > 0 else ()
    return Excerpt(
        lines=tuple(lines),
        strategy=ExcerptStrategy.TAIL,
        truncated=len(lines) < len(corpus),
    )


def select_excerpt(
    corpus: LogCorpus,
    max_lines: int = DEFAULT_MAX_LINES,
    context_lines: int = DEFAULT_CONTEXT_LINES,
    signatures: Sequence[Pattern[str]] = ERROR_SIGNATURES,
) -> Excerpt:
    """Keyword windows when anything matched, otherwise the tail of the corpus."""
    excerpt = extract_relevant_lines(corpus, max_lines, context_lines, signatures)
    if excerpt is not None:
        return excerpt
    return tail_lines(corpus, max_lines)
