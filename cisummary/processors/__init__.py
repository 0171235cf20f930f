"""Log processing."""

from .extractor import (
    ERROR_SIGNATURES,
    extract_relevant_lines,
    merge_windows,
    select_excerpt,
    tail_lines,
)

__all__ = [
    "ERROR_SIGNATURES",
    "extract_relevant_lines",
    "merge_windows",
    "select_excerpt",
    "tail_lines",
]
