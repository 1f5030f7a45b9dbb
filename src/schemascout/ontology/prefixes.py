"""
Registry of namespaces seen during extraction.

Counts how often each namespace occurs, marks the most frequent one as
`intern` and all others as `extern`. Only used for color-coding.
"""

from typing import Optional

from pydantic import BaseModel

from schemascout.core.events import PREFIXES_CHANGED, EventEmitter

MIN_PREFIX_LENGTH = 8


class PrefixEntry(BaseModel):
    prefix: str
    value: int = 1
    color: int = 1
    classification: str = "extern"


class PrefixRegistry(EventEmitter):
    """Frequency-ranked namespace registry."""

    def __init__(self, different_colors: bool = True):
        super().__init__()
        self.prefixes: list[PrefixEntry] = []
        self.color_number = 1
        self.different_colors = different_colors

    def add_prefix(self, prefix: Optional[str]) -> None:
        if not prefix or len(prefix) < MIN_PREFIX_LENGTH:
            return

        existing = next((p for p in self.prefixes if p.prefix == prefix), None)
        if existing:
            existing.value += 1
        else:
            self.prefixes.append(PrefixEntry(prefix=prefix, color=self.color_number))
            self.color_number += 1

        # Stable sort keeps first-seen order among equal counts
        self.prefixes.sort(key=lambda p: p.value, reverse=True)
        for i, entry in enumerate(self.prefixes):
            entry.classification = "intern" if i == 0 else "extern"

        self.emit(PREFIXES_CHANGED, len(self.prefixes))

    def clear(self) -> None:
        self.prefixes = []
        self.color_number = 1
        self.emit(PREFIXES_CHANGED, 0)

    def is_internal(self, uri: str) -> bool:
        return any(
            p.classification == "intern" and p.prefix in uri for p in self.prefixes
        )

    def get_color(self, uri: str) -> int:
        if not self.different_colors:
            return 1
        entry = next(
            (p for p in self.prefixes if p.classification != "intern" and p.prefix in uri),
            None,
        )
        return entry.color if entry else 1
