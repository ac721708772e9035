"""Visual lore accumulation.

Lore is a flat string of short world-detail fragments joined by "; ".
The narrator reports new fragments each turn; they are merged in as an
ordered set so the scene illustrator sees a stable, growing description.

Fragments compare by exact text after trimming: "A Dragon" and "a dragon"
are two different fragments.
"""

from __future__ import annotations

from collections.abc import Iterable

SEPARATOR = "; "


def split_lore(lore: str) -> list[str]:
    """Return the trimmed, non-empty fragments of a lore string, in order."""
    return [part.strip() for part in lore.split(";") if part.strip()]


def merge_lore(existing: str, updates: Iterable[str]) -> str:
    """Merge new fragments into existing lore, keeping first-seen order."""
    merged: dict[str, None] = dict.fromkeys(split_lore(existing))
    for update in updates:
        fragment = update.strip()
        if fragment:
            merged.setdefault(fragment, None)
    return SEPARATOR.join(merged)
