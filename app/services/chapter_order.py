# app/services/chapter_order.py
"""
Chapter ordering helpers.

Manual order: the admin types an order number next to every chapter. Valid
numbers (positive ints) sort ascending; anything else is pushed to the end
while keeping its current relative position. The result is renumbered 1..N.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Sequence

from app.utils import messages

# Sort key given to unparsable entries (plus a running counter).
INVALID_SORT_BASE = 9999
_ORDER_NUMBER_RE = re.compile(r"[+-]?[0-9]+")


@dataclass
class OrderEntry:
    chapter: Any
    sort_key: int
    original_index: int
    new_order: int = 0


def parse_order_value(text: Optional[str]) -> Optional[int]:
    """Positive int from user input, or None."""
    if text is None:
        return None
    text = str(text).strip()
    # ASCII digits only; int() alone would take "1_0" and Persian digits
    if not _ORDER_NUMBER_RE.fullmatch(text):
        return None
    value = int(text)
    return value if value > 0 else None


def resolve_manual_order(
    chapters: Sequence[Any],
    order_inputs: Mapping[Any, Optional[str]],
    *,
    key=lambda ch: ch.id,
) -> list[OrderEntry]:
    """
    Return OrderEntry records in their final order with new_order = 1..N.

    ``order_inputs`` maps a chapter id (as produced by ``key``) to the text the
    admin typed; missing ids count as invalid.
    """
    entries: list[OrderEntry] = []
    invalid_counter = 0

    for i, chapter in enumerate(chapters):
        parsed = parse_order_value(order_inputs.get(key(chapter)))
        if parsed is not None:
            sort_key = parsed
        else:
            sort_key = INVALID_SORT_BASE + invalid_counter
            invalid_counter += 1
        entries.append(OrderEntry(chapter=chapter, sort_key=sort_key, original_index=i))

    entries.sort(key=lambda e: (e.sort_key, e.original_index))

    for position, entry in enumerate(entries, start=1):
        entry.new_order = position
    return entries


def move_item(items: list, old_index: int, new_index: int) -> list:
    """
    Drag-and-drop reorder (list-view semantics: ``new_index`` is the slot
    *before* removal, so moving down shifts it by one).
    """
    if not 0 <= old_index < len(items):
        raise IndexError(f"old_index {old_index} out of range")
    if new_index > old_index:
        new_index -= 1
    new_index = max(0, min(new_index, len(items) - 1))
    if old_index == new_index:
        return items
    item = items.pop(old_index)
    items.insert(new_index, item)
    return items


def next_chapter_index(existing: Iterable[Optional[int]]) -> int:
    values = [v or 0 for v in existing]
    return (max(values) + 1) if values else 1


_CHAPTER_TOKEN_RE = re.compile(r"(chapter|ch|فصل)[\s_-]*\d+", re.IGNORECASE)
_LEADING_NUMBER_RE = re.compile(r"^\d+[\s_-]*")


def title_from_filename(file_name: str, chapter_number: int) -> str:
    """
    Build a chapter title from an uploaded file name.

    "03 - The Storm.mp3" -> "The Storm"; names that
    reduce to fewer than 3 characters fall back to "فصل <n>".
    """
    base = file_name.rsplit(".", 1)[0] if "." in file_name else file_name
    base = _CHAPTER_TOKEN_RE.sub("", base)
    base = _LEADING_NUMBER_RE.sub("", base.strip())
    base = base.strip(" _-").strip()
    if len(base) < 3:
        return messages.chapter_title(chapter_number)
    return base
