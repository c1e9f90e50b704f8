# app/services/content_workflow.py
"""Status workflow for content items: draft -> submitted -> under_review -> approved/rejected."""
from __future__ import annotations

import datetime as dt
from typing import Optional

from app.models.audiobook import Audiobook

# action -> (allowed source statuses, target status)
TRANSITIONS = {
    "submit": (("draft", "rejected"), "submitted"),
    "start_review": (("submitted",), "under_review"),
    "approve": (("submitted", "under_review"), "approved"),
    "reject": (("submitted", "under_review"), "rejected"),
}

PENDING_STATUSES = ("submitted", "under_review")


class InvalidTransition(ValueError):
    def __init__(self, action: str, status: str):
        super().__init__(f"Cannot {action} content in status '{status}'")
        self.action = action
        self.status = status


def _now_utc() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def can_apply(action: str, status: Optional[str]) -> bool:
    sources, _ = TRANSITIONS[action]
    return (status or "draft") in sources


def apply_transition(
    book: Audiobook,
    action: str,
    *,
    reviewer_id: Optional[str] = None,
    reason: Optional[str] = None,
    when: Optional[dt.datetime] = None,
) -> Audiobook:
    """Mutate ``book`` in place (caller commits). Raises InvalidTransition."""
    if action not in TRANSITIONS:
        raise KeyError(action)
    if not can_apply(action, book.status):
        raise InvalidTransition(action, book.status)

    _, target = TRANSITIONS[action]
    when = when or _now_utc()
    book.status = target

    if action in ("approve", "reject"):
        book.reviewed_at = when
        book.reviewed_by = reviewer_id
    if action == "approve":
        book.rejection_reason = None
        if book.published_at is None:
            book.published_at = when
    elif action == "reject":
        book.rejection_reason = (reason or "").strip() or None
    return book
