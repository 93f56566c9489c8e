"""
Classify a message update against its stored snapshot.

- no previous snapshot: baseline only, nothing to report
- content and attachments unchanged: no-op
- only the attachments changed: ``ATTACHMENT_REMOVED``
- content changed (with or without attachments): ``EDITED``

Discord only lets authors remove attachments from an existing message, so an
attachment-only difference is reported as a removal instead of as an edit
that would otherwise show identical before/after text.
"""

from __future__ import annotations

from typing import Optional

from auditcord.datatypes.activity_datatypes import EventKind, MessageSnapshot


def classify_change(
    previous: Optional[MessageSnapshot],
    content: str,
    attachment_summary: Optional[str],
) -> Optional[EventKind]:
    """Return the event kind for an observed state, or None when nothing is logged."""
    if previous is None:
        return None

    content_changed = previous.content != content
    attachments_changed = previous.attachment_summary != attachment_summary

    if not content_changed and not attachments_changed:
        return None
    if not content_changed:
        return EventKind.ATTACHMENT_REMOVED
    return EventKind.EDITED
