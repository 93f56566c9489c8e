"""
Attachment summary codec.

A summary is one ``filename (url)`` line per attachment, in message order,
joined with newlines. Messages without attachments have no summary
(``None``), so two attachment-less states always compare equal.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from auditcord.datatypes.activity_datatypes import AttachmentInfo


def build_attachment_summary(attachments: Iterable[AttachmentInfo]) -> Optional[str]:
    """Serialize attachments into a summary, or None when there are none."""
    lines = [f"{attachment.filename} ({attachment.url})" for attachment in attachments]
    if not lines:
        return None
    return "\n".join(lines)


def parse_attachment_summary(raw: Optional[str]) -> List[AttachmentInfo]:
    """
    Parse a stored summary back into attachment entries.

    Lines that do not have the ``filename (url)`` shape are skipped.
    """
    if not raw:
        return []

    entries: List[AttachmentInfo] = []
    for line in raw.splitlines():
        trimmed = line.strip()
        if not trimmed or not trimmed.endswith(")"):
            continue

        start = trimmed.rfind(" (")
        if start < 0:
            continue

        entries.append(AttachmentInfo.create(trimmed[:start], trimmed[start + 2:-1]))
    return entries
