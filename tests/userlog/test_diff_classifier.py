"""
Tests for classify_change and the attachment summary codec.
"""

import pytest

from auditcord.datatypes.activity_datatypes import (
    AttachmentInfo,
    EventKind,
    MessageIdentity,
    MessageSnapshot,
)
from auditcord.datatypes.discord_datatypes import UserID
from auditcord.userlog.attachments import (
    build_attachment_summary,
    parse_attachment_summary,
)
from auditcord.userlog.diff_classifier import classify_change

PICTURE = AttachmentInfo.create("cat.png", "https://cdn.example/cat.png")
DOCUMENT = AttachmentInfo.create("notes.txt", "https://cdn.example/notes.txt")


def snapshot(content, attachments=()):
    return MessageSnapshot(
        identity=MessageIdentity.of(1, 2, 3),
        author_id=UserID(4),
        content=content,
        attachment_summary=build_attachment_summary(attachments),
        updated_at=0,
    )


class TestClassifyChange:

    def test_no_previous_snapshot_is_baseline(self):
        assert classify_change(None, "anything", None) is None

    def test_identical_state_is_noop(self):
        assert classify_change(snapshot("a"), "a", None) is None

    def test_identical_state_with_attachments_is_noop(self):
        summary = build_attachment_summary([PICTURE])
        assert classify_change(snapshot("a", [PICTURE]), "a", summary) is None

    def test_content_change_is_edit(self):
        assert classify_change(snapshot("a"), "b", None) is EventKind.EDITED

    def test_attachment_only_change_is_removal(self):
        assert classify_change(snapshot("a", [PICTURE]), "a", None) is EventKind.ATTACHMENT_REMOVED

    def test_partial_attachment_removal(self):
        current = build_attachment_summary([DOCUMENT])
        previous = snapshot("a", [PICTURE, DOCUMENT])
        assert classify_change(previous, "a", current) is EventKind.ATTACHMENT_REMOVED

    def test_content_and_attachment_change_is_edit(self):
        assert classify_change(snapshot("a", [PICTURE]), "b", None) is EventKind.EDITED

    def test_comparison_is_exact(self):
        assert classify_change(snapshot("a"), "a ", None) is EventKind.EDITED
        assert classify_change(snapshot("a"), "A", None) is EventKind.EDITED


class TestAttachmentSummary:

    def test_empty_summary_is_none(self):
        assert build_attachment_summary([]) is None

    def test_summary_format(self):
        summary = build_attachment_summary([PICTURE, DOCUMENT])
        assert summary == (
            "cat.png (https://cdn.example/cat.png)\n"
            "notes.txt (https://cdn.example/notes.txt)"
        )

    def test_parse_restores_entries(self):
        parsed = parse_attachment_summary(build_attachment_summary([PICTURE, DOCUMENT]))
        assert parsed == [PICTURE, DOCUMENT]
        assert parsed[0].is_media is True
        assert parsed[1].is_media is False

    def test_parse_handles_parentheses_in_filename(self):
        (entry,) = parse_attachment_summary("report (final).pdf (https://cdn.example/r.pdf)")
        assert entry.filename == "report (final).pdf"
        assert entry.url == "https://cdn.example/r.pdf"

    @pytest.mark.parametrize("raw", [None, "", "no url here", "\n\n"])
    def test_parse_skips_malformed(self, raw):
        assert parse_attachment_summary(raw) == []

    @pytest.mark.parametrize("filename", ["a.PNG", "clip.mp4", "b.webp", "c.jpeg"])
    def test_media_detection(self, filename):
        assert AttachmentInfo.create(filename, "u").is_media


class TestEventKindParse:

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("edited", EventKind.EDITED),
            ("MESSAGE_EDIT", EventKind.EDITED),
            ("attachment_delete", EventKind.ATTACHMENT_REMOVED),
            (" deleted ", EventKind.DELETED),
            ("message_delete", EventKind.DELETED),
            (EventKind.DELETED, EventKind.DELETED),
        ],
    )
    def test_known_names(self, raw, expected):
        assert EventKind.parse(raw) is expected

    def test_unknown_name(self):
        with pytest.raises(ValueError):
            EventKind.parse("renamed")
