"""
Auditcord - message activity auditing for Discord guilds

Auditcord keeps the last-known state of every guild message so that edits
and deletions can be reconstructed after the fact, and rate limits
mention-triggered language-model calls.

Core Components:

- **Snapshots**: durable last-observed content and attachments per message
- **Diff classification**: edits vs. attachment removals vs. no-ops
- **Deletion attribution**: audit-log time correlation to guess who deleted
- **Activity log**: append-only, filterable record of classified events
- **Rate limiting**: fixed-window counters on a redis or no-op backend

Usage:
    from auditcord.main import main
    main()  # Starts the bot
"""
