"""
Database package for Auditcord.

Public API:
    - Database: coordinator for snapshots, activity events and userlog config
    - ConnectionManager: single aiosqlite connection with serialised writes
"""
