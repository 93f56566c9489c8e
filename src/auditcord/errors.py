"""
Exception types shared by the storage, cache and userlog layers.

The hierarchy lets callers pick the granularity they care about:

- the rate limiter catches :class:`CacheError` and fails open,
- event handlers catch :class:`StorageError` and drop the event,
- :class:`ValueOutOfRange` is never caught by the pipeline.
"""

from __future__ import annotations


class AuditcordError(Exception):
    """Base class for all errors raised by auditcord."""


class StorageError(AuditcordError):
    """A durable-store read or write failed."""


class BackendUnavailable(StorageError):
    """The connection to a backing store could not be established or was lost."""


class MalformedRecord(StorageError):
    """A stored value could not be parsed back into its typed form."""


class CacheError(AuditcordError):
    """Any failure reported by a Counter/KV cache backend."""


class CacheUnavailable(CacheError, BackendUnavailable):
    """The cache backend is unreachable."""


class ValueOutOfRange(AuditcordError, ValueError):
    """An identifier does not fit the signed 64-bit range the store accepts."""

    def __init__(self, field: str, value: int) -> None:
        super().__init__(f"{field} out of i64 range: {value}")
        self.field = field
        self.value = value
