"""Exception types raised by the moderation core.

Synchronous entrypoints (HTTP handlers, the CLI) translate these into
caller-visible errors; the asynchronous pipeline stages catch and log them.
"""

from __future__ import annotations


class ContentGuardError(Exception):
    """Base class for all ContentGuard errors."""


class ValidationError(ContentGuardError):
    """A submission, rule, or status value failed validation."""


class NotFoundError(ContentGuardError):
    """A referenced record does not exist in the store."""


class StorageError(ContentGuardError):
    """The record store failed to complete a read or write."""


class ClassifierError(ContentGuardError):
    """The external classifier failed or returned an unusable response."""


class BusClosedError(ContentGuardError):
    """A publish or subscribe was attempted after the bus was closed."""
