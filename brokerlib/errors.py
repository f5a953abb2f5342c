"""
Error taxonomy shared by the fakebroker services.

- ValidationError: rejected input, nothing persisted.
- StorageError: the document store is unavailable or a write failed.
- ClassifierError: the external model is unreachable or answered garbage.
  Never surfaced to end users; callers degrade to the fallback profile.
- AuthorizationError / UserNotFoundError: admin surface.
"""

from __future__ import annotations


class BrokerError(Exception):
    """Base class for all fakebroker errors."""


class ValidationError(BrokerError, ValueError):
    """Missing or malformed fields on ingest."""


class StorageError(BrokerError):
    """Store unavailable or write failure."""


class ClassifierError(BrokerError):
    """Classifier unreachable, timed out, or returned an unparsable answer."""


class AuthorizationError(BrokerError):
    """Caller is not allowed to act on another user's data."""


class UserNotFoundError(BrokerError):
    """Target user record does not exist."""
