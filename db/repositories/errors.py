"""
Storage-layer exceptions for competitor inventory persistence.
"""

from __future__ import annotations

import uuid


class StorageError(Exception):
    """Base exception for inventory storage failures."""


class StorageReadError(StorageError):
    """Raised when loading dealer or vehicle state fails."""


class StorageWriteError(StorageError):
    """Raised when inserting or updating inventory rows fails."""


class DealerNotFoundError(StorageError):
    """Raised when a referenced competitor dealer does not exist."""

    def __init__(self, dealer_id: uuid.UUID | str) -> None:
        super().__init__(f"Competitor dealer not found: {dealer_id}")
        self.dealer_id = dealer_id
