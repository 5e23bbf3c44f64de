"""File storage port.

The data-access core never stores or reads file bytes. It only tells the
storage collaborator that an object belongs to a deleted record and should
expire after a retention window.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from portfolio.domain.value_objects import DeletionTag


class FileTaggingError(Exception):
    """Raised when the storage collaborator rejects a deletion tag."""


@runtime_checkable
class FileStorage(Protocol):
    """Collaborator owning file objects and their lifecycle."""

    async def tag_for_expiry(self, tag: DeletionTag) -> None:
        """Mark a file object for delayed expiry.

        Tagging the same object again overwrites the previous tag.

        Args:
            tag: Object location, tagging time, and retention window

        Raises:
            FileTaggingError: If the object could not be tagged
        """
        ...
