"""Protocol definitions for document stores.

Protocols define interfaces without implementation, enabling:
- Easy faking in tests
- Swappable stores (local JSON file, Zotero Web API)
- A tagger core with no dependency on any host application
"""

from typing import Protocol

from .models import ChildItem, Document


class StoreError(Exception):
    """Document store operation failed."""


class DocumentNotFoundError(StoreError):
    """No document with the requested ID."""


class VersionConflictError(StoreError):
    """Document changed in the store since it was read."""


class TagSource(Protocol):
    """Enumerates tags across the whole corpus."""

    async def list_all_tags(self) -> list[str]:
        """Return every tag occurrence in the library.

        A tag attached to N documents appears N times. Stores that cannot
        enumerate tags globally raise ``NotImplementedError`` so callers
        can fall back to per-document enumeration.
        """
        ...

    async def list_document_ids(self) -> list[str]:
        """Return the IDs of all top-level documents."""
        ...

    async def get_document(self, document_id: str) -> Document:
        """Read one document.

        Raises:
            DocumentNotFoundError: if the ID is unknown
        """
        ...


class DocumentStore(TagSource, Protocol):
    """Read/write access to documents, their children and full text."""

    async def get_children(self, document_id: str) -> list[ChildItem]:
        """Return child notes and attachments of a document."""
        ...

    async def get_fulltext(self, attachment_id: str) -> str:
        """Return indexed full text of an attachment ("" when not indexed)."""
        ...

    async def save(self, document: Document) -> None:
        """Persist tags and ``extra`` of ``document`` in one atomic write.

        Raises:
            VersionConflictError: if the document changed since it was read
            StoreError: on any other write failure
        """
        ...
