"""Document stores the tagger reads from and writes back to.

Example:
    >>> from tagsmith.services.library import create_json_store
    >>> store = create_json_store(Path("data/library.json"))
    >>> doc = await store.get_document("ABCD1234")
"""

from .context import collect_context
from .json_store import JsonLibraryStore, create_json_store
from .models import ChildItem, Document
from .protocols import (
    DocumentNotFoundError,
    DocumentStore,
    StoreError,
    TagSource,
    VersionConflictError,
)
from .zotero_store import ZoteroWebStore, create_zotero_store

__all__ = [
    # Models
    "Document",
    "ChildItem",
    # Protocols and errors
    "TagSource",
    "DocumentStore",
    "StoreError",
    "DocumentNotFoundError",
    "VersionConflictError",
    # Stores
    "JsonLibraryStore",
    "ZoteroWebStore",
    "create_json_store",
    "create_zotero_store",
    # Context
    "collect_context",
]
