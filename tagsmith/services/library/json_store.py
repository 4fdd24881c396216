"""Local JSON-file implementation of the DocumentStore protocol.

File layout::

    {
      "documents": [
        {
          "id": "ABCD1234",
          "item_type": "journalArticle",
          "title": "...",
          "abstract": "...",
          "extra": "...",
          "tags": ["task:locomotion"],
          "version": 3,
          "children": [
            {"id": "N1", "item_type": "note", "note": "<p>...</p>"},
            {"id": "A1", "item_type": "attachment",
             "content_type": "application/pdf", "fulltext": "..."}
          ]
        }
      ]
    }
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any, Optional

from .models import ChildItem, Document
from .protocols import DocumentNotFoundError, StoreError, VersionConflictError

logger = logging.getLogger(__name__)

_DOCUMENT_FIELDS = set(Document.model_fields)


class JsonLibraryStore:
    """Document store backed by a single JSON file.

    The whole file is loaded on construction and rewritten atomically
    (temp file + rename) on every save.
    """

    def __init__(self, path: Optional[Path] = None, data: Optional[dict[str, Any]] = None):
        """Initialize the store.

        Args:
            path: JSON file to read and write. If None, the store is memory-only.
            data: Initial content (used instead of reading ``path``)
        """
        self.path = path
        self._entries: dict[str, dict[str, Any]] = {}
        self._order: list[str] = []

        if data is None and path is not None and path.exists():
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)

        for entry in (data or {}).get("documents", []):
            doc_id = str(entry["id"])
            self._entries[doc_id] = copy.deepcopy(entry)
            self._order.append(doc_id)

    def _entry(self, document_id: str) -> dict[str, Any]:
        entry = self._entries.get(document_id)
        if entry is None:
            raise DocumentNotFoundError(f"Document not found: {document_id}")
        return entry

    async def list_all_tags(self) -> list[str]:
        tags: list[str] = []
        for doc_id in self._order:
            tags.extend(self._entries[doc_id].get("tags", []))
        return tags

    async def list_document_ids(self) -> list[str]:
        return list(self._order)

    async def get_document(self, document_id: str) -> Document:
        entry = self._entry(document_id)
        fields = {k: copy.deepcopy(v) for k, v in entry.items() if k in _DOCUMENT_FIELDS}
        return Document(**fields)

    async def get_children(self, document_id: str) -> list[ChildItem]:
        entry = self._entry(document_id)
        return [ChildItem(**child) for child in entry.get("children", [])]

    async def get_fulltext(self, attachment_id: str) -> str:
        for entry in self._entries.values():
            for child in entry.get("children", []):
                if child.get("id") == attachment_id:
                    return child.get("fulltext", "") or ""
        return ""

    async def save(self, document: Document) -> None:
        entry = self._entry(document.id)
        if entry.get("version", 0) != document.version:
            raise VersionConflictError(
                f"Document {document.id} changed since read "
                f"(store v{entry.get('version', 0)}, local v{document.version})"
            )

        updated = copy.deepcopy(entry)
        updated["tags"] = list(document.tags)
        updated["extra"] = document.extra
        updated["version"] = document.version + 1

        previous = self._entries[document.id]
        self._entries[document.id] = updated
        try:
            self._flush()
        except OSError as e:
            self._entries[document.id] = previous
            raise StoreError(f"Failed to write {self.path}: {e}") from e

        document.version = updated["version"]

    def _flush(self) -> None:
        if self.path is None:
            return
        data = {"documents": [self._entries[doc_id] for doc_id in self._order]}
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        tmp_path.replace(self.path)
        logger.debug(f"Wrote {len(self._order)} documents to {self.path}")


def create_json_store(path: Path) -> JsonLibraryStore:
    """Open (or start) a JSON library at ``path``."""
    return JsonLibraryStore(path=path)
