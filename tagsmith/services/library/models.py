"""Data models for library documents."""

from typing import Optional

from pydantic import BaseModel, Field

# Zotero rejects tags longer than this.
MAX_TAG_LENGTH = 255

NON_REGULAR_TYPES = frozenset({"attachment", "note", "annotation"})


class Document(BaseModel):
    """A library item as seen by the tagger.

    Only the fields the tagger reads or writes are modelled; stores keep
    whatever else they need on their side.
    """

    id: str
    item_type: str = "journalArticle"
    title: str = ""
    abstract: str = ""
    extra: str = ""
    tags: list[str] = Field(default_factory=list)
    version: int = 0
    parent_id: Optional[str] = None

    def is_regular(self) -> bool:
        """Regular items are papers/books/etc., not attachments or notes."""
        return self.item_type not in NON_REGULAR_TYPES

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags

    def add_tag(self, tag: str) -> bool:
        """Attach ``tag``; returns False when it was already present.

        Raises:
            ValueError: if the tag is empty or too long for the store
        """
        tag = tag.strip()
        if not tag:
            raise ValueError("Tag is empty")
        if len(tag) > MAX_TAG_LENGTH:
            raise ValueError(f"Tag longer than {MAX_TAG_LENGTH} characters: {tag[:40]}...")
        if tag in self.tags:
            return False
        self.tags.append(tag)
        return True


class ChildItem(BaseModel):
    """A note or attachment hanging off a document."""

    id: str
    item_type: str
    note: str = ""
    content_type: str = ""

    def is_note(self) -> bool:
        return self.item_type == "note"

    def is_pdf(self) -> bool:
        return self.item_type == "attachment" and self.content_type.lower() == "application/pdf"
