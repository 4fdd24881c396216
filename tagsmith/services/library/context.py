"""Assemble the text context sent to the summarization stage."""

import logging
import re

from .models import Document
from .protocols import DocumentStore

logger = logging.getLogger(__name__)

_HTML_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")


def html_to_text(html: str) -> str:
    """Strip tags from note HTML and collapse whitespace."""
    text = _HTML_TAG_RE.sub(" ", html or "")
    return _WHITESPACE_RE.sub(" ", text).strip()


def clean_fulltext(text: str) -> str:
    """Tidy extracted PDF text.

    Single line breaks inside paragraphs become spaces, paragraph breaks
    are kept, runs of spaces/tabs collapse to one space.
    """
    if not text:
        return ""
    t = text.replace("\r", "\n")
    t = re.sub(r"\n{2,}", "\n\n", t)
    t = re.sub(r"([^\n])\n(?!\n)", r"\1 ", t)
    t = re.sub(r"[ \t]{2,}", " ", t)
    return t.strip()


async def collect_notes_text(store: DocumentStore, document_id: str, max_chars: int) -> str:
    """Concatenate child-note text, capped at ``max_chars``."""
    try:
        children = await store.get_children(document_id)
    except Exception as e:
        logger.warning(f"Could not list notes of {document_id}: {e}")
        return ""

    texts = []
    for child in children:
        if not child.is_note():
            continue
        text = html_to_text(child.note)
        if text:
            texts.append(text)
    return "\n".join(texts)[:max_chars]


async def collect_fulltext(store: DocumentStore, document_id: str, max_chars: int) -> str:
    """Concatenate cleaned full text of all PDF attachments, capped at ``max_chars``."""
    try:
        children = await store.get_children(document_id)
    except Exception as e:
        logger.warning(f"Could not list attachments of {document_id}: {e}")
        return ""

    parts = []
    for child in children:
        if not child.is_pdf():
            continue
        try:
            clean = clean_fulltext(await store.get_fulltext(child.id))
        except Exception as e:
            logger.warning(f"Full text read failed for attachment {child.id}: {e}")
            continue
        if clean:
            parts.append(clean)
    return "\n\n".join(parts)[:max_chars]


async def collect_context(
    store: DocumentStore,
    document: Document,
    use_notes: bool = True,
    max_notes_chars: int = 8000,
    fulltext_enabled: bool = True,
    max_fulltext_chars: int = 80000,
) -> str:
    """Build the ``Title / Abstract / PDFText / Notes / Extra`` context string.

    Empty sections are left out; sections are separated by a blank line.
    """
    notes = await collect_notes_text(store, document.id, max_notes_chars) if use_notes else ""
    pdf_text = (
        await collect_fulltext(store, document.id, max_fulltext_chars) if fulltext_enabled else ""
    )

    sections = [
        f"Title: {document.title}",
        f"Abstract: {document.abstract}" if document.abstract else "",
        f"PDFText: {pdf_text}" if pdf_text else "",
        f"Notes: {notes}" if notes else "",
        f"Extra: {document.extra}" if document.extra else "",
    ]
    return "\n\n".join(s for s in sections if s)
