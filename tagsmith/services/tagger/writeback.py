"""Merge a NormalizedRecord into a document: tag union + annotation upsert."""

import logging
import re
from dataclasses import dataclass, field
from typing import List

from tagsmith.services.library.models import Document
from tagsmith.services.library.protocols import DocumentStore

from .annotation import DEFAULT_DELIMITER, DEFAULT_MARK, render_annotation_yaml, upsert_annotation_block
from .models import NormalizedRecord
from .normalizer import dedupe

logger = logging.getLogger(__name__)


@dataclass
class WriteReport:
    """What a merge changed on one document."""

    document_id: str
    tags_added: List[str] = field(default_factory=list)
    tags_failed: List[str] = field(default_factory=list)
    extra_changed: bool = False
    saved: bool = False

    @property
    def changed(self) -> bool:
        return bool(self.tags_added) or self.extra_changed


def compose_tags(record: NormalizedRecord) -> List[str]:
    """``field:value`` tags for a record, core fields first, no repeats.

    Colons inside a value become spaces so every tag stays ``field:value``.
    """
    tags = []
    for key, value in record.items():
        values = [value] if isinstance(value, str) else value
        for item in values:
            item = str(item).strip()
            if ":" in item:
                cleaned = re.sub(r"\s*:\s*", " ", item).strip()
                logger.debug(f"Colon in {key} value {item!r}; tagging as {cleaned!r}")
                item = cleaned
            if item:
                tags.append(f"{key}:{item}")
    return dedupe(tags)


def merge_record(
    document: Document,
    record: NormalizedRecord,
    delimiter: str = DEFAULT_DELIMITER,
    mark: str = DEFAULT_MARK,
) -> WriteReport:
    """Apply ``record`` to an in-memory document.

    Only tags missing from the document are added; a tag the document
    refuses is logged and skipped. The annotation block in ``extra`` is
    replaced in place or appended.
    """
    report = WriteReport(document_id=document.id)

    existing = set(document.tags)
    for tag in compose_tags(record):
        if tag in existing:
            continue
        try:
            if document.add_tag(tag):
                report.tags_added.append(tag)
                existing.add(tag)
        except Exception as e:
            logger.warning(f"Could not add tag {tag!r} to {document.id}: {e}")
            report.tags_failed.append(tag)

    body = render_annotation_yaml(record)
    if body:
        new_extra = upsert_annotation_block(document.extra, body, delimiter, mark)
        if new_extra != document.extra:
            document.extra = new_extra
            report.extra_changed = True

    return report


async def apply_record(
    store: DocumentStore,
    document_id: str,
    record: NormalizedRecord,
    delimiter: str = DEFAULT_DELIMITER,
    mark: str = DEFAULT_MARK,
    dry_run: bool = False,
) -> WriteReport:
    """Re-read the document, merge ``record`` and commit once.

    Nothing is written when the merge changes nothing, so re-applying the
    same record is a no-op.
    """
    document = await store.get_document(document_id)
    report = merge_record(document, record, delimiter, mark)

    if report.changed and not dry_run:
        await store.save(document)
        report.saved = True
        logger.debug(
            f"Saved {document_id}: +{len(report.tags_added)} tags, "
            f"extra {'updated' if report.extra_changed else 'unchanged'}"
        )

    return report
