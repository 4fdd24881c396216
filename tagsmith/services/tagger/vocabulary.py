"""Corpus vocabulary: per-field frequency tables built from structured tags."""

import logging
import re
from collections import Counter
from typing import Dict, Iterable, List, Optional, Tuple

from tagsmith.services.library.protocols import TagSource

logger = logging.getLogger(__name__)

# key: lowercase letters/underscores; value: anything without a colon
STRUCTURED_TAG_RE = re.compile(r"^([a-z_]+):([^:]+)$")


def parse_structured_tag(tag: str) -> Optional[Tuple[str, str]]:
    """Split a ``key:value`` tag.

    Args:
        tag: Raw tag label

    Returns:
        (key, value) with both trimmed, or None for unstructured tags
    """
    match = STRUCTURED_TAG_RE.match(tag or "")
    if not match:
        return None
    key = match.group(1).strip()
    value = match.group(2).strip()
    if not key or not value:
        return None
    return key, value


class FieldFrequencies:
    """Frequency table of structured tag values, grouped by field key."""

    def __init__(self):
        self.table: Dict[str, Counter] = {}
        self.total_count: int = 0

    def add(self, key: str, value: str) -> None:
        self.table.setdefault(key, Counter())[value] += 1
        self.total_count += 1

    def keys(self) -> List[str]:
        return list(self.table.keys())

    def values_for(self, key: str) -> Dict[str, int]:
        """Value → count mapping for one field (empty if unknown)."""
        return dict(self.table.get(key, {}))

    def ranked(self, key: str) -> List[Tuple[str, int]]:
        """Values of ``key`` by descending count, ties alphabetical."""
        return sorted(self.table.get(key, {}).items(), key=lambda kv: (-kv[1], kv[0]))

    def is_empty(self) -> bool:
        return self.total_count == 0

    def get_stats(self) -> Dict:
        return {
            "fields": len(self.table),
            "distinct_values": sum(len(values) for values in self.table.values()),
            "total_structured_tags": self.total_count,
        }

    def as_dict(self) -> Dict[str, Dict[str, int]]:
        return {key: dict(values) for key, values in self.table.items()}


def build_field_frequencies(tag_names: Iterable[str]) -> FieldFrequencies:
    """Count structured tags per field and value.

    Unstructured tags (no ``key:`` prefix, uppercase keys, extra colons)
    are ignored.
    """
    frequencies = FieldFrequencies()
    for name in tag_names:
        parsed = parse_structured_tag(name)
        if parsed:
            frequencies.add(*parsed)
    return frequencies


async def load_corpus_tags(source: TagSource) -> List[str]:
    """Read every tag occurrence in the corpus.

    Tries the store's global tag listing first and falls back to walking
    all documents. Never raises: if both sources fail the result is empty
    and the vocabulary guide degrades to nothing.
    """
    try:
        tags = await source.list_all_tags()
        logger.info(f"Loaded {len(tags)} corpus tags from global listing")
        return tags
    except Exception as e:
        logger.warning(f"Global tag listing unavailable ({e}); walking documents instead")

    try:
        document_ids = await source.list_document_ids()
    except Exception as e:
        logger.warning(f"Document enumeration failed, using empty vocabulary: {e}")
        return []

    tags: List[str] = []
    for document_id in document_ids:
        try:
            document = await source.get_document(document_id)
        except Exception as e:
            logger.debug(f"Skipping tags of {document_id}: {e}")
            continue
        tags.extend(document.tags)

    logger.info(f"Loaded {len(tags)} corpus tags from {len(document_ids)} documents")
    return tags
