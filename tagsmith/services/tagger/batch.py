"""Sequential batch loop: vocabulary → guide → per-document extract & write.

Usage:
    pipeline = create_pipeline(store, client, TaggerConfig.from_env())
    summary = await pipeline.run(["ABCD1234", "EFGH5678"])
    print(summary.as_dict())  # {"succeeded": 2, "skipped": 0, "failed": 0}
"""

import logging
from typing import Iterable, Optional

from tagsmith.lib.logging_config import log_with_context
from tagsmith.services.library.context import collect_context
from tagsmith.services.library.protocols import DocumentStore
from tagsmith.services.llm.client import ChatClient

from .config import TaggerConfig
from .errors import ConfigurationError
from .extractor import TwoStageExtractor
from .models import BatchSummary, DocumentOutcome
from .normalizer import normalize_result
from .prompts import render_vocabulary_guide
from .vocabulary import FieldFrequencies, build_field_frequencies, load_corpus_tags
from .writeback import apply_record

logger = logging.getLogger(__name__)


class TaggingPipeline:
    """Runs structured tagging over an explicit list of documents.

    Documents are processed one at a time. A failure in one document is
    recorded and the loop moves on.
    """

    def __init__(
        self,
        store: DocumentStore,
        client: ChatClient,
        config: TaggerConfig,
        dry_run: bool = False,
    ):
        self.store = store
        self.client = client
        self.config = config
        self.dry_run = dry_run
        self.frequencies: Optional[FieldFrequencies] = None
        self.extractor: Optional[TwoStageExtractor] = None

    async def prepare(self) -> str:
        """Index corpus tags and render the vocabulary guide (once per batch)."""
        tags = await load_corpus_tags(self.store)
        self.frequencies = build_field_frequencies(tags)
        guide = render_vocabulary_guide(self.frequencies, self.config)
        self.extractor = TwoStageExtractor(self.client, self.config, guide)
        logger.info(
            f"Vocabulary guide ready: {self.frequencies.total_count} structured tags "
            f"in {len(self.frequencies.keys())} fields"
        )
        return guide

    async def process_document(self, document_id: str) -> DocumentOutcome:
        """Extract, normalize and write back one document.

        Never raises; failures come back as a ``failed`` outcome.
        """
        if self.extractor is None:
            await self.prepare()

        try:
            document = await self.store.get_document(document_id)
            if not document.is_regular():
                return DocumentOutcome.skip(document_id, f"not a regular item ({document.item_type})")

            context = await collect_context(
                self.store,
                document,
                use_notes=self.config.use_notes,
                max_notes_chars=self.config.max_notes_chars,
                fulltext_enabled=self.config.fulltext_enabled,
                max_fulltext_chars=self.config.max_fulltext_chars,
            )
            if not context.strip():
                return DocumentOutcome.skip(document_id, "no document context")

            raw = await self.extractor.run(context)
            if not raw:
                return DocumentOutcome.skip(document_id, "extraction returned nothing")

            record = normalize_result(raw, self.config.max_extended_fields)
            if record.is_empty():
                return DocumentOutcome.skip(document_id, "nothing usable after normalization")

            report = await apply_record(
                self.store,
                document_id,
                record,
                delimiter=self.config.yaml_delimiter,
                mark=self.config.yaml_mark,
                dry_run=self.dry_run,
            )
            return DocumentOutcome.ok(document_id, record, tags_added=report.tags_added)

        except Exception as e:
            log_with_context(
                logger,
                "warning",
                f"Document failed: {type(e).__name__}: {e}",
                document_id=document_id,
            )
            return DocumentOutcome.fail(document_id, f"{type(e).__name__}: {e}")

    async def run(self, document_ids: Iterable[str]) -> BatchSummary:
        """Process every document in order and report aggregate counts.

        Raises:
            ConfigurationError: if no API key is configured or the batch is empty
        """
        document_ids = list(document_ids)
        if not self.config.has_api_key():
            raise ConfigurationError("LLM_API_KEY is not set")
        if not document_ids:
            raise ConfigurationError("No documents to process")

        await self.prepare()

        summary = BatchSummary()
        for index, document_id in enumerate(document_ids, 1):
            outcome = await self.process_document(document_id)
            summary.add(outcome)
            log_with_context(
                logger,
                "info",
                f"[{index}/{len(document_ids)}] {outcome.status.value}",
                document_id=document_id,
                reason=outcome.reason,
                tags_added=len(outcome.tags_added),
            )

        logger.info(
            f"Batch complete: {summary.succeeded} succeeded, "
            f"{summary.skipped} skipped, {summary.failed} failed"
        )
        return summary


def create_pipeline(
    store: DocumentStore,
    client: ChatClient,
    config: Optional[TaggerConfig] = None,
    dry_run: bool = False,
) -> TaggingPipeline:
    """Create a tagging pipeline (config defaults to the environment)."""
    return TaggingPipeline(store, client, config or TaggerConfig.from_env(), dry_run=dry_run)
