"""Structured tagging with corpus-consistent vocabulary.

Pipeline:
1. Index every ``key:value`` tag in the library into per-field frequencies
2. Render a frequency-ranked vocabulary guide (once per batch)
3. Summarize each document, then extract strict JSON steered by the guide
4. Normalize the result into a fixed schema
5. Union the tags into the document and upsert the ``# ai_metadata`` block

Example:
    >>> from tagsmith.services.tagger import TaggerConfig, create_pipeline
    >>> from tagsmith.services.library import create_json_store
    >>> from tagsmith.services.llm import create_chat_client
    >>> config = TaggerConfig.from_env()
    >>> store = create_json_store(Path("data/library.json"))
    >>> client = create_chat_client(config.api_key, config.model, config.base_url)
    >>> summary = await create_pipeline(store, client, config).run(["ABCD1234"])
"""

from .annotation import read_annotation, render_annotation_yaml, upsert_annotation_block
from .batch import TaggingPipeline, create_pipeline
from .config import CORE_FIELDS, TaggerConfig
from .errors import ConfigurationError, ExtractionError, MalformedOutputError, TaggerError
from .extractor import TwoStageExtractor, parse_json_response
from .models import BatchSummary, DocumentOutcome, NormalizedRecord, OutcomeStatus
from .normalizer import normalize_institution, normalize_result
from .prompts import render_vocabulary_guide
from .vocabulary import FieldFrequencies, build_field_frequencies, load_corpus_tags
from .writeback import apply_record, compose_tags

__all__ = [
    # Models
    "NormalizedRecord",
    "DocumentOutcome",
    "BatchSummary",
    "OutcomeStatus",
    # Configuration
    "TaggerConfig",
    "CORE_FIELDS",
    # Errors
    "TaggerError",
    "ConfigurationError",
    "ExtractionError",
    "MalformedOutputError",
    # Components
    "FieldFrequencies",
    "TwoStageExtractor",
    "TaggingPipeline",
    # Functions
    "build_field_frequencies",
    "load_corpus_tags",
    "render_vocabulary_guide",
    "parse_json_response",
    "normalize_result",
    "normalize_institution",
    "compose_tags",
    "apply_record",
    "render_annotation_yaml",
    "upsert_annotation_block",
    "read_annotation",
    "create_pipeline",
]
