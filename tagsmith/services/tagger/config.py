"""Configuration for the structured tagging service."""

from dataclasses import dataclass

from tagsmith.lib.config_manager import ConfigManager, config as default_config

# Core fields in the order they are prompted, tagged and written.
CORE_FIELDS: tuple[str, ...] = (
    "institution",
    "method_name",
    "research_content",
    "research_type",
    "robot_name",
    "robot_type",
    "task",
)

# Core fields holding a single string; the rest are lists.
SCALAR_FIELDS: frozenset[str] = frozenset({"institution", "research_type"})


@dataclass(frozen=True)
class TaggerConfig:
    """Immutable configuration passed to every tagger component.

    Attributes:
        api_key: Key for the chat completion endpoint
        base_url: OpenAI-compatible endpoint base URL
        model: Chat model name
        timeout: Request timeout in seconds
        summary_temperature: Temperature for stage 1 (summarize)
        extract_temperature: Temperature for stage 2 (extract)
        retry_delay: Seconds to wait before the single pipeline retry
        use_notes: Include child-note text in the document context
        max_notes_chars: Cap on concatenated note text
        fulltext_enabled: Include attachment full text in the context
        max_fulltext_chars: Cap on concatenated full text
        max_extended_fields: Maximum number of non-core fields kept
        yaml_mark: Marker line identifying the annotation block
        yaml_delimiter: Line opening and closing the annotation block
        huge_corpus_threshold: Structured-tag count above which the guide is truncated
        per_field_cap: Values kept per field in huge-corpus mode
        include_counts: Show ``(count)`` after each value in the guide
    """

    api_key: str = ""
    base_url: str = "https://api.deepseek.com"
    model: str = "deepseek-chat"
    timeout: float = 120.0
    summary_temperature: float = 0.2
    extract_temperature: float = 0.1
    retry_delay: float = 0.6

    use_notes: bool = True
    max_notes_chars: int = 8000
    fulltext_enabled: bool = True
    max_fulltext_chars: int = 80000

    max_extended_fields: int = 3
    yaml_mark: str = "# ai_metadata"
    yaml_delimiter: str = "---"

    huge_corpus_threshold: int = 1500
    per_field_cap: int = 400
    include_counts: bool = True

    @classmethod
    def from_env(cls, manager: ConfigManager = default_config) -> "TaggerConfig":
        """Build a config from .env / environment / defaults."""
        return cls(
            api_key=manager.get("LLM_API_KEY"),
            base_url=manager.get("LLM_BASE_URL"),
            model=manager.get("LLM_MODEL"),
            timeout=manager.get("LLM_TIMEOUT_SECONDS"),
            summary_temperature=manager.get("SUMMARY_TEMPERATURE"),
            extract_temperature=manager.get("EXTRACT_TEMPERATURE"),
            retry_delay=manager.get("RETRY_DELAY_SECONDS"),
            use_notes=manager.get("USE_NOTES"),
            max_notes_chars=manager.get("MAX_NOTES_CHARS"),
            fulltext_enabled=manager.get("LOCAL_FULLTEXT_ENABLED"),
            max_fulltext_chars=manager.get("MAX_FULLTEXT_CHARS"),
            max_extended_fields=manager.get("MAX_EXTENDED_FIELDS"),
            yaml_mark=manager.get("AI_YAML_MARK"),
            yaml_delimiter=manager.get("YAML_BLOCK_HEADER"),
            huge_corpus_threshold=manager.get("TAGS_TOTAL_SOFT_TRIGGER"),
            per_field_cap=manager.get("TAGS_PER_KEY_SOFT_CAP"),
            include_counts=manager.get("TAGS_INCLUDE_COUNTS"),
        )

    def has_api_key(self) -> bool:
        """True when a real (non-placeholder) API key is configured."""
        key = (self.api_key or "").strip()
        if not key:
            return False
        upper = key.upper()
        return not (upper.startswith("YOUR_") and upper.endswith("_HERE"))
