"""Default configuration values for tagsmith.

All hardcoded defaults live here. The tagger should be fully functional
with these defaults (minus the LLM call, which needs an API key).

Config hierarchy: .env → environment → these defaults
"""

from typing import Any

# =============================================================================
# Configuration Defaults
# =============================================================================

DEFAULTS: dict[str, Any] = {
    # -------------------------------------------------------------------------
    # Text generation (OpenAI-compatible chat endpoint)
    # -------------------------------------------------------------------------
    "LLM_API_KEY": "",
    "LLM_BASE_URL": "https://api.deepseek.com",
    "LLM_MODEL": "deepseek-chat",
    "LLM_TIMEOUT_SECONDS": 120.0,
    "SUMMARY_TEMPERATURE": 0.2,
    "EXTRACT_TEMPERATURE": 0.1,
    "RETRY_DELAY_SECONDS": 0.6,

    # -------------------------------------------------------------------------
    # Document context
    # -------------------------------------------------------------------------
    "USE_NOTES": True,
    "MAX_NOTES_CHARS": 8000,
    "LOCAL_FULLTEXT_ENABLED": True,
    "MAX_FULLTEXT_CHARS": 80000,

    # -------------------------------------------------------------------------
    # Normalization / annotation block
    # -------------------------------------------------------------------------
    "MAX_EXTENDED_FIELDS": 3,
    "AI_YAML_MARK": "# ai_metadata",
    "YAML_BLOCK_HEADER": "---",

    # -------------------------------------------------------------------------
    # Corpus vocabulary guide
    # -------------------------------------------------------------------------
    "TAGS_TOTAL_SOFT_TRIGGER": 1500,
    "TAGS_PER_KEY_SOFT_CAP": 400,
    "TAGS_INCLUDE_COUNTS": True,

    # -------------------------------------------------------------------------
    # Zotero Web API (optional document store)
    # -------------------------------------------------------------------------
    "ZOTERO_API_KEY": "",
    "ZOTERO_LIBRARY_ID": "",
    "ZOTERO_LIBRARY_TYPE": "user",
    "ZOTERO_API_URL": "https://api.zotero.org",

    # -------------------------------------------------------------------------
    # Local JSON library (default document store)
    # -------------------------------------------------------------------------
    "LIBRARY_PATH": "data/library.json",

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    "LOG_LEVEL": "INFO",
}


# =============================================================================
# Sensitive Keys (masked when displayed)
# =============================================================================

SENSITIVE_KEYS = {
    "LLM_API_KEY",
    "ZOTERO_API_KEY",
}


def get_default(key: str) -> Any:
    """Get the default value for a config key.

    Args:
        key: Configuration key name

    Returns:
        Default value, or None if key not found
    """
    return DEFAULTS.get(key)


def is_sensitive(key: str) -> bool:
    """Check if a config key contains sensitive data."""
    return key in SENSITIVE_KEYS
