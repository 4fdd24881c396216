"""Settings lookup: .env file → process environment → built-in defaults.

Usage:
    from tagsmith.lib.config_manager import config

    model = config.get("LLM_MODEL")
    cap = config.get("MAX_EXTENDED_FIELDS")  # "5" in the environment comes back as 5
"""

import logging
import os
from pathlib import Path
from typing import Any, Iterator, Optional

from dotenv import load_dotenv

from tagsmith.lib.defaults import DEFAULTS, get_default, is_sensitive

logger = logging.getLogger(__name__)

_TRUTHY = frozenset({"1", "true", "yes", "on"})


def _repo_root(start: Optional[Path] = None) -> Optional[Path]:
    """Nearest ancestor of ``start`` (default: cwd) holding a .git entry."""
    start = (start or Path.cwd()).resolve()
    for directory in (start, *start.parents):
        if (directory / ".git").exists():
            return directory
    return None


def _env_candidates(explicit: Optional[Path]) -> Iterator[Path]:
    if explicit is not None:
        yield explicit
    yield Path.cwd() / ".env"
    root = _repo_root()
    if root is not None:
        yield root / ".env"


def _parse_as(raw: str, default: Any) -> Any:
    """Interpret an environment string using the type of ``default``.

    Unparseable numbers fall back to the default.
    """
    if isinstance(default, bool):
        return raw.strip().lower() in _TRUTHY
    for number_type in (int, float):
        if isinstance(default, number_type):
            try:
                return number_type(raw)
            except ValueError:
                logger.warning(f"Ignoring non-numeric value {raw!r}, using {default!r}")
                return default
    return raw


class ConfigManager:
    """Resolves tagsmith settings.

    The first .env found (explicit path, cwd, repository root) is loaded
    once without overriding variables already set in the environment.
    """

    def __init__(self, env_file: Optional[Path] = None):
        self.env_file: Optional[Path] = None
        for candidate in _env_candidates(env_file):
            if candidate.is_file():
                load_dotenv(dotenv_path=candidate, override=False)
                self.env_file = candidate
                logger.debug(f"Loaded settings from {candidate}")
                break

    def get(self, key: str, default: Any = None) -> Any:
        """Value for ``key``, typed like its default."""
        fallback = default if default is not None else get_default(key)
        raw = os.environ.get(key)
        if raw is None:
            return fallback
        if fallback is None:
            return raw
        return _parse_as(raw, fallback)

    def get_all(self) -> dict[str, Any]:
        """Every known setting, resolved."""
        return {key: self.get(key) for key in DEFAULTS}

    def display_value(self, key: str, value: Any) -> str:
        """``value`` as text, with secrets reduced to their first/last 4 chars."""
        text = str(value)
        if not is_sensitive(key) or not text:
            return text
        if len(text) <= 8:
            return "*" * len(text)
        return f"{text[:4]}{'*' * (len(text) - 8)}{text[-4:]}"


config = ConfigManager()
