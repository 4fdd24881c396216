"""Two-stage extraction: summarize the document, then extract strict JSON."""

import json
import logging
import re
from typing import Any, Dict, Optional

from tagsmith.lib.retry import retry_once_async
from tagsmith.services.llm.client import ChatClient, system_user

from .config import TaggerConfig
from .errors import ExtractionError, MalformedOutputError
from .prompts import (
    SUMMARIZE_SYSTEM_PROMPT,
    extract_system_prompt,
    extract_user_prompt,
    summarize_user_prompt,
)

logger = logging.getLogger(__name__)

_LEADING_FENCE_RE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_TRAILING_FENCE_RE = re.compile(r"\s*```$")


def recover_json_object(text: str) -> Optional[Dict[str, Any]]:
    """Salvage a JSON object from chatty model output.

    Strips code fences, then parses the span from the first ``{`` to the
    last ``}``. Returns None if nothing parseable is found.
    """
    if not text:
        return None
    t = _LEADING_FENCE_RE.sub("", text.strip())
    t = _TRAILING_FENCE_RE.sub("", t).strip()

    first = t.find("{")
    last = t.rfind("}")
    if first == -1 or last == -1 or last <= first:
        return None
    try:
        data = json.loads(t[first : last + 1])
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def parse_json_response(text: str) -> Dict[str, Any]:
    """Parse a stage-2 response as a JSON object.

    Raises:
        MalformedOutputError: if neither direct parsing nor recovery works
    """
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        data = None

    if isinstance(data, dict):
        return data

    recovered = recover_json_object(text)
    if recovered is None:
        raise MalformedOutputError("Model returned non-JSON or unparsable content")
    logger.debug("Recovered JSON object from fenced/chatty output")
    return recovered


class TwoStageExtractor:
    """Runs summarize → extract against a chat client.

    The vocabulary guide is fixed at construction and shared, unchanged,
    by every document processed with this extractor.
    """

    def __init__(self, client: ChatClient, config: TaggerConfig, guide: str = ""):
        self.client = client
        self.config = config
        self._guide = guide
        self._extract_system_prompt = extract_system_prompt(config.max_extended_fields)

    @property
    def guide(self) -> str:
        return self._guide

    async def summarize(self, context_text: str) -> str:
        """Stage 1: condense the document context into a short bullet digest."""
        messages = system_user(SUMMARIZE_SYSTEM_PROMPT, summarize_user_prompt(context_text))
        return await self.client.complete(messages, temperature=self.config.summary_temperature)

    async def extract(self, summary_text: str) -> Dict[str, Any]:
        """Stage 2: turn the digest into a JSON object of fields."""
        messages = system_user(
            self._extract_system_prompt,
            extract_user_prompt(summary_text, self._guide),
        )
        content = await self.client.complete(messages, temperature=self.config.extract_temperature)
        return parse_json_response(content)

    async def run_once(self, context_text: str) -> Dict[str, Any]:
        summary = await self.summarize(context_text)
        return await self.extract(summary)

    async def run(self, context_text: str) -> Dict[str, Any]:
        """Both stages, retried once as a whole after ``config.retry_delay``.

        Raises:
            ExtractionError: if the retry fails too
        """
        try:
            return await retry_once_async(
                lambda: self.run_once(context_text),
                delay=self.config.retry_delay,
                name="two-stage extraction",
            )
        except ExtractionError:
            raise
        except Exception as e:
            raise ExtractionError(f"Extraction failed after retry: {e}") from e
