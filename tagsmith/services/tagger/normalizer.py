"""Shape raw extraction output into a NormalizedRecord."""

import logging
import re
from typing import Any, Dict, List, Mapping

from .config import CORE_FIELDS, SCALAR_FIELDS
from .models import FIELD_KEY_RE, NormalizedRecord

logger = logging.getLogger(__name__)

# Full institution name → canonical short form. Matched case-insensitively
# and exactly; anything else passes through unchanged.
INSTITUTION_ABBREVIATIONS: Dict[str, str] = {
    "Massachusetts Institute of Technology": "MIT",
    "Stanford University": "Stanford",
    "Carnegie Mellon University": "CMU",
    "University of California, Berkeley": "UC Berkeley",
    "University of California Berkeley": "UC Berkeley",
    "California Institute of Technology": "Caltech",
    "University of Illinois Urbana-Champaign": "UIUC",
    "University of Illinois at Urbana-Champaign": "UIUC",
    "University of Michigan": "UMich",
    "Georgia Institute of Technology": "Georgia Tech",
    "University of Washington": "UW",
    "Princeton University": "Princeton",
    "Harvard University": "Harvard",
    "Columbia University": "Columbia",
    "ETH Zurich": "ETH Zurich",
    "École Polytechnique Fédérale de Lausanne": "EPFL",
    "University of Oxford": "Oxford",
    "University of Cambridge": "Cambridge",
    "National University of Singapore": "NUS",
    "Nanyang Technological University": "NTU",
    "University of Tokyo": "UTokyo",
    "Tsinghua University": "Tsinghua",
    "Peking University": "PKU",
    "The Chinese University of Hong Kong": "CUHK",
    "The University of Hong Kong": "HKU",
    "University of Toronto": "UofT",
}

_FULL_NAME_INDEX = {full.lower(): abbr for full, abbr in INSTITUTION_ABBREVIATIONS.items()}

_CJK_RE = re.compile(r"[\u3400-\u9fff]")


def has_cjk(text: str) -> bool:
    """True if ``text`` contains a CJK unified ideograph."""
    return bool(_CJK_RE.search(text or ""))


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(ensure_list(value))
    return str(value).strip()


def dedupe(items: List[str]) -> List[str]:
    """Drop repeats, keeping first occurrences in order."""
    seen = set()
    out = []
    for item in items:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out


def ensure_list(value: Any) -> List[str]:
    """Coerce a scalar or list into unique, trimmed, non-empty strings."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        items = [_to_text(v) for v in value if v is not None]
    else:
        items = [_to_text(value)]
    return dedupe([item for item in items if item])


def normalize_institution(name: str) -> str:
    """Map well-known institution names to their short form.

    Names written in CJK script are kept as-is, as are names that are
    already a known abbreviation or that are not in the table.
    """
    raw = (name or "").strip()
    if not raw or has_cjk(raw):
        return raw

    return _FULL_NAME_INDEX.get(raw.lower(), raw)


def normalize_result(raw: Mapping[str, Any], max_extended_fields: int = 3) -> NormalizedRecord:
    """Validate and shape a raw extraction result.

    Args:
        raw: Parsed JSON object from the extraction stage
        max_extended_fields: Maximum number of non-core fields to keep

    Returns:
        NormalizedRecord; ``is_empty()`` signals nothing usable was found
    """
    if not isinstance(raw, Mapping):
        logger.debug(f"Extraction result is {type(raw).__name__}, not a mapping")
        return NormalizedRecord()

    core: Dict[str, Any] = {}
    for name in CORE_FIELDS:
        if name not in raw:
            continue
        if name in SCALAR_FIELDS:
            text = _to_text(raw[name])
            if text:
                core[name] = text
        else:
            values = ensure_list(raw[name])
            if values:
                core[name] = values

    if "institution" in core:
        core["institution"] = normalize_institution(core["institution"])

    extended: Dict[str, List[str]] = {}
    for key, value in raw.items():
        if key in CORE_FIELDS:
            continue
        if len(extended) >= max_extended_fields:
            break
        if not isinstance(key, str) or not FIELD_KEY_RE.match(key):
            logger.debug(f"Dropping extended field with invalid key {key!r}")
            continue
        values = ensure_list(value)
        if values:
            extended[key] = values

    return NormalizedRecord(**core, extended=extended)
