"""Prompts for the two extraction stages and the corpus vocabulary guide."""

from typing import Iterable, List

from .config import CORE_FIELDS, TaggerConfig
from .vocabulary import FieldFrequencies

SUMMARIZE_SYSTEM_PROMPT = """You are an assistant that distills robotics paper context into a concise bullet summary for information extraction.
Rules:
- Output plain English text, 6-12 short bullets, no JSON, no numbering.
- Keep only facts likely present in the paper: institutions, methods, robot platforms, tasks, datasets, etc.
- Avoid speculation; if unknown, omit.
- Max ~200 words."""


EXTRACT_SYSTEM_PROMPT_TEMPLATE = """IMPORTANT: Your entire response MUST be ONLY valid JSON (no code fences, no commentary).
You extract structured research metadata for robotics papers.

Fields:
- institution: string (CN universities keep Chinese; top global universities use abbreviations like MIT/CMU/UC Berkeley/Stanford/etc.; others keep original full/short name)
- method_name: array of short names; if a variant, use "XXX-like". Prefer common acronym first, optionally full name in parentheses.
- research_content: array of main technical contents (e.g., "GAN", "teacher student framework"), short phrases (<=3 words).
- research_type: string (e.g., "algorithm", "control", "planning", "model", "RL", "vision").
- robot_name: array of platform names exactly as used (e.g., "Unitree G1", "Atlas", "Digit").
- robot_type: array of categories (e.g., "humanoid", "animated humanoid", "bipedal", "quadruped", "manipulator").
- task: array of tasks (e.g., "locomotion", "loco-manipulation", "ladder climbing", "parkour").

Extended fields (optional, max {max_extended}) if clearly present:
- dataset, benchmark, sim2real, hardware, sensors, simulator, pretrain, etc.
Use lowercase snake_case for extended field names.

Rules:
- If a field is unknown, OMIT it entirely (do not guess; do not put null/unknown).
- Keep phrases concise (<=3 words) and in English, EXCEPT "institution" rule above.
- Do not include punctuation in values except hyphen inside a method like "ASE-like".
- IMPORTANT: When choosing values for method_name/research_content/research_type/robot_name/robot_type/task and any extended keys,
  you MUST prefer and reuse existing tags provided below if semantically equivalent, and prefer the highest-frequency variant.
"""


GUIDE_PREAMBLE = """Use the existing structured tags to standardize your output.
- Reuse an existing tag if your candidate is semantically equivalent.
- Prefer the most frequent variant (highest count).
- Do NOT invent near-duplicates; snap to the closest existing tag form.
- Keep keys as provided (e.g., method_name/task/robot_type/...)."""


def extract_system_prompt(max_extended_fields: int) -> str:
    return EXTRACT_SYSTEM_PROMPT_TEMPLATE.format(max_extended=max_extended_fields)


def summarize_user_prompt(context_text: str) -> str:
    return f"Context:\n{context_text}\n\nSummarize now."


def extract_user_prompt(summary_text: str, guide_text: str = "") -> str:
    """Stage 2 user message: the summary, the vocabulary guide (if any), the ask."""
    parts = [f"Summary:\n{summary_text}"]
    if guide_text:
        parts.append(guide_text)
    parts.append("Now output ONLY the JSON object with the above fields that are present.")
    return "\n\n".join(parts)


def order_fields(keys: Iterable[str]) -> List[str]:
    """Core fields first in their fixed order, then the rest alphabetically."""
    keys = list(keys)
    core = [k for k in CORE_FIELDS if k in keys]
    rest = sorted(k for k in keys if k not in CORE_FIELDS)
    return core + rest


def render_vocabulary_guide(frequencies: FieldFrequencies, config: TaggerConfig) -> str:
    """Render the field-grouped list of existing tag values.

    Values are ranked by frequency (ties alphabetical). Above
    ``config.huge_corpus_threshold`` structured tags, each field keeps
    only its top ``config.per_field_cap`` values.

    Returns:
        Guide text, or "" when the corpus has no structured tags
    """
    huge = frequencies.total_count > config.huge_corpus_threshold

    sections = []
    for key in order_fields(frequencies.keys()):
        ranked = frequencies.ranked(key)
        if huge:
            ranked = ranked[: config.per_field_cap]
        if not ranked:
            continue
        if config.include_counts:
            lines = [f"- {value} ({count})" for value, count in ranked]
        else:
            lines = [f"- {value}" for value, _ in ranked]
        sections.append(f"Existing {key} tags:\n" + "\n".join(lines))

    if not sections:
        return ""
    return GUIDE_PREAMBLE + "\n\n" + "\n\n".join(sections)
