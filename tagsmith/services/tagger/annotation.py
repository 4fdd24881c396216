"""The ``# ai_metadata`` block kept inside a document's ``extra`` field.

Block layout::

    ---
    # ai_metadata
    institution: MIT
    task:
      - locomotion
      - parkour
    ---

Colons inside values are written as ``\\:``, backslashes as ``\\\\`` and
newlines as spaces so the body stays one value per line.

The block is handled as a parser/printer pair: ``split_annotation`` cuts
the field into prefix / block / suffix, ``upsert_annotation_block`` prints
prefix / new block / suffix. Text around the block is never touched.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Union

from .models import NormalizedRecord

DEFAULT_DELIMITER = "---"
DEFAULT_MARK = "# ai_metadata"


@dataclass
class AnnotationParts:
    """A free-text field split around its annotation block.

    ``prefix + block + suffix`` reproduces the original text exactly.
    """

    prefix: str
    block: Optional[str]
    suffix: str


def escape_value(value: str) -> str:
    text = str(value).replace("\n", " ").replace("\\", "\\\\")
    return text.replace(":", "\\:").strip()


def unescape_value(value: str) -> str:
    out = []
    chars = iter(value)
    for char in chars:
        if char == "\\":
            char = next(chars, "\\")
        out.append(char)
    return "".join(out)


def render_annotation_yaml(record: NormalizedRecord) -> str:
    """Render a record as the block body (without delimiters)."""
    lines: List[str] = []
    for key, value in record.items():
        if isinstance(value, list):
            items = [escape_value(v) for v in value]
            items = [v for v in items if v]
            if not items:
                continue
            lines.append(f"{key}:")
            lines.extend(f"  - {item}" for item in items)
        else:
            text = escape_value(value)
            if text:
                lines.append(f"{key}: {text}")
    return "\n".join(lines)


def parse_annotation_yaml(body: str) -> Dict[str, Union[str, List[str]]]:
    """Read a block body back into ``field -> value(s)``."""
    result: Dict[str, Union[str, List[str]]] = {}
    current_list: Optional[List[str]] = None

    for line in body.splitlines():
        if not line.strip() or line.strip().startswith("#"):
            continue
        stripped = line.strip()
        if stripped.startswith("- ") and current_list is not None:
            current_list.append(unescape_value(stripped[2:].strip()))
            continue

        # Split on the first unescaped colon
        key, sep, rest = _split_unescaped(stripped)
        if not sep:
            continue
        rest = rest.strip()
        if rest:
            result[key] = unescape_value(rest)
            current_list = None
        else:
            current_list = []
            result[key] = current_list

    return result


def _split_unescaped(line: str):
    i = 0
    while i < len(line):
        if line[i] == "\\":
            i += 2
            continue
        if line[i] == ":":
            return line[:i].strip(), ":", line[i + 1 :]
        i += 1
    return line, "", ""


def split_annotation(
    text: str,
    delimiter: str = DEFAULT_DELIMITER,
    mark: str = DEFAULT_MARK,
) -> AnnotationParts:
    """Find the first annotation block in ``text``.

    A block starts at a delimiter line, has the marker on the next line
    (one stray line in between is tolerated), and ends at the next
    delimiter line after the marker.
    """
    text = text or ""
    lines = text.split("\n")

    offsets = []
    position = 0
    for line in lines:
        offsets.append(position)
        position += len(line) + 1

    for start, line in enumerate(lines):
        if line.strip() != delimiter:
            continue

        mark_index = None
        for candidate in (start + 1, start + 2):
            if candidate < len(lines) and lines[candidate].strip() == mark:
                mark_index = candidate
                break
        if mark_index is None:
            continue

        end = next(
            (j for j in range(mark_index + 1, len(lines)) if lines[j].strip() == delimiter),
            None,
        )
        if end is None:
            continue

        block_start = offsets[start]
        block_end = offsets[end] + len(lines[end])
        return AnnotationParts(
            prefix=text[:block_start],
            block=text[block_start:block_end],
            suffix=text[block_end:],
        )

    return AnnotationParts(prefix=text, block=None, suffix="")


def _drop_blocks(text: str, delimiter: str, mark: str) -> str:
    """Remove any further annotation blocks (left over from older runs)."""
    parts = split_annotation(text, delimiter, mark)
    while parts.block is not None:
        text = parts.prefix.rstrip("\n") + parts.suffix
        parts = split_annotation(text, delimiter, mark)
    return text


def build_block(body: str, delimiter: str = DEFAULT_DELIMITER, mark: str = DEFAULT_MARK) -> str:
    return f"{delimiter}\n{mark}\n{body}\n{delimiter}"


def upsert_annotation_block(
    text: str,
    body: str,
    delimiter: str = DEFAULT_DELIMITER,
    mark: str = DEFAULT_MARK,
) -> str:
    """Insert or replace the annotation block in a free-text field.

    - existing block: replaced in place, surrounding text untouched
    - no block: appended after the existing text with one blank line
    - empty field: the block becomes the whole field
    """
    block = build_block(body, delimiter, mark)
    if not text or not text.strip():
        return block

    parts = split_annotation(text, delimiter, mark)
    if parts.block is None:
        return text.rstrip() + "\n\n" + block

    suffix = _drop_blocks(parts.suffix, delimiter, mark)
    return parts.prefix + block + suffix


def read_annotation(
    text: str,
    delimiter: str = DEFAULT_DELIMITER,
    mark: str = DEFAULT_MARK,
) -> Optional[Dict[str, Union[str, List[str]]]]:
    """Parse the annotation block of a field, or None if there is none."""
    parts = split_annotation(text, delimiter, mark)
    if parts.block is None:
        return None
    body_lines = parts.block.split("\n")[1:-1]
    return parse_annotation_yaml("\n".join(body_lines))
