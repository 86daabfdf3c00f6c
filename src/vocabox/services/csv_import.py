"""Parsing of roster and vocabulary uploads.

Roster lines are ``code,name,class``; vocabulary lines are
``class,english,turkish`` where the last field may hold several meanings
separated by ``;``. Lines with fewer than three fields are skipped and
reported, never fatal to the upload.
"""
import logging
from typing import Callable, List, Sequence, TypeVar

from vocabox.errors import ValidationError
from vocabox.models.progress_models import ParseResult, SkippedRow, StudentRow, WordRow

logger = logging.getLogger(__name__)

ROSTER_COLUMNS = ("code", "name", "class")
VOCABULARY_COLUMNS = ("class", "english", "turkish")

RowT = TypeVar("RowT")


def split_line(line: str, columns: Sequence[str]) -> List[str]:
    """Split one line into trimmed fields, raising ValidationError when fields are missing."""
    parts = [part.strip() for part in line.split(",")]
    if len(parts) < len(columns):
        raise ValidationError(
            f"Expected {len(columns)} fields ({','.join(columns)}), got {len(parts)}"
        )
    missing = [name for name, value in zip(columns, parts) if not value]
    if missing:
        raise ValidationError(f"Empty field(s): {', '.join(missing)}")
    return parts[: len(columns)]


def _is_header(parts: List[str], columns: Sequence[str]) -> bool:
    return [part.lower() for part in parts] == list(columns)


def _parse(text: str, columns: Sequence[str], build: Callable[[List[str]], RowT]) -> ParseResult:
    result = ParseResult()
    first_line = True
    for line_number, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line:
            continue
        is_first, first_line = first_line, False
        try:
            parts = split_line(line, columns)
        except ValidationError as e:
            logger.warning("Skipping line %d: %s", line_number, e)
            result.skipped.append(SkippedRow(line_number=line_number, line=line, reason=str(e)))
            continue
        if is_first and _is_header(parts, columns):
            continue
        result.rows.append(build(parts))
    return result


def parse_student_rows(text: str) -> ParseResult:
    """Parse a roster upload."""
    return _parse(
        text,
        ROSTER_COLUMNS,
        lambda parts: StudentRow(code=parts[0], name=parts[1], class_name=parts[2]),
    )


def parse_word_rows(text: str) -> ParseResult:
    """Parse a vocabulary upload."""
    return _parse(
        text,
        VOCABULARY_COLUMNS,
        lambda parts: WordRow(class_name=parts[0], english=parts[1], turkish=parts[2]),
    )
