"""Leitner box rules: daily queue, answer checking and box updates.

Everything here is pure. Records and words are read through their
attributes only, so ORM rows and plain objects work the same way.
"""
import logging
from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Optional

from vocabox.config import settings
from vocabox.errors import ValidationError
from vocabox.models.models import Student, StudentProgress, Word
from vocabox.models.progress_models import (
    DEFAULT_BOX_STATE,
    AnswerResult,
    BoxState,
    Outcome,
)

logger = logging.getLogger(__name__)


def today() -> date:
    """Local calendar date; the study queue resets when it changes."""
    return date.today()


def box_state_of(record: Optional[StudentProgress]) -> BoxState:
    """Box state of a word given its progress record, or the default when there is none."""
    if record is None:
        return DEFAULT_BOX_STATE
    return BoxState(
        box_number=record.box_number,
        last_studied_date=record.last_studied_date,
        has_record=True,
    )


def index_progress(progress: Iterable[StudentProgress]) -> Dict[int, StudentProgress]:
    """Map word id to progress record."""
    return {record.word_id: record for record in progress}


def build_daily_queue(
    student: Optional[Student],
    class_words: Iterable[Word],
    progress: Iterable[StudentProgress],
    day: date,
) -> List[Word]:
    """Words to study on `day`, highest box first.

    A word is eligible when it has no record or was not studied on `day`.
    Eligible words are emitted box by box from the highest occupied box
    down to the first one, keeping input order inside each box.
    """
    by_word = index_progress(progress)
    boxes = defaultdict(list)
    for word in class_words:
        if student is not None and word.class_name != student.class_name:
            continue
        state = box_state_of(by_word.get(word.id))
        if state.studied_on(day):
            continue
        boxes[state.box_number].append(word)

    if not boxes:
        return []

    queue = []
    for box in range(max(boxes), settings.learning.min_box - 1, -1):
        queue.extend(boxes.get(box, []))
    return queue


def accepted_meanings(word: Word) -> List[str]:
    """Normalised meanings a word accepts; blank entries are dropped."""
    meanings = (m.strip().lower() for m in word.turkish.split(settings.learning.answer_separator))
    return [m for m in meanings if m]


def evaluate_answer(word: Word, submitted_text: str) -> AnswerResult:
    """Check a typed answer against the word's meanings.

    The answer is correct when any meaning contains the submission or the
    submission contains any meaning (both trimmed and lowercased).
    """
    answer = (submitted_text or "").strip().lower()
    if not answer:
        raise ValidationError("Answer must not be empty")

    correct = any(
        meaning in answer or answer in meaning
        for meaning in accepted_meanings(word)
    )
    return AnswerResult(correct=correct)


def apply_outcome(
    record: Optional[StudentProgress], correct: bool, day: date
) -> Outcome:
    """New box and study date for a word after an answer.

    Correct answers move the word up one box (capped at the last box); an
    unseen word goes straight to the second box. Wrong answers leave the
    box unchanged. The box never goes down.
    """
    learning = settings.learning
    state = box_state_of(record)
    if correct:
        if state.has_record:
            new_box = min(state.box_number + 1, learning.max_box)
        else:
            new_box = learning.first_correct_box
    else:
        new_box = state.box_number

    return Outcome(box_number=new_box, last_studied_date=day, previous_box=state.box_number)
