"""Progress store and the box engine wired to it."""
import logging
from datetime import date
from typing import Iterable, List, Optional, Set, Tuple

from sqlalchemy.orm import Session

from vocabox.config import settings
from vocabox.errors import ValidationError, persistence_guard
from vocabox.models.models import Student, StudentProgress, Word
from vocabox.models.progress_models import (
    AnswerFeedback,
    BoxDistribution,
    BoxState,
    Outcome,
)
from vocabox.monitoring import answers, box_promotions, request_duration
from vocabox.services import progress_engine
from vocabox.services.progress_engine import (
    apply_outcome,
    box_state_of,
    build_daily_queue,
    evaluate_answer,
)
from vocabox.services.stats import compute_box_distribution, words_in_box
from vocabox.services.word_service import WordService

logger = logging.getLogger(__name__)


class ProgressService:
    """Reads and writes progress records and runs the box rules over them."""

    def __init__(self, db: Session):
        """Initialize the service with a database session."""
        self.db = db
        self.word_service = WordService(db)

    def list_progress_by_student(self, student_id: int) -> List[StudentProgress]:
        """All progress records of a student."""
        with persistence_guard(self.db, "list_progress_by_student"):
            return (
                self.db.query(StudentProgress)
                .filter(StudentProgress.student_id == student_id)
                .all()
            )

    def get_progress(self, student_id: int, word_id: int) -> Optional[StudentProgress]:
        """Progress record for one (student, word) pair, if any."""
        with persistence_guard(self.db, "get_progress"):
            return (
                self.db.query(StudentProgress)
                .filter(
                    StudentProgress.student_id == student_id,
                    StudentProgress.word_id == word_id,
                )
                .first()
            )

    def current_box_of(self, student_id: int, word_id: int) -> BoxState:
        """Box state of a word for a student, defaulting to box 1 when unseen."""
        return box_state_of(self.get_progress(student_id, word_id))

    def existing_keys(
        self, student_ids: Iterable[int], word_ids: Iterable[int]
    ) -> Set[Tuple[int, int]]:
        """(student_id, word_id) pairs that already have a record."""
        student_ids, word_ids = set(student_ids), set(word_ids)
        if not student_ids or not word_ids:
            return set()
        with persistence_guard(self.db, "existing_progress_keys"):
            rows = (
                self.db.query(StudentProgress.student_id, StudentProgress.word_id)
                .filter(
                    StudentProgress.student_id.in_(student_ids),
                    StudentProgress.word_id.in_(word_ids),
                )
                .all()
            )
        return {(row[0], row[1]) for row in rows}

    def upsert_progress(self, student_id: int, word_id: int, outcome: Outcome) -> StudentProgress:
        """Store an outcome, updating the existing record or inserting a new one."""
        with persistence_guard(self.db, "upsert_progress"):
            record = (
                self.db.query(StudentProgress)
                .filter(
                    StudentProgress.student_id == student_id,
                    StudentProgress.word_id == word_id,
                )
                .first()
            )
            if record is None:
                record = StudentProgress(student_id=student_id, word_id=word_id)
                self.db.add(record)
            record.box_number = outcome.box_number
            record.last_studied_date = outcome.last_studied_date
            self.db.commit()
            self.db.refresh(record)
        return record

    def insert_progress_batch(self, records: List[StudentProgress]) -> int:
        """Insert new progress records in one transaction."""
        if not records:
            return 0
        with persistence_guard(self.db, "insert_progress_batch"):
            self.db.add_all(records)
            self.db.commit()
        return len(records)

    def get_daily_queue(self, student: Student, day: Optional[date] = None) -> List[Word]:
        """Words the student still has to study today, highest box first."""
        day = day or progress_engine.today()
        with request_duration.labels(handler="daily_queue").time():
            class_words = self.word_service.list_words_by_class(student.class_name)
            if not class_words:
                return []
            progress = self.list_progress_by_student(student.id)
            queue = build_daily_queue(student, class_words, progress, day)
        logger.info(
            "Daily queue for student %s on %s: %d of %d words",
            student.id, day, len(queue), len(class_words),
        )
        return queue

    def record_answer(
        self,
        student: Student,
        word: Word,
        submitted_text: str,
        day: Optional[date] = None,
    ) -> AnswerFeedback:
        """Check an answer and store the resulting box before returning.

        Raises ValidationError for a blank answer and PersistenceError when
        the write fails; in both cases nothing is reported as applied.
        """
        day = day or progress_engine.today()
        result = evaluate_answer(word, submitted_text)
        with request_duration.labels(handler="record_answer").time():
            outcome = apply_outcome(self.get_progress(student.id, word.id), result.correct, day)
            self.upsert_progress(student.id, word.id, outcome)

        answers.labels(outcome="correct" if result.correct else "incorrect").inc()
        if outcome.promoted:
            box_promotions.labels(box=str(outcome.box_number)).inc()
        logger.info(
            "Student %s answered word %s %s: box %d -> %d",
            student.id, word.id, "correctly" if result.correct else "incorrectly",
            outcome.previous_box, outcome.box_number,
        )
        return AnswerFeedback(
            word_id=word.id,
            correct=result.correct,
            box_number=outcome.box_number,
            previous_box=outcome.previous_box,
            correct_answer=word.turkish,
        )

    def get_box_distribution(self, student: Student) -> BoxDistribution:
        """Number of the student's class words in each box."""
        with request_duration.labels(handler="box_distribution").time():
            class_words = self.word_service.list_words_by_class(student.class_name)
            progress = self.list_progress_by_student(student.id)
        return compute_box_distribution(class_words, progress)

    def get_words_in_box(self, student: Student, box: int) -> List[Word]:
        """The student's class words currently in `box`."""
        learning = settings.learning
        if not learning.min_box <= box <= learning.max_box:
            raise ValidationError(f"Box must be between {learning.min_box} and {learning.max_box}")
        class_words = self.word_service.list_words_by_class(student.class_name)
        progress = self.list_progress_by_student(student.id)
        return words_in_box(class_words, progress, box)
