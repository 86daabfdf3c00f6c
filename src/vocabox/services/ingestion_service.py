"""Bulk roster and vocabulary uploads."""
import logging
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from vocabox.models.models import Word
from vocabox.models.progress_models import IngestionReport, RosterReport, WordRow
from vocabox.monitoring import progress_seeded, words_added
from vocabox.services.csv_import import parse_student_rows, parse_word_rows
from vocabox.services.progress_service import ProgressService
from vocabox.services.seeder import seed_progress_for_new_words
from vocabox.services.student_service import StudentService
from vocabox.services.word_service import WordService

logger = logging.getLogger(__name__)


class IngestionService:
    """Turns uploaded CSV text into students, words and box-1 progress records."""

    def __init__(self, db: Session):
        """Initialize the service with a database session."""
        self.db = db
        self.student_service = StudentService(db)
        self.word_service = WordService(db)
        self.progress_service = ProgressService(db)

    def import_students(self, text: str) -> RosterReport:
        """Apply a ``code,name,class`` upload."""
        parsed = parse_student_rows(text)
        report = self.student_service.upsert_students(parsed.rows)
        report.skipped = parsed.skipped
        return report

    def import_words(self, text: str) -> IngestionReport:
        """Apply a ``class,english,turkish`` upload."""
        parsed = parse_word_rows(text)
        report = self.add_words(parsed.rows)
        report.skipped = parsed.skipped
        return report

    def add_words(self, rows: Iterable[WordRow]) -> IngestionReport:
        """Store new words and seed first-box records for the students of their classes."""
        words = self.word_service.create_words(rows)
        words_added.inc(len(words))
        seeded = self.seed_words(words)
        logger.info("Added %d words, seeded %d progress records", len(words), seeded)
        return IngestionReport(words_added=len(words), progress_seeded=seeded)

    def seed_words(self, words: List[Word]) -> int:
        """Create the missing first-box records for `words`; safe to repeat."""
        if not words:
            return 0
        students = self.student_service.list_students_in_classes(
            {word.class_name for word in words}
        )
        existing = self.progress_service.existing_keys(
            (student.id for student in students),
            (word.id for word in words),
        )
        records = seed_progress_for_new_words(words, students, existing)
        inserted = self.progress_service.insert_progress_batch(records)
        progress_seeded.inc(inserted)
        return inserted

    def seed_existing_words(self, class_name: Optional[str] = None) -> int:
        """Seed stored words, e.g. after new students joined a class."""
        words = self.word_service.list_words(class_name=class_name)
        seeded = self.seed_words(words)
        logger.info("Seeded %d progress records for class %s", seeded, class_name or "*")
        return seeded
