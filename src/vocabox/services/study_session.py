"""One student's pass through today's queue."""
import logging
from datetime import date
from typing import List, Optional

from vocabox.errors import PersistenceError, ValidationError
from vocabox.models.models import Student, Word
from vocabox.models.progress_models import AnswerFeedback, BoxDistribution
from vocabox.services import progress_engine
from vocabox.services.progress_service import ProgressService

logger = logging.getLogger(__name__)


class StudySession:
    """Walks a student through today's queue.

    The position only moves forward once an answer has been stored, so a
    failed write keeps the student on the same word. Store failures while
    loading the queue or the stats leave an empty result and set `error`.
    """

    def __init__(self, progress_service: ProgressService, student: Student, day: Optional[date] = None):
        self.progress_service = progress_service
        self.student = student
        self.day = day or progress_engine.today()
        self.queue: List[Word] = []
        self.position = 0
        self.error: Optional[str] = None
        self.last_feedback: Optional[AnswerFeedback] = None

    def load(self) -> List[Word]:
        """Build today's queue from the store and start from the first word."""
        self.position = 0
        self.last_feedback = None
        try:
            self.queue = self.progress_service.get_daily_queue(self.student, self.day)
            self.error = None
        except PersistenceError as e:
            logger.error("Could not load queue for student %s: %s", self.student.id, e)
            self.queue = []
            self.error = str(e)
        return self.queue

    @property
    def current_word(self) -> Optional[Word]:
        if self.position < len(self.queue):
            return self.queue[self.position]
        return None

    @property
    def completed(self) -> bool:
        return self.current_word is None

    @property
    def remaining(self) -> int:
        return len(self.queue) - self.position

    def submit_answer(self, submitted_text: str) -> Optional[AnswerFeedback]:
        """Answer the current word; returns None and stays put if it could not be stored."""
        word = self.current_word
        if word is None:
            return None
        try:
            feedback = self.progress_service.record_answer(
                self.student, word, submitted_text, self.day
            )
        except ValidationError as e:
            self.error = str(e)
            return None
        except PersistenceError as e:
            logger.error(
                "Answer for word %s not stored, staying on it: %s", word.id, e
            )
            self.error = str(e)
            return None

        self.error = None
        self.last_feedback = feedback
        self.position += 1
        return feedback

    def stats(self) -> BoxDistribution:
        """Current box distribution, or all zeros if the store fails."""
        try:
            return self.progress_service.get_box_distribution(self.student)
        except PersistenceError as e:
            logger.error("Could not load stats for student %s: %s", self.student.id, e)
            self.error = str(e)
            return BoxDistribution()
