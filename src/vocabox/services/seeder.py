"""Box-1 progress records for words added to a class."""
import logging
from collections import defaultdict
from typing import Container, Iterable, List, Tuple

from vocabox.config import settings
from vocabox.models.models import Student, StudentProgress, Word

logger = logging.getLogger(__name__)

ProgressKey = Tuple[int, int]  # (student_id, word_id)


def seed_progress_for_new_words(
    new_words: Iterable[Word],
    students: Iterable[Student],
    existing_keys: Container[ProgressKey],
) -> List[StudentProgress]:
    """Build unsaved first-box records for every (student, word) pair of a class.

    Pairs already present in `existing_keys` are skipped, so running the
    seeder again over the same words creates nothing. Classes without
    students produce no records.
    """
    words_by_class = defaultdict(list)
    for word in new_words:
        words_by_class[word.class_name].append(word)

    students_by_class = defaultdict(list)
    for student in students:
        students_by_class[student.class_name].append(student)

    records = []
    emitted = set()
    for class_name, words in words_by_class.items():
        class_students = students_by_class.get(class_name, [])
        if not class_students:
            logger.info("No students in class %s, nothing to seed", class_name)
            continue
        for student in class_students:
            for word in words:
                key = (student.id, word.id)
                if key in existing_keys or key in emitted:
                    continue
                emitted.add(key)
                records.append(
                    StudentProgress(
                        student_id=student.id,
                        word_id=word.id,
                        box_number=settings.learning.min_box,
                        last_studied_date=None,
                    )
                )
    return records
