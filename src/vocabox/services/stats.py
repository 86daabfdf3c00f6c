"""Box distribution for a student's class words."""
from typing import Iterable, List

from vocabox.config import settings
from vocabox.models.models import StudentProgress, Word
from vocabox.models.progress_models import BoxDistribution
from vocabox.services.progress_engine import box_state_of, index_progress


def compute_box_distribution(
    class_words: Iterable[Word], progress: Iterable[StudentProgress]
) -> BoxDistribution:
    """Count class words per box; words without a record count as box 1."""
    class_words = list(class_words)
    word_ids = {word.id for word in class_words}
    learning = settings.learning

    counts = {box: 0 for box in range(learning.min_box, learning.max_box + 1)}
    for record in progress:
        if record.word_id not in word_ids:
            continue
        counts[record.box_number] += 1

    total = len(class_words)
    counts[learning.min_box] += total - sum(counts.values())

    return BoxDistribution(
        box1=counts[1],
        box2=counts[2],
        box3=counts[3],
        box4=counts[4],
        box5=counts[5],
        total=total,
    )


def words_in_box(
    class_words: Iterable[Word], progress: Iterable[StudentProgress], box: int
) -> List[Word]:
    """Class words currently sitting in `box`."""
    by_word = index_progress(progress)
    return [word for word in class_words if box_state_of(by_word.get(word.id)).box_number == box]
