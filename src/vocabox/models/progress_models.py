"""Value objects passed between the box engine and its callers."""
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Generic, List, Optional, TypeVar

from vocabox.config import MAX_BOX, MIN_BOX

RowT = TypeVar("RowT")


@dataclass(frozen=True)
class BoxState:
    """Where a word currently sits for a student."""
    box_number: int
    last_studied_date: Optional[date]
    has_record: bool

    def studied_on(self, day: date) -> bool:
        return self.last_studied_date is not None and self.last_studied_date == day


# A word with no progress record is in the first box and has never been studied
DEFAULT_BOX_STATE = BoxState(box_number=MIN_BOX, last_studied_date=None, has_record=False)


@dataclass(frozen=True)
class AnswerResult:
    """Result of checking a typed answer."""
    correct: bool


@dataclass(frozen=True)
class Outcome:
    """New box assignment produced by an answer."""
    box_number: int
    last_studied_date: date
    previous_box: int

    @property
    def promoted(self) -> bool:
        return self.box_number > self.previous_box


@dataclass(frozen=True)
class AnswerFeedback:
    """What the presentation layer shows after an answer has been stored."""
    word_id: int
    correct: bool
    box_number: int
    previous_box: int
    correct_answer: str

    @property
    def moved_to_box(self) -> Optional[int]:
        """Box the word was promoted into, or None when it stayed put."""
        return self.box_number if self.box_number > self.previous_box else None


@dataclass
class BoxDistribution:
    """Number of class words in each box for one student."""
    box1: int = 0
    box2: int = 0
    box3: int = 0
    box4: int = 0
    box5: int = 0
    total: int = 0

    def count(self, box: int) -> int:
        if not MIN_BOX <= box <= MAX_BOX:
            raise ValueError(f"Box must be between {MIN_BOX} and {MAX_BOX}, got {box}")
        return getattr(self, f"box{box}")

    @property
    def counts(self) -> List[int]:
        return [self.count(box) for box in range(MIN_BOX, MAX_BOX + 1)]

    @property
    def mastery_ratio(self) -> float:
        """Share of class words that reached the last box (0 when there are none)."""
        if self.total == 0:
            return 0.0
        return self.box5 / self.total

    @property
    def mastery_percent(self) -> int:
        return round(self.mastery_ratio * 100)

    def as_dict(self) -> Dict[str, int]:
        return {
            "box1": self.box1,
            "box2": self.box2,
            "box3": self.box3,
            "box4": self.box4,
            "box5": self.box5,
            "total": self.total,
        }


@dataclass(frozen=True)
class StudentRow:
    """One roster line: code,name,class."""
    code: str
    name: str
    class_name: str


@dataclass(frozen=True)
class WordRow:
    """One vocabulary line: class,english,turkish."""
    class_name: str
    english: str
    turkish: str


@dataclass(frozen=True)
class SkippedRow:
    """A bulk-upload line that was rejected."""
    line_number: int
    line: str
    reason: str


@dataclass
class ParseResult(Generic[RowT]):
    """Rows accepted from an upload together with the rejected lines."""
    rows: List[RowT] = field(default_factory=list)
    skipped: List[SkippedRow] = field(default_factory=list)


@dataclass
class RosterReport:
    """Summary of a roster upload."""
    inserted: int = 0
    updated: int = 0
    skipped: List[SkippedRow] = field(default_factory=list)


@dataclass
class IngestionReport:
    """Summary of a vocabulary upload."""
    words_added: int = 0
    progress_seeded: int = 0
    skipped: List[SkippedRow] = field(default_factory=list)
