"""Service for managing words in the system."""
import logging
from typing import Iterable, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from vocabox.errors import NotFoundError, ValidationError, persistence_guard
from vocabox.models.models import Word
from vocabox.models.progress_models import WordRow

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("english", "turkish", "class_name")


class WordService:
    """Service for managing words in the system."""

    def __init__(self, db: Session):
        """Initialize the service with a database session."""
        self.db = db

    def get_word(self, word_id: int) -> Optional[Word]:
        """Get a word by its ID."""
        with persistence_guard(self.db, "get_word"):
            return self.db.query(Word).filter(Word.id == word_id).first()

    def list_words_by_class(self, class_name: str) -> List[Word]:
        """Get all words of a class in insertion order."""
        with persistence_guard(self.db, "list_words_by_class"):
            return (
                self.db.query(Word)
                .filter(Word.class_name == class_name)
                .order_by(Word.id)
                .all()
            )

    def list_words(
        self,
        class_name: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Word]:
        """List words ordered by class and English term, optionally filtered."""
        query = self.db.query(Word)
        if class_name is not None:
            query = query.filter(Word.class_name == class_name)
        if search:
            term = f"%{search.lower()}%"
            query = query.filter(
                or_(
                    func.lower(Word.english).like(term),
                    func.lower(Word.turkish).like(term),
                )
            )
        with persistence_guard(self.db, "list_words"):
            return query.order_by(Word.class_name, Word.english).all()

    def list_classes(self) -> List[str]:
        """Distinct class labels that have words."""
        with persistence_guard(self.db, "list_word_classes"):
            rows = self.db.query(Word.class_name).distinct().all()
        return sorted(row[0] for row in rows)

    def get_word_count(self, class_name: Optional[str] = None) -> int:
        """Get the count of words, optionally for one class."""
        query = self.db.query(Word)
        if class_name is not None:
            query = query.filter(Word.class_name == class_name)
        with persistence_guard(self.db, "count_words"):
            return query.count()

    def create_words(self, rows: Iterable[WordRow]) -> List[Word]:
        """Insert one word per row and return the stored words."""
        words = [
            Word(class_name=row.class_name, english=row.english, turkish=row.turkish)
            for row in rows
        ]
        if not words:
            return []
        with persistence_guard(self.db, "create_words"):
            self.db.add_all(words)
            self.db.flush()
            ids = [word.id for word in words]
            self.db.commit()
            # One SELECT reloads the whole batch into the identity map
            words = self.db.query(Word).filter(Word.id.in_(ids)).order_by(Word.id).all()
        logger.info("Created %d words", len(words))
        return words

    def update_word(self, word_id: int, **fields) -> Word:
        """Update a word's English term, meanings or class."""
        unknown = set(fields) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot update word field(s): {', '.join(sorted(unknown))}")

        word = self.get_word(word_id)
        if not word:
            raise NotFoundError(f"Word {word_id} not found")

        with persistence_guard(self.db, "update_word"):
            for key, value in fields.items():
                setattr(word, key, value)
            self.db.commit()
            self.db.refresh(word)
        logger.info("Word %s updated: %s", word_id, fields)
        return word

    def delete_word(self, word_id: int) -> None:
        """Delete a word and the progress records that point at it."""
        word = self.get_word(word_id)
        if not word:
            raise NotFoundError(f"Word {word_id} not found")

        with persistence_guard(self.db, "delete_word"):
            self.db.delete(word)
            self.db.commit()
        logger.info("Word %s deleted", word_id)
