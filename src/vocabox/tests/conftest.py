"""Test configuration."""
import os
from typing import Generator

import pytest

# Set test environment before any imports
os.environ["ENV"] = "test"
os.environ.setdefault("DATABASE_URL", "sqlite:///test_vocabox.db")

# Import after environment setup
from faker import Faker
from sqlalchemy.orm import Session

from vocabox.models.base import Base, SessionLocal, engine, init_db
from vocabox.models.models import Student, Word

fake = Faker()


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create a fresh schema and session for each test."""
    engine.dispose()
    Base.metadata.drop_all(bind=engine)
    init_db()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        engine.dispose()


@pytest.fixture
def make_student(db: Session):
    """Factory storing a student in the given class."""
    def _make(class_name: str = "9", code: str = None, name: str = None) -> Student:
        student = Student(
            code=code or str(fake.unique.random_int(min=1000, max=99999)),
            name=name or fake.name(),
            class_name=class_name,
        )
        db.add(student)
        db.commit()
        db.refresh(student)
        return student
    return _make


@pytest.fixture
def make_word(db: Session):
    """Factory storing a word in the given class."""
    def _make(english: str, turkish: str, class_name: str = "9") -> Word:
        word = Word(class_name=class_name, english=english, turkish=turkish)
        db.add(word)
        db.commit()
        db.refresh(word)
        return word
    return _make
