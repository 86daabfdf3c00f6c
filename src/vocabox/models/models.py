"""Database models for vocabox."""
from datetime import UTC, datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from vocabox.config import MAX_BOX, MIN_BOX
from vocabox.models.base import Base, TimestampMixin


class Student(Base, TimestampMixin):
    """Student model."""

    __tablename__ = "students"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String, nullable=False, index=True)  # compared case-insensitively
    name = Column(String, nullable=False)
    class_name = Column("class", String, nullable=False, index=True)

    # Relationships
    progress = relationship(
        "StudentProgress",
        back_populates="student",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    sessions = relationship(
        "AuthSession",
        back_populates="student",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Student {self.code} ({self.class_name})>"


class Word(Base, TimestampMixin):
    """Word model."""

    __tablename__ = "words"

    id = Column(Integer, primary_key=True)
    class_name = Column("class", String, nullable=False, index=True)
    english = Column(String, nullable=False)
    turkish = Column(String, nullable=False)  # ";"-separated accepted meanings

    # Relationships
    progress = relationship(
        "StudentProgress",
        back_populates="word",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Word {self.english} ({self.class_name})>"


class StudentProgress(Base, TimestampMixin):
    """Box assignment of one word for one student."""

    __tablename__ = "student_progress"
    __table_args__ = (
        UniqueConstraint("student_id", "word_id", name="uq_student_progress_student_word"),
        CheckConstraint(
            f"box_number >= {MIN_BOX} AND box_number <= {MAX_BOX}",
            name="ck_student_progress_box_range",
        ),
    )

    id = Column(Integer, primary_key=True)
    student_id = Column(
        Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True
    )
    word_id = Column(Integer, ForeignKey("words.id", ondelete="CASCADE"), nullable=False)
    box_number = Column(Integer, nullable=False, default=MIN_BOX)
    last_studied_date = Column(Date, nullable=True)  # None = never studied

    # Relationships
    student = relationship("Student", back_populates="progress")
    word = relationship("Word", back_populates="progress")

    def __repr__(self) -> str:
        return (
            f"<StudentProgress student={self.student_id} word={self.word_id} "
            f"box={self.box_number} last={self.last_studied_date}>"
        )


class AuthSession(Base, TimestampMixin):
    """Issued login session for a student or an administrator."""

    __tablename__ = "auth_sessions"

    id = Column(Integer, primary_key=True)
    token = Column(String, unique=True, nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=True)
    is_admin = Column(Boolean, default=False, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)

    # Relationships
    student = relationship("Student", back_populates="sessions")

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Check whether the session lifetime has run out."""
        now = now or datetime.now(UTC)
        expires_at = self.expires_at
        # SQLite hands back naive datetimes
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=UTC)
        return expires_at <= now
