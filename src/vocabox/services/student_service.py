"""Service for managing students and class rosters."""
import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from vocabox.errors import NotFoundError, ValidationError, persistence_guard
from vocabox.models.models import Student
from vocabox.models.progress_models import RosterReport, StudentRow
from vocabox.monitoring import students_upserted

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("code", "name", "class_name")


class StudentService:
    """Service for managing students and class rosters."""

    def __init__(self, db: Session):
        """Initialize the service with a database session."""
        self.db = db

    def get_student(self, student_id: int) -> Optional[Student]:
        """Get a student by ID."""
        with persistence_guard(self.db, "get_student"):
            return self.db.query(Student).filter(Student.id == student_id).first()

    def get_student_by_code(self, code: str) -> Optional[Student]:
        """Get a student by login code, ignoring case."""
        code = (code or "").strip().lower()
        if not code:
            return None
        with persistence_guard(self.db, "get_student_by_code"):
            return (
                self.db.query(Student)
                .filter(func.lower(Student.code) == code)
                .order_by(Student.id)
                .first()
            )

    def list_students(
        self,
        class_name: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Student]:
        """List students, optionally filtered by class and by a name/code substring."""
        query = self.db.query(Student)
        if class_name is not None:
            query = query.filter(Student.class_name == class_name)
        if search:
            term = f"%{search.lower()}%"
            query = query.filter(
                or_(
                    func.lower(Student.name).like(term),
                    func.lower(Student.code).like(term),
                )
            )
        with persistence_guard(self.db, "list_students"):
            return query.order_by(Student.class_name, Student.name).all()

    def list_students_in_classes(self, class_names: Iterable[str]) -> List[Student]:
        """Students enrolled in any of the given classes."""
        class_names = set(class_names)
        if not class_names:
            return []
        with persistence_guard(self.db, "list_students_in_classes"):
            return (
                self.db.query(Student)
                .filter(Student.class_name.in_(class_names))
                .order_by(Student.id)
                .all()
            )

    def list_classes(self) -> List[str]:
        """Distinct class labels that have students."""
        with persistence_guard(self.db, "list_student_classes"):
            rows = self.db.query(Student.class_name).distinct().all()
        return sorted(row[0] for row in rows)

    def update_student(self, student_id: int, **fields) -> Student:
        """Update a student's code, name or class."""
        unknown = set(fields) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot update student field(s): {', '.join(sorted(unknown))}")

        student = self.get_student(student_id)
        if not student:
            raise NotFoundError(f"Student {student_id} not found")

        with persistence_guard(self.db, "update_student"):
            for key, value in fields.items():
                setattr(student, key, value)
            self.db.commit()
            self.db.refresh(student)
        logger.info("Student %s updated: %s", student_id, fields)
        return student

    def delete_student(self, student_id: int) -> None:
        """Delete a student together with their progress records."""
        student = self.get_student(student_id)
        if not student:
            raise NotFoundError(f"Student {student_id} not found")

        with persistence_guard(self.db, "delete_student"):
            self.db.delete(student)
            self.db.commit()
        logger.info("Student %s deleted", student_id)

    def upsert_students(self, rows: Iterable[StudentRow]) -> RosterReport:
        """Apply roster rows: update students whose code exists, insert the rest.

        Codes are matched case-insensitively with a single lookup for the
        whole batch. When a code appears twice the later row wins.
        """
        latest: Dict[str, StudentRow] = {}
        for row in rows:
            latest[row.code.lower()] = row

        report = RosterReport()
        if not latest:
            return report

        with persistence_guard(self.db, "upsert_students"):
            existing = (
                self.db.query(Student)
                .filter(func.lower(Student.code).in_(list(latest)))
                .order_by(Student.id)
                .all()
            )
            by_code: Dict[str, Student] = {}
            for student in existing:
                by_code.setdefault(student.code.lower(), student)

            for key, row in latest.items():
                student = by_code.get(key)
                if student:
                    student.name = row.name
                    student.class_name = row.class_name
                    report.updated += 1
                else:
                    self.db.add(
                        Student(code=row.code, name=row.name, class_name=row.class_name)
                    )
                    report.inserted += 1
            self.db.commit()

        students_upserted.labels(action="inserted").inc(report.inserted)
        students_upserted.labels(action="updated").inc(report.updated)
        logger.info(
            "Roster applied: %d inserted, %d updated", report.inserted, report.updated
        )
        return report
