"""Login and session tokens for students and administrators."""
import hashlib
import hmac
import logging
import secrets
from datetime import UTC, datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from vocabox.config import settings
from vocabox.errors import persistence_guard
from vocabox.models.models import AuthSession
from vocabox.monitoring import logins
from vocabox.services.student_service import StudentService

logger = logging.getLogger(__name__)


def hash_passphrase(passphrase: str) -> str:
    """Hex SHA-256 of a passphrase, the format of ADMIN_PASSPHRASE_HASH."""
    return hashlib.sha256(passphrase.encode("utf-8")).hexdigest()


class AuthService:
    """Issues, resolves and revokes login sessions."""

    def __init__(self, db: Session):
        """Initialize the service with a database session."""
        self.db = db
        self.student_service = StudentService(db)

    def _issue(self, student_id: Optional[int] = None, is_admin: bool = False) -> AuthSession:
        lifetime = timedelta(minutes=settings.auth.session_lifetime_minutes)
        session = AuthSession(
            token=secrets.token_urlsafe(32),
            student_id=student_id,
            is_admin=is_admin,
            expires_at=datetime.now(UTC) + lifetime,
        )
        with persistence_guard(self.db, "issue_session"):
            self.db.add(session)
            self.db.commit()
            self.db.refresh(session)
        return session

    def student_login(self, code: str) -> Optional[AuthSession]:
        """Start a session for the student with this code, or None when no student matches."""
        student = self.student_service.get_student_by_code(code)
        if not student:
            logins.labels(kind="student", result="failure").inc()
            logger.info("Student login failed for code %r", code)
            return None
        logins.labels(kind="student", result="success").inc()
        logger.info("Student %s logged in", student.id)
        return self._issue(student_id=student.id)

    def admin_login(self, passphrase: str) -> Optional[AuthSession]:
        """Start an admin session when the passphrase matches the configured hash."""
        expected = settings.auth.admin_passphrase_hash.lower()
        if not expected:
            logger.warning("Admin login attempted but ADMIN_PASSPHRASE_HASH is not set")
            logins.labels(kind="admin", result="failure").inc()
            return None
        if not hmac.compare_digest(hash_passphrase(passphrase or ""), expected):
            logins.labels(kind="admin", result="failure").inc()
            logger.warning("Admin login failed")
            return None
        logins.labels(kind="admin", result="success").inc()
        return self._issue(is_admin=True)

    def resolve(self, token: str) -> Optional[AuthSession]:
        """Live session for a token; expired sessions are removed."""
        if not token:
            return None
        with persistence_guard(self.db, "resolve_session"):
            session = self.db.query(AuthSession).filter(AuthSession.token == token).first()
            if session is None:
                return None
            if session.is_expired():
                self.db.delete(session)
                self.db.commit()
                return None
        return session

    def logout(self, token: str) -> bool:
        """Revoke a session. Returns False when the token was unknown."""
        with persistence_guard(self.db, "logout"):
            deleted = (
                self.db.query(AuthSession)
                .filter(AuthSession.token == token)
                .delete(synchronize_session=False)
            )
            self.db.commit()
        return deleted > 0

    def purge_expired(self) -> int:
        """Delete every expired session."""
        with persistence_guard(self.db, "purge_sessions"):
            deleted = (
                self.db.query(AuthSession)
                .filter(AuthSession.expires_at <= datetime.now(UTC))
                .delete(synchronize_session=False)
            )
            self.db.commit()
        if deleted:
            logger.info("Purged %d expired sessions", deleted)
        return deleted
