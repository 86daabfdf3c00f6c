"""Command line entry point for vocabox."""
import argparse
import functools
import getpass
import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import List, Optional

from vocabox.config import settings
from vocabox.errors import VocaboxError
from vocabox.logging_config import setup_logging
from vocabox.models.base import SessionLocal, init_db
from vocabox.monitoring import start_monitoring
from vocabox.services.auth_service import AuthService
from vocabox.services.ingestion_service import IngestionService
from vocabox.services.progress_service import ProgressService
from vocabox.services.student_service import StudentService
from vocabox.services.study_session import StudySession
from vocabox.services.word_service import WordService

logger = logging.getLogger("vocabox")


def _read(path: str) -> str:
    return Path(path).read_text(encoding="utf-8-sig")


def _print_skipped(skipped) -> None:
    for row in skipped:
        print(f"  skipped line {row.line_number}: {row.reason} ({row.line})")


def _print_stats(stats) -> None:
    for box, count in enumerate(stats.counts, start=1):
        print(f"  Box {box}: {count}")
    print(f"  Total: {stats.total}  Mastered: {stats.box5} ({stats.mastery_percent}%)")


def _changes(args, names) -> dict:
    return {name: getattr(args, name) for name in names if getattr(args, name) is not None}


def admin_only(command):
    """Run a command inside an admin session opened with a prompted passphrase."""
    @functools.wraps(command)
    def wrapper(db, args) -> int:
        auth = AuthService(db)
        session = auth.admin_login(getpass.getpass("Admin passphrase: "))
        if session is None:
            print("Admin login failed")
            return 1
        try:
            auth.purge_expired()
            return command(db, args)
        finally:
            auth.logout(session.token)
    return wrapper


@contextmanager
def student_session(db, code: str):
    """Yield the logged-in student, or None; the session is revoked on exit."""
    auth = AuthService(db)
    session = auth.student_login(code)
    if session is None:
        print("No student with that code")
        yield None
        return
    try:
        yield session.student
    finally:
        auth.logout(session.token)


def cmd_init_db(db, args) -> int:
    init_db()
    print("Database ready")
    return 0


@admin_only
def cmd_import_students(db, args) -> int:
    report = IngestionService(db).import_students(_read(args.file))
    print(f"{report.inserted} students added, {report.updated} updated")
    _print_skipped(report.skipped)
    return 0


@admin_only
def cmd_import_words(db, args) -> int:
    report = IngestionService(db).import_words(_read(args.file))
    print(f"{report.words_added} words added, {report.progress_seeded} progress records seeded")
    _print_skipped(report.skipped)
    return 0


@admin_only
def cmd_seed(db, args) -> int:
    seeded = IngestionService(db).seed_existing_words(args.class_name)
    print(f"{seeded} progress records seeded")
    return 0


@admin_only
def cmd_words_list(db, args) -> int:
    words = WordService(db).list_words(class_name=args.class_name, search=args.search)
    for word in words:
        print(f"  {word.id:>5}  [{word.class_name}] {word.english}: {word.turkish}")
    print(f"{len(words)} words")
    return 0


@admin_only
def cmd_words_edit(db, args) -> int:
    fields = _changes(args, ("english", "turkish", "class_name"))
    if not fields:
        print("Nothing to change")
        return 1
    word = WordService(db).update_word(args.id, **fields)
    print(f"Word {word.id} updated: [{word.class_name}] {word.english}: {word.turkish}")
    return 0


@admin_only
def cmd_words_delete(db, args) -> int:
    WordService(db).delete_word(args.id)
    print(f"Word {args.id} deleted")
    return 0


@admin_only
def cmd_students_list(db, args) -> int:
    students = StudentService(db).list_students(class_name=args.class_name, search=args.search)
    for student in students:
        print(f"  {student.id:>5}  [{student.class_name}] {student.code} {student.name}")
    print(f"{len(students)} students")
    return 0


@admin_only
def cmd_students_edit(db, args) -> int:
    fields = _changes(args, ("code", "name", "class_name"))
    if not fields:
        print("Nothing to change")
        return 1
    student = StudentService(db).update_student(args.id, **fields)
    print(f"Student {student.id} updated: [{student.class_name}] {student.code} {student.name}")
    return 0


@admin_only
def cmd_students_delete(db, args) -> int:
    StudentService(db).delete_student(args.id)
    print(f"Student {args.id} deleted")
    return 0


def cmd_stats(db, args) -> int:
    with student_session(db, args.code) as student:
        if student is None:
            return 1
        print(f"{student.name} ({student.class_name})")
        _print_stats(ProgressService(db).get_box_distribution(student))
    return 0


def cmd_box(db, args) -> int:
    with student_session(db, args.code) as student:
        if student is None:
            return 1
        words = ProgressService(db).get_words_in_box(student, args.box)
        print(f"Box {args.box}: {len(words)} words")
        for word in words:
            print(f"  {word.english}: {word.turkish}")
    return 0


def cmd_practice(db, args) -> int:
    with student_session(db, args.code) as student:
        if student is None:
            return 1
        return _practice(db, student)


def _practice(db, student) -> int:
    session = StudySession(ProgressService(db), student)
    session.load()
    if session.error:
        print(f"Could not load today's words: {session.error}")
        return 1

    total = len(session.queue)
    while not session.completed:
        word = session.current_word
        try:
            answer = input(f"[{session.position + 1}/{total}] {word.english}: ")
        except EOFError:
            print()
            break
        if not answer.strip():
            continue
        feedback = session.submit_answer(answer)
        if feedback is None:
            print(f"Not saved, try again ({session.error})")
            continue
        if feedback.correct:
            moved = f" Moved to box {feedback.moved_to_box}." if feedback.moved_to_box else ""
            print(f"Correct!{moved}")
        else:
            print(f"Wrong. Correct answer: {feedback.correct_answer}")

    if session.completed:
        print("All done for today!")
    _print_stats(session.stats())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="vocabox", description="Five-box vocabulary trainer")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="create the database tables").set_defaults(func=cmd_init_db)

    p = sub.add_parser("import-students", help="upload a code,name,class roster")
    p.add_argument("file")
    p.set_defaults(func=cmd_import_students)

    p = sub.add_parser("import-words", help="upload a class,english,turkish word list")
    p.add_argument("file")
    p.set_defaults(func=cmd_import_words)

    p = sub.add_parser("seed", help="create missing box-1 records for stored words")
    p.add_argument("--class", dest="class_name", default=None)
    p.set_defaults(func=cmd_seed)

    words = sub.add_parser("words", help="manage stored words (admin)")
    actions = words.add_subparsers(dest="action", required=True)
    p = actions.add_parser("list")
    p.add_argument("--class", dest="class_name", default=None)
    p.add_argument("--search", default=None)
    p.set_defaults(func=cmd_words_list)
    p = actions.add_parser("edit")
    p.add_argument("id", type=int)
    p.add_argument("--english")
    p.add_argument("--turkish")
    p.add_argument("--class", dest="class_name")
    p.set_defaults(func=cmd_words_edit)
    p = actions.add_parser("delete")
    p.add_argument("id", type=int)
    p.set_defaults(func=cmd_words_delete)

    students = sub.add_parser("students", help="manage students (admin)")
    actions = students.add_subparsers(dest="action", required=True)
    p = actions.add_parser("list")
    p.add_argument("--class", dest="class_name", default=None)
    p.add_argument("--search", default=None)
    p.set_defaults(func=cmd_students_list)
    p = actions.add_parser("edit")
    p.add_argument("id", type=int)
    p.add_argument("--code")
    p.add_argument("--name")
    p.add_argument("--class", dest="class_name")
    p.set_defaults(func=cmd_students_edit)
    p = actions.add_parser("delete")
    p.add_argument("id", type=int)
    p.set_defaults(func=cmd_students_delete)

    p = sub.add_parser("stats", help="show a student's box distribution")
    p.add_argument("code")
    p.set_defaults(func=cmd_stats)

    p = sub.add_parser("box", help="list a student's words in one box")
    p.add_argument("box", type=int)
    p.add_argument("code")
    p.set_defaults(func=cmd_box)

    p = sub.add_parser("practice", help="study today's words")
    p.add_argument("code")
    p.set_defaults(func=cmd_practice)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Run one command."""
    args = build_parser().parse_args(argv)
    setup_logging("Starting vocabox ...", level=logging.WARNING if args.command == "practice" else None)

    if settings.monitoring.port:
        start_monitoring(settings.monitoring.port)
        logger.info("Metrics exported on port %d", settings.monitoring.port)

    init_db()
    db = SessionLocal()
    try:
        return args.func(db, args)
    except (VocaboxError, OSError) as e:
        logger.error("%s failed: %s", args.command, e)
        return 1
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt, shutting down...")
        return 130
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
