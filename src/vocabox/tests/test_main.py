"""Tests for the command line entry point."""
from datetime import date

import pytest
from sqlalchemy.orm import Session

from vocabox.__main__ import main
from vocabox.config import settings
from vocabox.models.models import AuthSession, Student, StudentProgress, Word
from vocabox.services.auth_service import hash_passphrase

PASSPHRASE = "correct horse"


@pytest.fixture(autouse=True)
def keep_test_logging(mocker):
    """Leave pytest's log handlers in place."""
    mocker.patch("vocabox.__main__.setup_logging")


@pytest.fixture
def admin(monkeypatch, mocker):
    """Configure the admin passphrase and answer the prompt with it."""
    monkeypatch.setattr(settings.auth, "admin_passphrase_hash", hash_passphrase(PASSPHRASE))
    return mocker.patch("getpass.getpass", return_value=PASSPHRASE)


def test_import_and_stats(db: Session, admin, tmp_path, capsys) -> None:
    roster = tmp_path / "students.csv"
    roster.write_text("code,name,class\n9011,Ali ARIKAN,9\n", encoding="utf-8")
    words = tmp_path / "words.csv"
    words.write_text("9,Hello,Merhaba;Selam\n9,Book,Kitap\n9,Broken\n", encoding="utf-8")

    assert main(["import-students", str(roster)]) == 0
    assert main(["import-words", str(words)]) == 0
    assert main(["stats", "9011"]) == 0

    out = capsys.readouterr().out
    assert "1 students added" in out
    assert "2 words added, 2 progress records seeded" in out
    assert "skipped line 3" in out
    assert "Box 1: 2" in out
    assert admin.call_count == 2
    assert db.query(Student).count() == 1
    assert db.query(Word).count() == 2
    assert db.query(StudentProgress).count() == 2


def test_import_requires_admin(db: Session, admin, tmp_path, capsys) -> None:
    roster = tmp_path / "students.csv"
    roster.write_text("9011,Ali ARIKAN,9\n", encoding="utf-8")
    admin.return_value = "wrong"

    assert main(["import-students", str(roster)]) == 1
    assert "Admin login failed" in capsys.readouterr().out
    assert db.query(Student).count() == 0


def test_admin_disabled_without_hash(db: Session, mocker, monkeypatch, capsys) -> None:
    monkeypatch.setattr(settings.auth, "admin_passphrase_hash", "")
    mocker.patch("getpass.getpass", return_value=PASSPHRASE)

    assert main(["seed"]) == 1
    assert "Admin login failed" in capsys.readouterr().out


def test_student_commands_leave_no_sessions(db: Session, make_student) -> None:
    make_student(code="9011")

    for _ in range(3):
        assert main(["stats", "9011"]) == 0

    assert db.query(AuthSession).count() == 0


def test_admin_commands_leave_no_sessions(db: Session, admin) -> None:
    assert main(["words", "list"]) == 0
    assert main(["students", "list"]) == 0

    assert db.query(AuthSession).count() == 0


def test_stats_unknown_code(db: Session, capsys) -> None:
    assert main(["stats", "nobody"]) == 1
    assert "No student with that code" in capsys.readouterr().out


def test_turkish_letter_code_logs_in(db: Session, make_student, capsys) -> None:
    make_student(code="ŞÇ90", name="Ayşe Yılmaz")

    assert main(["stats", "şç90"]) == 0
    assert "Ayşe Yılmaz" in capsys.readouterr().out


def test_practice_session(db: Session, make_student, make_word, monkeypatch, capsys) -> None:
    make_student(code="9011", class_name="9")
    make_word("Hello", "Merhaba", class_name="9")
    make_word("Book", "Kitap", class_name="9")
    answers = iter(["merhaba", "defter"])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))

    assert main(["practice", "9011"]) == 0

    out = capsys.readouterr().out
    assert "Correct! Moved to box 2." in out
    assert "Wrong. Correct answer: Kitap" in out
    assert "All done for today!" in out
    assert db.query(AuthSession).count() == 0


def test_box_listing(db: Session, make_student, make_word, capsys) -> None:
    student = make_student(code="9011", class_name="9")
    hello = make_word("Hello", "Merhaba", class_name="9")
    make_word("Book", "Kitap", class_name="9")
    db.add(
        StudentProgress(
            student_id=student.id, word_id=hello.id, box_number=3, last_studied_date=date(2024, 3, 1)
        )
    )
    db.commit()

    assert main(["box", "3", "9011"]) == 0
    out = capsys.readouterr().out
    assert "Box 3: 1 words" in out
    assert "Hello: Merhaba" in out
    assert "Book" not in out

    assert main(["box", "1", "9011"]) == 0
    assert "Book: Kitap" in capsys.readouterr().out


def test_box_out_of_range(db: Session, make_student) -> None:
    make_student(code="9011")

    assert main(["box", "6", "9011"]) == 1
    assert db.query(AuthSession).count() == 0


def test_words_management(db: Session, admin, make_word, capsys) -> None:
    flower = make_word("Flower", "Çiçek", class_name="9")
    make_word("Book", "Kitap", class_name="10")

    assert main(["words", "list", "--search", "çiçek"]) == 0
    out = capsys.readouterr().out
    assert "Flower: Çiçek" in out
    assert "1 words" in out

    assert main(["words", "edit", str(flower.id), "--turkish", "Çiçek;Gül"]) == 0
    db.expire_all()
    assert db.get(Word, flower.id).turkish == "Çiçek;Gül"

    assert main(["words", "edit", str(flower.id)]) == 1
    assert "Nothing to change" in capsys.readouterr().out

    assert main(["words", "delete", str(flower.id)]) == 0
    db.expire_all()
    assert db.get(Word, flower.id) is None
    assert main(["words", "delete", str(flower.id)]) == 1


def test_students_management(db: Session, admin, make_student, capsys) -> None:
    student = make_student(code="9011", name="Ali ARIKAN", class_name="9")
    make_student(code="1001", name="Mehmet Kaya", class_name="10")

    assert main(["students", "list", "--class", "9"]) == 0
    out = capsys.readouterr().out
    assert "9011 Ali ARIKAN" in out
    assert "Mehmet" not in out

    assert main(["students", "edit", str(student.id), "--class", "10"]) == 0
    db.expire_all()
    assert db.get(Student, student.id).class_name == "10"

    assert main(["students", "delete", str(student.id)]) == 0
    db.expire_all()
    assert db.get(Student, student.id) is None


def test_missing_file(db: Session, admin) -> None:
    assert main(["import-words", "/nonexistent/words.csv"]) == 1


if __name__ == "__main__":
    pytest.main([__file__])
