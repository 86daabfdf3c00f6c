"""Tests for the box rules."""
from datetime import date, timedelta

import pytest

from vocabox.errors import ValidationError
from vocabox.models.models import Student, StudentProgress, Word
from vocabox.models.progress_models import DEFAULT_BOX_STATE
from vocabox.services.progress_engine import (
    accepted_meanings,
    apply_outcome,
    box_state_of,
    build_daily_queue,
    evaluate_answer,
)

TODAY = date(2024, 3, 11)
YESTERDAY = TODAY - timedelta(days=1)


@pytest.fixture
def student() -> Student:
    return Student(id=1, code="9011", name="Ali Arikan", class_name="9")


def word(word_id: int, english: str = "word", turkish: str = "kelime", class_name: str = "9") -> Word:
    return Word(id=word_id, class_name=class_name, english=english, turkish=turkish)


def record(word_id: int, box: int, last_studied=None, student_id: int = 1) -> StudentProgress:
    return StudentProgress(
        student_id=student_id, word_id=word_id, box_number=box, last_studied_date=last_studied
    )


def test_box_state_defaults_to_first_box() -> None:
    """A missing record reads as box 1, never studied."""
    state = box_state_of(None)
    assert state == DEFAULT_BOX_STATE
    assert state.box_number == 1
    assert state.last_studied_date is None
    assert state.has_record is False


def test_box_state_reads_record() -> None:
    state = box_state_of(record(7, 4, YESTERDAY))
    assert state.box_number == 4
    assert state.last_studied_date == YESTERDAY
    assert state.has_record is True


def test_queue_orders_boxes_from_highest(student: Student) -> None:
    """Words are grouped by box and served from box 5 down to box 1."""
    w1, w2, w3 = word(1), word(2), word(3)
    progress = [record(1, 3, YESTERDAY), record(3, 5, YESTERDAY)]

    queue = build_daily_queue(student, [w1, w2, w3], progress, TODAY)

    assert queue == [w3, w1, w2]


def test_queue_keeps_input_order_within_box(student: Student) -> None:
    words = [word(i) for i in range(1, 6)]
    progress = [record(2, 2, YESTERDAY), record(4, 2, YESTERDAY)]

    queue = build_daily_queue(student, words, progress, TODAY)

    assert [w.id for w in queue] == [2, 4, 1, 3, 5]


def test_queue_treats_unseen_and_unstudied_words_as_box_one(student: Student) -> None:
    """Words without a record and seeded records with no study date are both eligible."""
    words = [word(1), word(2)]
    progress = [record(2, 1, None)]

    assert build_daily_queue(student, words, progress, TODAY) == words


def test_queue_skips_words_studied_today(student: Student) -> None:
    words = [word(1), word(2)]
    progress = [record(1, 4, TODAY)]

    assert build_daily_queue(student, words, progress, TODAY) == [words[1]]


def test_word_studied_today_returns_next_day(student: Student) -> None:
    words = [word(1)]
    progress = [record(1, 2, TODAY)]

    assert build_daily_queue(student, words, progress, TODAY) == []
    assert build_daily_queue(student, words, progress, TODAY + timedelta(days=1)) == words


def test_queue_is_empty_without_words(student: Student) -> None:
    assert build_daily_queue(student, [], [], TODAY) == []


def test_queue_is_empty_when_everything_was_studied(student: Student) -> None:
    words = [word(1), word(2)]
    progress = [record(1, 1, TODAY), record(2, 5, TODAY)]

    assert build_daily_queue(student, words, progress, TODAY) == []


def test_queue_ignores_other_classes(student: Student) -> None:
    words = [word(1, class_name="9"), word(2, class_name="10")]

    assert build_daily_queue(student, words, [], TODAY) == [words[0]]


def test_queue_does_not_modify_records(student: Student) -> None:
    progress = [record(1, 3, YESTERDAY)]

    build_daily_queue(student, [word(1)], progress, TODAY)

    assert progress[0].box_number == 3
    assert progress[0].last_studied_date == YESTERDAY


@pytest.mark.parametrize(
    "submission, expected",
    [
        ("selam", True),
        ("mer", True),
        ("xyz", False),
        ("  MERHABA  ", True),
        ("merhaba arkadaşım", True),
    ],
)
def test_evaluate_answer(submission: str, expected: bool) -> None:
    """Any meaning containing the answer, or contained in it, is accepted."""
    hello = word(1, "Hello", "Merhaba;Selam")
    assert evaluate_answer(hello, submission).correct is expected


def test_evaluate_answer_rejects_blank_submission() -> None:
    with pytest.raises(ValidationError):
        evaluate_answer(word(1, "Book", "Kitap"), "   ")


def test_blank_meanings_do_not_match_everything() -> None:
    book = word(1, "Book", "Kitap; ;")
    assert accepted_meanings(book) == ["kitap"]
    assert evaluate_answer(book, "defter").correct is False


@pytest.mark.parametrize(
    "box, correct, expected",
    [
        (1, True, 2),
        (2, True, 3),
        (4, True, 5),
        (5, True, 5),
        (1, False, 1),
        (3, False, 3),
        (5, False, 5),
    ],
)
def test_apply_outcome_with_record(box: int, correct: bool, expected: int) -> None:
    outcome = apply_outcome(record(1, box, YESTERDAY), correct, TODAY)
    assert outcome.box_number == expected
    assert outcome.box_number >= box
    assert outcome.previous_box == box
    assert outcome.last_studied_date == TODAY


def test_apply_outcome_without_record() -> None:
    """An unseen word goes to box 2 when right and stays in box 1 when wrong."""
    right = apply_outcome(None, True, TODAY)
    wrong = apply_outcome(None, False, TODAY)

    assert (right.box_number, right.previous_box, right.promoted) == (2, 1, True)
    assert (wrong.box_number, wrong.previous_box, wrong.promoted) == (1, 1, False)
    assert right.last_studied_date == wrong.last_studied_date == TODAY


if __name__ == "__main__":
    pytest.main([__file__])
