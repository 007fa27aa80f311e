"""
Tests for the sqlite question store
"""
import json
import sqlite3

import pytest

from trivia.question_generator import GeneratedQuestion
from trivia.store import QuestionStore


def make_question(text, answer="John Carpenter"):
    return GeneratedQuestion(
        question=text,
        correct_answer=answer,
        options=(answer, "Wes Craven", "Sam Raimi", "Tobe Hooper"),
        explanation=f"The answer is {answer}.",
        difficulty=2,
        movie="Halloween",
        question_type="director",
    )


@pytest.fixture
def store(tmp_path):
    store = QuestionStore(str(tmp_path / "trivia.db"))
    store.init_db()
    return store


def test_save_and_read_back(store):
    saved, failed = store.save_questions([make_question("Who directed 'Halloween'?")])
    assert (saved, failed) == (1, 0)

    conn = sqlite3.connect(store.db_path)
    conn.row_factory = sqlite3.Row
    row = conn.execute("SELECT * FROM trivia_questions").fetchone()
    conn.close()

    assert row["question"] == "Who directed 'Halloween'?"
    assert json.loads(row["options"])[0] == "John Carpenter"
    assert row["is_approved"] == 0
    assert row["category"] == "horror"


def test_only_approved_texts_are_returned(store):
    store.save_questions([make_question("Who directed 'Halloween'?"), make_question("Who directed 'The Thing'?")])
    conn = sqlite3.connect(store.db_path)
    conn.execute("UPDATE trivia_questions SET is_approved = 1 WHERE question LIKE '%Thing%'")
    conn.commit()
    conn.close()

    assert store.get_approved_question_texts() == ["Who directed 'The Thing'?"]
    assert store.count_questions() == 2
    assert store.count_questions(approved=True) == 1
    assert store.count_questions(approved=False) == 1


def test_failed_insert_does_not_block_others(store):
    questions = [
        make_question("Who directed 'Halloween'?"),
        make_question(None),
        make_question("Who directed 'The Fog'?"),
    ]
    saved, failed = store.save_questions(questions)

    assert (saved, failed) == (2, 1)
    assert store.count_questions() == 2


def test_init_db_is_idempotent(store):
    store.save_questions([make_question("Who directed 'Halloween'?")])
    store.init_db()
    assert store.count_questions() == 1
