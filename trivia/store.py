from __future__ import annotations

import logging
import sqlite3
from typing import Iterable, List, Optional, Tuple

from .question_generator import GeneratedQuestion

QUESTIONS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS trivia_questions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    question TEXT NOT NULL,
    image_url TEXT,
    options TEXT NOT NULL,
    correct_answer TEXT NOT NULL,
    explanation TEXT DEFAULT '',
    category TEXT DEFAULT 'horror',
    difficulty INTEGER DEFAULT 1,
    is_approved INTEGER NOT NULL DEFAULT 0,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
);
"""

INDEX_SQL = (
    "CREATE INDEX IF NOT EXISTS ix_trivia_questions_approved ON trivia_questions (is_approved);",
)

INSERT_SQL = """
INSERT INTO trivia_questions (
    question, image_url, options, correct_answer, explanation,
    category, difficulty, is_approved, created_at, updated_at
) VALUES (
    :question, :image_url, :options, :correct_answer, :explanation,
    :category, :difficulty, :is_approved, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP
)
"""


class QuestionStore:
    """Thin sqlite adapter for the trivia_questions table."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self.logger = logging.getLogger('QuestionStore')

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=30.0)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA busy_timeout = 30000")  # 30 second timeout for locks
        return conn

    def init_db(self) -> None:
        """Create the questions table and indexes if they do not yet exist."""
        conn = self._connect()
        try:
            conn.execute(QUESTIONS_TABLE_SQL)
            for stmt in INDEX_SQL:
                conn.execute(stmt)
            conn.commit()
        finally:
            conn.close()

    def get_approved_question_texts(self) -> List[str]:
        conn = self._connect()
        try:
            rows = conn.execute(
                "SELECT question FROM trivia_questions WHERE is_approved = 1"
            ).fetchall()
        finally:
            conn.close()
        return [row["question"] for row in rows]

    def save_questions(self, questions: Iterable[GeneratedQuestion]) -> Tuple[int, int]:
        """
        Insert questions one at a time. Returns (saved, failed).

        Each insert commits on its own; a failed insert is rolled back and
        logged, and the remaining questions are still written.
        """
        saved = failed = 0
        conn = self._connect()
        try:
            for question in questions:
                try:
                    cur = conn.execute(INSERT_SQL, question.to_row())
                    conn.commit()
                    saved += 1
                    self.logger.info(f"Saved question with ID: {cur.lastrowid}")
                except sqlite3.Error as e:
                    conn.rollback()
                    failed += 1
                    self.logger.error(f"Error saving question '{question.question}': {e}")
        finally:
            conn.close()

        self.logger.info(f"Saved {saved} questions ({failed} failed)")
        return saved, failed

    def count_questions(self, approved: Optional[bool] = None) -> int:
        conn = self._connect()
        try:
            if approved is None:
                row = conn.execute("SELECT COUNT(*) FROM trivia_questions").fetchone()
            else:
                row = conn.execute(
                    "SELECT COUNT(*) FROM trivia_questions WHERE is_approved = ?",
                    (int(approved),),
                ).fetchone()
        finally:
            conn.close()
        return row[0] or 0
