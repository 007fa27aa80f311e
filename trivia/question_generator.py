#!/usr/bin/env python3
"""
Trivia Question Generator
Synthesizes multiple-choice horror trivia questions from templates and
validates every question against the movie fact table before emitting it
"""
from __future__ import annotations

import json
import logging
import random
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .facts import (
    CHARACTER_ROLES,
    DEFAULT_FACTS,
    DEFAULT_TEMPLATES,
    EXTRA_DISTRACTORS,
    QUESTION_TYPES,
    Fact,
    Template,
)


DEFAULT_IMAGE_URL = "../images/skeletonquestion.png"
OPTION_COUNT = 4


class QuestionRejected(Exception):
    """A single generation attempt produced nothing usable"""

    NO_CANDIDATE = "no_candidate"
    DUPLICATE = "duplicate"
    VALIDATION = "validation"

    def __init__(self, reason: str, message: str = ""):
        super().__init__(message or reason)
        self.reason = reason


@dataclass(frozen=True)
class GeneratedQuestion:
    question: str
    correct_answer: str
    options: Tuple[str, ...]
    explanation: str
    difficulty: int
    movie: str
    question_type: str
    character_role: Optional[str] = None
    category: str = "horror"
    image_url: str = DEFAULT_IMAGE_URL
    is_approved: bool = False

    def to_row(self) -> dict:
        """Shape the question for the trivia_questions table."""
        return {
            "question": self.question,
            "image_url": self.image_url,
            "options": json.dumps(list(self.options)),
            "correct_answer": self.correct_answer,
            "explanation": self.explanation,
            "category": self.category,
            "difficulty": self.difficulty,
            "is_approved": self.is_approved,
        }


@dataclass
class _Attempt:
    fact: Fact
    template: Template
    role: Optional[str] = None
    text: str = ""
    answer: str = ""
    options: List[str] = field(default_factory=list)


class QuestionGenerator:
    """
    Generates trivia questions from a fact table and a template set
    """

    def __init__(
        self,
        facts: Sequence[Fact] = DEFAULT_FACTS,
        templates: Sequence[Template] = DEFAULT_TEMPLATES,
        rng: Optional[random.Random] = None,
        per_movie_cap: int = 3,
        attempt_factor: int = 10,
        year_spread: int = 20,
        min_year: int = 1900,
        current_year: Optional[int] = None,
        character_roles: Sequence[str] = CHARACTER_ROLES,
        extra_pools: Optional[Mapping[str, Sequence[str]]] = None,
    ):
        if not facts:
            raise ValueError("At least one fact is required")
        if not templates:
            raise ValueError("At least one template is required")

        self.facts: Tuple[Fact, ...] = tuple(facts)
        self.templates: Tuple[Template, ...] = tuple(templates)
        self._facts_by_title: Dict[str, Fact] = {}
        for fact in self.facts:
            if fact.title in self._facts_by_title:
                raise ValueError(f"Duplicate fact title: {fact.title!r}")
            self._facts_by_title[fact.title] = fact
        for template in self.templates:
            if template.question_type not in QUESTION_TYPES:
                raise ValueError(f"Unknown template type: {template.question_type!r}")

        self.rng = rng or random.Random()
        self.per_movie_cap = per_movie_cap
        self.attempt_factor = attempt_factor
        self.year_spread = year_spread
        self.min_year = min_year
        self.current_year = current_year
        self.character_roles: Tuple[str, ...] = tuple(character_roles)
        self.extra_pools = EXTRA_DISTRACTORS if extra_pools is None else extra_pools

        self.logger = logging.getLogger('QuestionGenerator')
        self.stats = self._empty_stats()

    @staticmethod
    def _empty_stats() -> Dict[str, int]:
        return {
            'attempts': 0,
            'accepted': 0,
            'duplicates': 0,
            'no_candidate': 0,
            'validation_failures': 0,
        }

    # ----- public API -----
    def generate(self, count: int, existing_question_texts: Iterable[str] = ()) -> List[GeneratedQuestion]:
        """
        Produce up to ``count`` new questions.

        Returns fewer than ``count`` when the attempt budget runs out; that is
        an expected outcome, not an error.
        """
        if count < 1:
            raise ValueError(f"count must be a positive integer, got {count}")

        self.stats = self._empty_stats()
        existing = [text for text in existing_question_texts if text]
        seen = {text.lower() for text in existing}

        available = self._available_facts(existing)
        if not available:
            self.logger.warning(
                f"Every movie already has {self.per_movie_cap} or more questions; nothing to generate"
            )
            return []

        max_attempts = self.attempt_factor * count
        accepted: List[GeneratedQuestion] = []

        while len(accepted) < count and self.stats['attempts'] < max_attempts:
            self.stats['attempts'] += 1
            try:
                question = self._attempt(available, seen)
            except QuestionRejected as rejected:
                self._count_rejection(rejected)
                continue

            seen.add(question.question.lower())
            accepted.append(question)
            self.stats['accepted'] += 1
            self.logger.debug(f"Generated question {len(accepted)}: {question.question}")

        if len(accepted) < count:
            self.logger.warning(
                f"Attempt budget exhausted: generated {len(accepted)} of {count} questions "
                f"after {self.stats['attempts']} attempts"
            )
        else:
            self.logger.info(f"Generated {len(accepted)} questions in {self.stats['attempts']} attempts")

        return accepted

    def validate(self, question: GeneratedQuestion) -> bool:
        """Check a question against the fact table and the option invariants."""
        fact = self._facts_by_title.get(question.movie)
        if fact is None:
            return False

        expected = fact.answer_for(question.question_type, question.character_role)
        if expected is None or question.correct_answer != expected:
            return False

        options = list(question.options)
        if len(options) != OPTION_COUNT or len(set(options)) != OPTION_COUNT:
            return False
        return options.count(expected) == 1

    # ----- internals -----
    def _available_facts(self, existing: List[str]) -> List[Fact]:
        lowered = [text.lower() for text in existing]
        available = []
        for fact in self.facts:
            quoted = f"'{fact.title.lower()}'"
            existing_count = sum(1 for text in lowered if quoted in text)
            if existing_count < self.per_movie_cap:
                available.append(fact)
        return available

    def _attempt(self, available: List[Fact], seen: set) -> GeneratedQuestion:
        attempt = _Attempt(fact=self.rng.choice(available), template=self.rng.choice(self.templates))

        if attempt.template.question_type == "character":
            attempt.role = self.rng.choice(self.character_roles)
        attempt.text = attempt.template.render(attempt.fact, attempt.role)

        if attempt.text.lower() in seen:
            raise QuestionRejected(QuestionRejected.DUPLICATE, attempt.text)

        answer = attempt.fact.answer_for(attempt.template.question_type, attempt.role)
        if not answer:
            raise QuestionRejected(
                QuestionRejected.NO_CANDIDATE,
                f"'{attempt.fact.title}' has no {attempt.role or attempt.template.question_type}",
            )
        attempt.answer = answer
        attempt.options = self._build_options(attempt)

        question = GeneratedQuestion(
            question=attempt.text,
            correct_answer=attempt.answer,
            options=tuple(attempt.options),
            explanation=attempt.template.explain(attempt.fact, attempt.answer, attempt.role),
            difficulty=attempt.template.difficulty,
            movie=attempt.fact.title,
            question_type=attempt.template.question_type,
            character_role=attempt.role,
            category=attempt.template.category,
        )
        if not self.validate(question):
            raise QuestionRejected(QuestionRejected.VALIDATION, attempt.text)
        return question

    def _build_options(self, attempt: _Attempt) -> List[str]:
        pool = self._distractor_pool(attempt.template.question_type, attempt.fact, attempt.answer)
        needed = OPTION_COUNT - 1
        if len(pool) < needed:
            raise QuestionRejected(
                QuestionRejected.NO_CANDIDATE,
                f"Only {len(pool)} distractors available for a {attempt.template.question_type} question",
            )
        options = [attempt.answer] + self.rng.sample(pool, needed)
        self.rng.shuffle(options)
        return options

    def _distractor_pool(self, question_type: str, fact: Fact, answer: str) -> List[str]:
        if question_type == "year":
            low = max(self.min_year, fact.year - self.year_spread)
            high = min(self.current_year or date.today().year, fact.year + self.year_spread)
            return [str(year) for year in range(low, high + 1) if year != fact.year]

        if question_type == "director":
            known = [f.director for f in self.facts]
        elif question_type == "location":
            known = [f.location for f in self.facts]
        else:
            known = [name for f in self.facts for name in f.characters.values()]

        # dict.fromkeys keeps first-seen order while dropping repeats
        candidates = dict.fromkeys(list(known) + list(self.extra_pools.get(question_type, ())))
        return [name for name in candidates if name and name != answer]

    def _count_rejection(self, rejected: QuestionRejected):
        if rejected.reason == QuestionRejected.DUPLICATE:
            self.stats['duplicates'] += 1
        elif rejected.reason == QuestionRejected.NO_CANDIDATE:
            self.stats['no_candidate'] += 1
        else:
            self.stats['validation_failures'] += 1
            self.logger.warning(f"Discarded question that failed validation: {rejected}")
