"""
Daily trivia question generation for the Horror4Ever trivia game
"""
from .facts import DEFAULT_FACTS, DEFAULT_TEMPLATES, Fact, Template, load_facts
from .question_generator import GeneratedQuestion, QuestionGenerator
from .scheduler import TriviaScheduler
from .store import QuestionStore

__all__ = [
    'DEFAULT_FACTS',
    'DEFAULT_TEMPLATES',
    'Fact',
    'GeneratedQuestion',
    'QuestionGenerator',
    'QuestionStore',
    'Template',
    'TriviaScheduler',
    'load_facts',
]
