"""
Reference data for trivia question generation
Movie facts, question templates and the supplemental distractor pools
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple

import yaml


QUESTION_TYPES = ("year", "director", "location", "character")

CHARACTER_ROLES = ("main villain", "protagonist", "final girl", "monster")


class FactTableError(ValueError):
    """Raised when a facts file or fact entry is malformed"""


@dataclass(frozen=True)
class Fact:
    title: str
    year: int
    director: str
    location: str
    characters: Mapping[str, str] = field(default_factory=dict)

    def answer_for(self, question_type: str, role: Optional[str] = None) -> Optional[str]:
        """Return the ground-truth answer this fact gives for a question type."""
        if question_type == "year":
            return str(self.year)
        if question_type == "director":
            return self.director
        if question_type == "location":
            return self.location
        if question_type == "character":
            return self.characters.get(role) if role else None
        return None


@dataclass(frozen=True)
class Template:
    question_type: str
    pattern: str
    explanation: str
    difficulty: int = 1
    category: str = "horror"

    def render(self, fact: Fact, role: Optional[str] = None) -> str:
        return self.pattern.format(movie=fact.title, role=role or "")

    def explain(self, fact: Fact, answer: str, role: Optional[str] = None) -> str:
        return self.explanation.format(movie=fact.title, answer=answer, role=role or "")


DEFAULT_FACTS: Tuple[Fact, ...] = (
    Fact("Halloween", 1978, "John Carpenter", "Haddonfield, Illinois", {
        "main villain": "Michael Myers", "protagonist": "Laurie Strode",
        "final girl": "Laurie Strode", "monster": "Michael Myers"}),
    Fact("The Shining", 1980, "Stanley Kubrick", "Overlook Hotel, Colorado", {
        "main villain": "Jack Torrance", "protagonist": "Danny Torrance",
        "final girl": "Wendy Torrance", "monster": "Jack Torrance"}),
    Fact("A Nightmare on Elm Street", 1984, "Wes Craven", "Springwood, Ohio", {
        "main villain": "Freddy Krueger", "protagonist": "Nancy Thompson",
        "final girl": "Nancy Thompson", "monster": "Freddy Krueger"}),
    Fact("Friday the 13th", 1980, "Sean S. Cunningham", "Camp Crystal Lake, New Jersey", {
        "main villain": "Jason Voorhees", "protagonist": "Alice Hardy",
        "final girl": "Alice Hardy", "monster": "Jason Voorhees"}),
    Fact("The Exorcist", 1973, "William Friedkin", "Georgetown, Washington D.C.", {
        "main villain": "Pazuzu", "protagonist": "Father Damien Karras",
        "final girl": "Regan MacNeil", "monster": "Pazuzu"}),
    Fact("Psycho", 1960, "Alfred Hitchcock", "Bates Motel, California", {
        "main villain": "Norman Bates", "protagonist": "Marion Crane",
        "final girl": "Lila Crane", "monster": "Norman Bates"}),
    Fact("The Texas Chain Saw Massacre", 1974, "Tobe Hooper", "Texas", {
        "main villain": "Leatherface", "protagonist": "Sally Hardesty",
        "final girl": "Sally Hardesty", "monster": "Leatherface"}),
    Fact("Evil Dead", 1981, "Sam Raimi", "Tennessee", {
        "main villain": "Deadites", "protagonist": "Ash Williams",
        "final girl": "Ash Williams", "monster": "Deadites"}),
    Fact("The Omen", 1976, "Richard Donner", "London, England", {
        "main villain": "Damien Thorn", "protagonist": "Robert Thorn",
        "final girl": "Katherine Thorn", "monster": "Damien Thorn"}),
    Fact("Poltergeist", 1982, "Tobe Hooper", "Cuesta Verde, California", {
        "main villain": "Beast", "protagonist": "Carol Anne Freeling",
        "final girl": "Diane Freeling", "monster": "Beast"}),
    Fact("The Fly", 1986, "David Cronenberg", "Philadelphia, Pennsylvania", {
        "main villain": "Seth Brundle", "protagonist": "Seth Brundle",
        "final girl": "Veronica Quaife", "monster": "Seth Brundle"}),
    Fact("Dawn of the Dead", 1978, "George A. Romero", "Shopping mall", {
        "main villain": "Zombies", "protagonist": "Peter Washington",
        "final girl": "Francine Parker", "monster": "Zombies"}),
)

DEFAULT_TEMPLATES: Tuple[Template, ...] = (
    Template("year", "What year was '{movie}' released?",
             "'{movie}' was released in {answer}.", difficulty=1),
    Template("director", "Who directed '{movie}'?",
             "'{movie}' was directed by {answer}.", difficulty=2),
    Template("location", "Where does '{movie}' take place?",
             "'{movie}' is set in {answer}.", difficulty=2),
    Template("character", "What is the name of the {role} in '{movie}'?",
             "The {role} in '{movie}' is {answer}.", difficulty=2),
)

# Names and places not tied to any fact; sampled after the fact table's own values
EXTRA_DISTRACTORS: Dict[str, Tuple[str, ...]] = {
    "director": (
        "John Carpenter", "Wes Craven", "Alfred Hitchcock", "Stanley Kubrick",
        "David Cronenberg", "George A. Romero", "Tobe Hooper", "William Friedkin",
        "Roman Polanski", "Brian De Palma", "Sam Raimi", "Ridley Scott",
    ),
    "location": (
        "New York City", "Los Angeles", "Chicago", "Texas", "California",
        "Illinois", "Ohio", "Maine", "Nevada", "Antarctica", "London, England",
        "Georgetown, Washington D.C.", "Baltimore, Maryland", "Philadelphia",
    ),
    "character": (
        "Michael Myers", "Freddy Krueger", "Jason Voorhees", "Leatherface",
        "Chucky", "Norman Bates", "Hannibal Lecter", "Regan MacNeil",
        "Laurie Strode", "Nancy Thompson", "Ellen Ripley", "Jack Torrance",
    ),
}


def fact_from_dict(data: dict) -> Fact:
    """Build a Fact from a mapping, as found in a YAML facts file."""
    if not isinstance(data, dict):
        raise FactTableError(f"Fact entry must be a mapping, got: {data!r}")

    missing = [key for key in ("title", "year", "director", "location") if not data.get(key)]
    if missing:
        raise FactTableError(f"Fact {data.get('title', '<untitled>')!r} is missing: {', '.join(missing)}")

    try:
        year = int(data["year"])
    except (TypeError, ValueError):
        raise FactTableError(f"Fact {data['title']!r} has a non-numeric year: {data['year']!r}")

    characters = data.get("characters") or {}
    if not isinstance(characters, dict):
        raise FactTableError(f"Fact {data['title']!r} characters must be a mapping of role to name")

    return Fact(
        title=str(data["title"]).strip(),
        year=year,
        director=str(data["director"]).strip(),
        location=str(data["location"]).strip(),
        characters={str(role): str(name) for role, name in characters.items()},
    )


def template_from_dict(data: dict) -> Template:
    if not isinstance(data, dict):
        raise FactTableError(f"Template entry must be a mapping, got: {data!r}")
    question_type = data.get("type")
    if question_type not in QUESTION_TYPES:
        raise FactTableError(f"Unknown template type: {question_type!r}")
    if not data.get("pattern") or not data.get("explanation"):
        raise FactTableError(f"Template {question_type!r} needs both a pattern and an explanation")

    # The question text is rendered before the answer is known
    placeholders = {
        "pattern": {"movie": "", "role": ""},
        "explanation": {"movie": "", "answer": "", "role": ""},
    }
    for key, values in placeholders.items():
        try:
            str(data[key]).format(**values)
        except (AttributeError, KeyError, IndexError, ValueError) as e:
            raise FactTableError(f"Template {question_type!r} {key} has an unknown placeholder: {e}")

    try:
        difficulty = int(data.get("difficulty", 1))
    except (TypeError, ValueError):
        raise FactTableError(f"Template {question_type!r} has a non-numeric difficulty: {data['difficulty']!r}")

    return Template(
        question_type=question_type,
        pattern=str(data["pattern"]),
        explanation=str(data["explanation"]),
        difficulty=difficulty,
        category=data.get("category", "horror"),
    )


def load_facts(path: str | Path) -> Tuple[List[Fact], List[Template]]:
    """
    Load a facts file.

    The file holds a top-level ``facts`` list and an optional ``templates``
    list. When no templates are given the defaults are returned.
    """
    facts_file = Path(path)
    if not facts_file.exists():
        raise FileNotFoundError(f"Facts file not found: {path}")

    with open(facts_file, 'r') as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise FactTableError(f"Facts file {path} must be a mapping with a 'facts' list")

    entries = raw.get("facts") or []
    template_entries = raw.get("templates") or []
    if not isinstance(entries, list) or not isinstance(template_entries, list):
        raise FactTableError(f"Facts file {path}: 'facts' and 'templates' must be lists")
    if not entries:
        raise FactTableError(f"Facts file {path} does not define any facts")

    facts = [fact_from_dict(entry) for entry in entries]
    templates = [template_from_dict(entry) for entry in template_entries]
    return facts, templates or list(DEFAULT_TEMPLATES)
