"""Question catalog loading and category filtering.

The catalog is a read-only, ordered collection of questions loaded once from
a JSON document shaped like ``{"questions": [...]}``. Each entry carries
``text``, ``type`` (``single`` or ``multi``), ``options`` and
``correctAnswer``; ``id``, ``category`` and ``explanation`` are optional.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

__all__ = [
    "CatalogError",
    "Question",
    "QuestionCatalog",
    "QuestionType",
    "QuizCategory",
    "load_catalog",
]


class CatalogError(RuntimeError):
    """Raised when the question catalog cannot be loaded or is invalid."""


class QuestionType(str, Enum):
    SINGLE = "single"
    MULTI = "multi"


class QuizCategory(str, Enum):
    """Partition of the catalog chosen once per pass."""

    TRUE_FALSE = "true-false"
    SINGLE_CHOICE = "single-choice"
    MULTI_SELECT = "multi-select"

    @property
    def label(self) -> str:
        return _CATEGORY_LABELS[self]

    @classmethod
    def parse(cls, raw: object) -> "QuizCategory | None":
        """Return the category named by ``raw`` or ``None``.

        Accepts the canonical value, the member name and a few spellings
        seen in hand-written catalogs (``true/false``, ``multi_select``).
        """

        if isinstance(raw, cls):
            return raw
        if not isinstance(raw, str):
            return None
        key = raw.strip().lower().replace("_", "-").replace("/", "-")
        key = key.replace(" ", "-")
        return _CATEGORY_ALIASES.get(key)


_CATEGORY_LABELS = {
    QuizCategory.TRUE_FALSE: "True / False",
    QuizCategory.SINGLE_CHOICE: "Single choice",
    QuizCategory.MULTI_SELECT: "Multi-select",
}

_CATEGORY_ALIASES = {
    "true-false": QuizCategory.TRUE_FALSE,
    "truefalse": QuizCategory.TRUE_FALSE,
    "tf": QuizCategory.TRUE_FALSE,
    "single-choice": QuizCategory.SINGLE_CHOICE,
    "single": QuizCategory.SINGLE_CHOICE,
    "multi-select": QuizCategory.MULTI_SELECT,
    "multiple-select": QuizCategory.MULTI_SELECT,
    "multi": QuizCategory.MULTI_SELECT,
}


@dataclass(frozen=True)
class Question:
    """Immutable catalog entry."""

    index: int
    id: str
    text: str
    type: QuestionType
    options: tuple[str, ...]
    correct_answer: str | tuple[str, ...]
    category: QuizCategory
    explanation: str | None = None

    @property
    def is_multi(self) -> bool:
        return self.type is QuestionType.MULTI

    def has_option(self, option: str) -> bool:
        return option in self.options


class QuestionCatalog(Sequence[Question]):
    """Ordered, read-only question collection."""

    def __init__(self, questions: Iterable[Question] = ()) -> None:
        self._questions: tuple[Question, ...] = tuple(questions)

    def __getitem__(self, index):  # type: ignore[override]
        return self._questions[index]

    def __len__(self) -> int:
        return len(self._questions)

    def __iter__(self) -> Iterator[Question]:
        return iter(self._questions)

    def filter(self, category: QuizCategory | None) -> tuple[Question, ...]:
        """Return the questions in ``category`` keeping catalog order."""

        if category is None:
            return ()
        return tuple(q for q in self._questions if q.category is category)

    def counts(self) -> dict[QuizCategory, int]:
        totals = {category: 0 for category in QuizCategory}
        for question in self._questions:
            totals[question.category] += 1
        return totals

    @classmethod
    def from_payload(cls, payload: object) -> "QuestionCatalog":
        if isinstance(payload, Mapping):
            entries = payload.get("questions")
        else:
            entries = payload
        if not isinstance(entries, list):
            raise CatalogError("catalog must contain a 'questions' list")
        return cls(
            _build_question(entry, index)
            for index, entry in enumerate(entries)
        )


def load_catalog(path: Path) -> QuestionCatalog:
    """Read and validate the catalog JSON document at ``path``."""

    try:
        text = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise CatalogError(f"Question catalog not found: {path}") from exc
    except OSError as exc:
        raise CatalogError(f"Unable to read question catalog: {exc}") from exc
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise CatalogError(
            f"Question catalog is not valid JSON: {path} ({exc})"
        ) from exc
    return QuestionCatalog.from_payload(payload)


def _build_question(data: object, index: int) -> Question:
    where = f"question {index + 1}"
    if not isinstance(data, Mapping):
        raise CatalogError(f"{where}: entry must be an object")

    text = str(data.get("text", "")).strip()
    if not text:
        raise CatalogError(f"{where}: 'text' is required")
    try:
        qtype = QuestionType(str(data.get("type", "single")).strip().lower())
    except ValueError as exc:
        raise CatalogError(
            f"{where}: 'type' must be 'single' or 'multi'"
        ) from exc

    raw_options = data.get("options")
    if not isinstance(raw_options, list) or not raw_options:
        raise CatalogError(f"{where}: 'options' must be a non-empty list")
    options = tuple(str(option) for option in raw_options)
    if len(set(options)) != len(options):
        raise CatalogError(f"{where}: duplicate options")

    correct = _correct_answer(data.get("correctAnswer"), qtype, options, where)

    category = _category_for(data.get("category"), qtype, options, where)
    explanation = data.get("explanation")
    return Question(
        index=index,
        id=str(data.get("id", index)),
        text=text,
        type=qtype,
        options=options,
        correct_answer=correct,
        category=category,
        explanation=str(explanation) if explanation else None,
    )


def _correct_answer(
    raw: object,
    qtype: QuestionType,
    options: tuple[str, ...],
    where: str,
) -> str | tuple[str, ...]:
    if qtype is QuestionType.SINGLE:
        if isinstance(raw, list):
            raise CatalogError(
                f"{where}: single-choice requires exactly one answer"
            )
        answer = str(raw) if raw is not None else ""
        if answer not in options:
            raise CatalogError(
                f"{where}: correctAnswer must be one of the options"
            )
        return answer

    if not isinstance(raw, list) or not raw:
        raise CatalogError(
            f"{where}: multi-select correctAnswer must be a non-empty list"
        )
    answers = tuple(str(item) for item in raw)
    if len(set(answers)) != len(answers):
        raise CatalogError(f"{where}: duplicate entries in correctAnswer")
    missing = [item for item in answers if item not in options]
    if missing:
        raise CatalogError(
            f"{where}: correctAnswer not among options: {', '.join(missing)}"
        )
    return answers


def _category_for(
    raw: object,
    qtype: QuestionType,
    options: tuple[str, ...],
    where: str,
) -> QuizCategory:
    if raw is not None:
        category = QuizCategory.parse(raw)
        if category is None:
            raise CatalogError(f"{where}: unknown category {raw!r}")
        return category
    if qtype is QuestionType.MULTI:
        return QuizCategory.MULTI_SELECT
    if sorted(option.strip().lower() for option in options) == [
        "false",
        "true",
    ]:
        return QuizCategory.TRUE_FALSE
    return QuizCategory.SINGLE_CHOICE
