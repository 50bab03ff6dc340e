"""Quiz session state machine.

A :class:`QuizSession` is an immutable value. Every operation in this module
is a total function taking the current session (plus whatever the operation
needs) and returning the next session. Calling an operation from a phase
where it does not apply returns the *same object* unchanged, so hosts can
forward stale UI events (double clicks, late key presses) without checking
first, and callers can detect a rejected call with ``result is session``.

Phases are derived from the fields rather than stored::

    no-player -> category-selection -> in-progress <-> reviewing-feedback
                                              \\-> completed

``completed`` returns to ``category-selection`` through :func:`go_home` and
to ``in-progress`` at index 0 through :func:`restart`.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, replace
from enum import Enum

from .catalog import Question, QuestionCatalog, QuizCategory
from .evaluator import evaluate

__all__ = [
    "AnsweredRecord",
    "Phase",
    "QuizSession",
    "advance",
    "answered_indices",
    "commit_answer",
    "current_question",
    "elapsed_seconds",
    "go_back",
    "go_home",
    "phase",
    "progress",
    "record_for",
    "restart",
    "select_category",
    "set_player",
    "submit_early",
    "toggle_option",
]


class Phase(str, Enum):
    NO_PLAYER = "no-player"
    CATEGORY_SELECTION = "category-selection"
    IN_PROGRESS = "in-progress"
    REVIEWING_FEEDBACK = "reviewing-feedback"
    COMPLETED = "completed"


@dataclass(frozen=True)
class AnsweredRecord:
    """Committed answer for one question; never changed once created."""

    question_index: int
    question_text: str
    user_answer: tuple[str, ...]
    correct_answer: str | tuple[str, ...]
    is_correct: bool
    time_spent_seconds: int


@dataclass(frozen=True)
class QuizSession:
    player: str | None = None
    category: QuizCategory | None = None
    current_index: int = 0
    question_count: int = 0
    selected_options: tuple[str, ...] = ()
    feedback_revealed: bool = False
    last_answer_correct: bool = False
    score: int = 0
    history: tuple[AnsweredRecord, ...] = ()
    total_time_seconds: int = 0
    question_started_at: float | None = None
    completed: bool = False

    @property
    def phase(self) -> Phase:
        return phase(self)

    @property
    def is_last_question(self) -> bool:
        return self.current_index >= self.question_count - 1


def phase(session: QuizSession) -> Phase:
    if not session.player:
        return Phase.NO_PLAYER
    if session.category is None:
        return Phase.CATEGORY_SELECTION
    if session.completed:
        return Phase.COMPLETED
    if session.feedback_revealed:
        return Phase.REVIEWING_FEEDBACK
    return Phase.IN_PROGRESS


def elapsed_seconds(started_at: float | None, now: float) -> int:
    """Whole seconds between ``started_at`` and ``now``, never negative."""

    if started_at is None:
        return 0
    delta = now - started_at
    if not math.isfinite(delta) or delta <= 0:
        return 0
    return int(math.floor(delta))


def current_question(
    session: QuizSession, questions: Sequence[Question]
) -> Question | None:
    """Question at ``current_index`` of the active list, if there is one."""

    if session.category is None or session.completed:
        return None
    if 0 <= session.current_index < len(questions):
        return questions[session.current_index]
    return None


def record_for(session: QuizSession, index: int) -> AnsweredRecord | None:
    for record in session.history:
        if record.question_index == index:
            return record
    return None


def answered_indices(session: QuizSession) -> frozenset[int]:
    return frozenset(record.question_index for record in session.history)


def progress(session: QuizSession) -> float:
    """Fraction of the active list reached, for progress bars."""

    if session.question_count <= 0:
        return 0.0
    if session.completed:
        return 1.0
    return min(1.0, (session.current_index + 1) / session.question_count)


# Operations ---------------------------------------------------------------


def set_player(session: QuizSession, name: str) -> QuizSession:
    if phase(session) is not Phase.NO_PLAYER:
        return session
    cleaned = (name or "").strip()
    if not cleaned:
        return session
    return replace(session, player=cleaned)


def select_category(
    session: QuizSession,
    catalog: QuestionCatalog,
    category: QuizCategory,
    *,
    now: float,
) -> QuizSession:
    """Start a pass over ``category``.

    An empty category still starts; the session then has no current question
    and the host is expected to finish it with :func:`submit_early`.
    """

    if phase(session) is not Phase.CATEGORY_SELECTION:
        return session
    return _fresh_pass(session, catalog, category, now=now)


def toggle_option(
    session: QuizSession, questions: Sequence[Question], option: str
) -> QuizSession:
    if phase(session) is not Phase.IN_PROGRESS:
        return session
    question = current_question(session, questions)
    if question is None or not question.has_option(option):
        return session

    if not question.is_multi:
        selected: tuple[str, ...] = (option,)
    elif option in session.selected_options:
        selected = tuple(
            item for item in session.selected_options if item != option
        )
    else:
        selected = session.selected_options + (option,)
    if selected == session.selected_options:
        return session
    return replace(session, selected_options=selected)


def commit_answer(
    session: QuizSession, questions: Sequence[Question], *, now: float
) -> QuizSession:
    """Lock in the current selection and reveal feedback.

    A question reached again through :func:`go_back` already has a record;
    committing there is not scored a second time. The stored answer is
    shown again instead so the user can move forward.
    """

    if phase(session) is not Phase.IN_PROGRESS:
        return session
    question = current_question(session, questions)
    if question is None or not session.selected_options:
        return session

    existing = record_for(session, session.current_index)
    if existing is not None:
        return replace(
            session,
            selected_options=existing.user_answer,
            feedback_revealed=True,
            last_answer_correct=existing.is_correct,
        )

    correct = evaluate(question, session.selected_options)
    spent = elapsed_seconds(session.question_started_at, now)
    record = AnsweredRecord(
        question_index=session.current_index,
        question_text=question.text,
        user_answer=session.selected_options,
        correct_answer=question.correct_answer,
        is_correct=correct,
        time_spent_seconds=spent,
    )
    return replace(
        session,
        feedback_revealed=True,
        last_answer_correct=correct,
        score=session.score + (1 if correct else 0),
        history=session.history + (record,),
        total_time_seconds=session.total_time_seconds + spent,
    )


def advance(session: QuizSession, *, now: float) -> QuizSession:
    if phase(session) is not Phase.REVIEWING_FEEDBACK:
        return session
    cleared = replace(
        session,
        selected_options=(),
        feedback_revealed=False,
        last_answer_correct=False,
        question_started_at=now,
    )
    if session.is_last_question:
        return replace(cleared, completed=True)
    return replace(cleared, current_index=session.current_index + 1)


def go_back(session: QuizSession, *, now: float) -> QuizSession:
    """Step back one question for viewing; history and score are kept."""

    if phase(session) is not Phase.IN_PROGRESS or session.current_index <= 0:
        return session
    return replace(
        session,
        current_index=session.current_index - 1,
        selected_options=(),
        question_started_at=now,
    )


def submit_early(session: QuizSession) -> QuizSession:
    if phase(session) is not Phase.IN_PROGRESS:
        return session
    return replace(session, feedback_revealed=False, completed=True)


def restart(
    session: QuizSession, catalog: QuestionCatalog, *, now: float
) -> QuizSession:
    if phase(session) is not Phase.COMPLETED or session.category is None:
        return session
    return _fresh_pass(session, catalog, session.category, now=now)


def go_home(session: QuizSession) -> QuizSession:
    if phase(session) not in (
        Phase.IN_PROGRESS,
        Phase.REVIEWING_FEEDBACK,
        Phase.COMPLETED,
    ):
        return session
    return QuizSession(player=session.player)


def _fresh_pass(
    session: QuizSession,
    catalog: QuestionCatalog,
    category: QuizCategory,
    *,
    now: float,
) -> QuizSession:
    return QuizSession(
        player=session.player,
        category=category,
        question_count=len(catalog.filter(category)),
        question_started_at=now,
    )
