"""Summary statistics for a finished (or abandoned) pass."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .state import AnsweredRecord, QuizSession

__all__ = ["PerformanceTier", "QuizResults", "percentage", "summarize"]


class PerformanceTier(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    KEEP_STUDYING = "keep-studying"

    @property
    def icon(self) -> str:
        return {
            PerformanceTier.EXCELLENT: "🎉",
            PerformanceTier.GOOD: "👍",
            PerformanceTier.KEEP_STUDYING: "📚",
        }[self]

    @classmethod
    def for_percentage(cls, value: int) -> "PerformanceTier":
        if value >= 70:
            return cls.EXCELLENT
        if value >= 50:
            return cls.GOOD
        return cls.KEEP_STUDYING


@dataclass(frozen=True)
class QuizResults:
    score: int
    total: int
    percentage: int
    total_time: int
    average_time_per_answered: int
    history: tuple[AnsweredRecord, ...]

    @property
    def answered(self) -> int:
        return len(self.history)

    @property
    def tier(self) -> PerformanceTier:
        return PerformanceTier.for_percentage(self.percentage)


def percentage(score: int, total: int) -> int:
    """``round(100 * score / total)`` with halves rounded up; 0 if empty."""

    if total <= 0:
        return 0
    return (200 * score + total) // (2 * total)


def summarize(session: QuizSession) -> QuizResults:
    answered = len(session.history)
    return QuizResults(
        score=session.score,
        total=session.question_count,
        percentage=percentage(session.score, session.question_count),
        total_time=session.total_time_seconds,
        average_time_per_answered=(
            session.total_time_seconds // answered if answered else 0
        ),
        history=session.history,
    )
