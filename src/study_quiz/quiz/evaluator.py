"""Answer correctness checks."""

from __future__ import annotations

from collections.abc import Sequence

from .catalog import Question

__all__ = ["correct_options", "evaluate"]


def evaluate(question: Question, selected: Sequence[str]) -> bool:
    """Return whether ``selected`` answers ``question`` correctly.

    Single-choice answers must be exactly one option equal to the correct
    answer (case-sensitive). Multi-select answers are compared as sets, so
    selection order and repeats do not matter, and there is no partial
    credit.
    """

    if question.is_multi:
        return set(selected) == set(correct_options(question))
    return len(selected) == 1 and selected[0] == question.correct_answer


def correct_options(question: Question) -> tuple[str, ...]:
    answer = question.correct_answer
    if isinstance(answer, str):
        return (answer,)
    return tuple(answer)
