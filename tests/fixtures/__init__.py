"""Shared testing fixtures for the study_quiz test suite."""

from .catalog import (  # noqa: F401
    SAMPLE_QUESTIONS,
    FakeClock,
    build_catalog,
    write_catalog,
)

__all__ = [
    "SAMPLE_QUESTIONS",
    "FakeClock",
    "build_catalog",
    "write_catalog",
]
