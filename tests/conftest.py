from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Iterator

import pytest

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

# Ensure src/ is importable when the package is not installed
ROOT = TESTS_DIR.parent
for extra in (ROOT / "src",):
    path_str = str(extra)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)

from fixtures import FakeClock, build_catalog  # noqa: E402

from study_quiz.quiz.catalog import QuestionCatalog  # noqa: E402
from study_quiz.quiz.persistence import MemoryStore  # noqa: E402


@pytest.fixture
def catalog() -> QuestionCatalog:
    """Five questions: two true/false, two single-choice, one multi."""

    return build_catalog()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture(autouse=True)
def _isolated_workspace(tmp_path: Path, monkeypatch) -> Iterator[None]:
    """Keep every test's data home (and cwd) inside its tmp directory."""

    monkeypatch.setenv("STUDY_QUIZ_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.chdir(tmp_path)
    yield
    logger = logging.getLogger("study_quiz")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
