from .catalog import (
    CatalogError,
    Question,
    QuestionCatalog,
    QuestionType,
    QuizCategory,
    load_catalog,
)
from .controller import QuizController
from .evaluator import correct_options, evaluate
from .persistence import (
    STORAGE_KEY,
    JsonFileStore,
    MemoryStore,
    SessionStore,
    load,
    load_session,
    save,
    save_session,
)
from .results import PerformanceTier, QuizResults, summarize
from .session import parse_session_command, run_quiz_session
from .state import AnsweredRecord, Phase, QuizSession

__all__ = [
    "CatalogError",
    "Question",
    "QuestionCatalog",
    "QuestionType",
    "QuizCategory",
    "load_catalog",
    "QuizController",
    "correct_options",
    "evaluate",
    "STORAGE_KEY",
    "JsonFileStore",
    "MemoryStore",
    "SessionStore",
    "load",
    "load_session",
    "save",
    "save_session",
    "PerformanceTier",
    "QuizResults",
    "summarize",
    "parse_session_command",
    "run_quiz_session",
    "AnsweredRecord",
    "Phase",
    "QuizSession",
]
