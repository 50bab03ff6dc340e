"""Stateful wrapper that persists every session change."""

from __future__ import annotations

import logging
import time
from typing import Callable

from . import state
from .catalog import Question, QuestionCatalog, QuizCategory
from .persistence import STORAGE_KEY, SessionStore, load_session, save_session
from .results import QuizResults, summarize
from .state import Phase, QuizSession

__all__ = ["Clock", "QuizController"]

Clock = Callable[[], float]


class QuizController:
    """Apply session operations and save each resulting snapshot.

    The session is restored from ``store`` on construction. Each operation
    returns ``True`` when it changed the session (and the new snapshot has
    been written) and ``False`` when it was ignored for the current phase.
    """

    def __init__(
        self,
        catalog: QuestionCatalog,
        store: SessionStore,
        *,
        key: str = STORAGE_KEY,
        clock: Clock = time.time,
        logger: logging.Logger | None = None,
    ) -> None:
        self._catalog = catalog
        self._store = store
        self._key = key
        self._clock = clock
        self._log = logger or logging.getLogger(__name__)
        self._session = self._restore()

    @property
    def session(self) -> QuizSession:
        return self._session

    @property
    def catalog(self) -> QuestionCatalog:
        return self._catalog

    @property
    def phase(self) -> Phase:
        return self._session.phase

    @property
    def questions(self) -> tuple[Question, ...]:
        return self._catalog.filter(self._session.category)

    @property
    def current_question(self) -> Question | None:
        return state.current_question(self._session, self.questions)

    def set_player(self, name: str) -> bool:
        return self._apply("set_player", state.set_player(self._session, name))

    def select_category(self, category: QuizCategory) -> bool:
        return self._apply(
            "select_category",
            state.select_category(
                self._session, self._catalog, category, now=self._clock()
            ),
        )

    def toggle_option(self, option: str) -> bool:
        return self._apply(
            "toggle_option",
            state.toggle_option(self._session, self.questions, option),
        )

    def commit_answer(self) -> bool:
        return self._apply(
            "commit_answer",
            state.commit_answer(
                self._session, self.questions, now=self._clock()
            ),
        )

    def advance(self) -> bool:
        return self._apply(
            "advance", state.advance(self._session, now=self._clock())
        )

    def go_back(self) -> bool:
        return self._apply(
            "go_back", state.go_back(self._session, now=self._clock())
        )

    def submit_early(self) -> bool:
        return self._apply("submit_early", state.submit_early(self._session))

    def restart(self) -> bool:
        return self._apply(
            "restart",
            state.restart(self._session, self._catalog, now=self._clock()),
        )

    def go_home(self) -> bool:
        return self._apply("go_home", state.go_home(self._session))

    def results(self) -> QuizResults:
        return summarize(self._session)

    def reset(self) -> None:
        """Forget the saved session entirely, player included."""

        self._store.clear(self._key)
        self._session = QuizSession()
        self._log.info("Session cleared", extra={"event": "reset"})

    def _apply(self, event: str, updated: QuizSession) -> bool:
        if updated is self._session:
            self._log.debug(
                "Ignored %s in phase %s",
                event,
                self._session.phase.value,
                extra={"event": event, "applied": False},
            )
            return False
        self._session = updated
        save_session(self._store, updated, self._key)
        self._log.info(
            "Applied %s",
            event,
            extra={
                "event": event,
                "applied": True,
                "phase": updated.phase.value,
                "question_index": updated.current_index,
                "score": updated.score,
            },
        )
        return True

    def _restore(self) -> QuizSession:
        restored = load_session(self._store, self._key)
        if restored.category is None:
            return restored
        expected = len(self._catalog.filter(restored.category))
        if restored.question_count == expected:
            self._log.info(
                "Restored session",
                extra={
                    "event": "restore",
                    "phase": restored.phase.value,
                    "question_index": restored.current_index,
                },
            )
            return restored
        # The catalog changed since the snapshot; indices no longer line up.
        self._log.warning(
            "Saved session does not match the catalog; returning home",
            extra={
                "event": "restore.mismatch",
                "saved_count": restored.question_count,
                "catalog_count": expected,
            },
        )
        fresh = QuizSession(player=restored.player)
        save_session(self._store, fresh, self._key)
        return fresh
