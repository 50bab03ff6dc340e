"""Session snapshots and the key-value stores that hold them.

``save`` turns a :class:`QuizSession` into a JSON-compatible dict and
``load`` turns such a dict back into a session. ``load`` never fails: each
field is read on its own and falls back to the fresh-session default when it
is missing or has the wrong shape, so blobs written by older versions (or
cut short by a crash) still restore as much as they can.
"""

from __future__ import annotations

import copy
import json
import logging
import math
import os
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Protocol

from .catalog import QuizCategory
from .state import AnsweredRecord, QuizSession

__all__ = [
    "BLOB_VERSION",
    "STORAGE_KEY",
    "JsonFileStore",
    "MemoryStore",
    "SessionStore",
    "load",
    "load_session",
    "save",
    "save_session",
]

STORAGE_KEY = "study_quiz.session.v1"
BLOB_VERSION = 1

logger = logging.getLogger(__name__)


class SessionStore(Protocol):
    """Minimal blob store used for session snapshots."""

    def get(self, key: str) -> Mapping[str, Any] | None: ...

    def set(self, key: str, blob: Mapping[str, Any]) -> None: ...

    def clear(self, key: str) -> None: ...


class MemoryStore:
    """In-process store; keeps deep copies so callers cannot alias blobs."""

    def __init__(self) -> None:
        self._data: dict[str, dict[str, Any]] = {}
        self.writes = 0

    def get(self, key: str) -> Mapping[str, Any] | None:
        blob = self._data.get(key)
        return copy.deepcopy(blob) if blob is not None else None

    def set(self, key: str, blob: Mapping[str, Any]) -> None:
        self._data[key] = copy.deepcopy(dict(blob))
        self.writes += 1

    def clear(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore:
    """Store each key as ``<root>/<key>.json`` with atomic replacement."""

    def __init__(self, root: Path) -> None:
        self._root = Path(root)
        self._root.mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, key: str) -> Path:
        return self._root / f"{key}.json"

    def get(self, key: str) -> Mapping[str, Any] | None:
        target = self.path_for(key)
        if not target.is_file():
            return None
        try:
            payload = json.loads(target.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.warning(
                "Ignoring unreadable session file",
                extra={
                    "event": "store.corrupt",
                    "path": target,
                    "error": str(exc),
                },
            )
            return None
        if not isinstance(payload, Mapping):
            logger.warning(
                "Ignoring session file without a JSON object",
                extra={"event": "store.corrupt", "path": target},
            )
            return None
        return payload

    def set(self, key: str, blob: Mapping[str, Any]) -> None:
        _atomic_write_json(self.path_for(key), blob)

    def clear(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)


def save(session: QuizSession) -> dict[str, Any]:
    return {
        "version": BLOB_VERSION,
        "player": session.player,
        "category": session.category.value if session.category else None,
        "current_index": session.current_index,
        "question_count": session.question_count,
        "selected_options": list(session.selected_options),
        "feedback_revealed": session.feedback_revealed,
        "last_answer_correct": session.last_answer_correct,
        "score": session.score,
        "history": [_record_to_dict(record) for record in session.history],
        "total_time_seconds": session.total_time_seconds,
        "question_started_at": session.question_started_at,
        "completed": session.completed,
    }


def load(blob: Mapping[str, Any] | None) -> QuizSession:
    """Rebuild a session from ``blob``, defaulting anything unusable.

    Cross-field rules are re-established after the per-field pass: the score
    is recounted from the history, the index is clamped into the active
    list, and feedback is only kept when the current question has a record.
    """

    default = QuizSession()
    if not isinstance(blob, Mapping):
        return default

    player = blob.get("player")
    if not isinstance(player, str) or not player.strip():
        return default
    player = player.strip()

    category = _category(blob.get("category"))
    if category is None:
        return QuizSession(player=player)

    count = _count(blob.get("question_count"), default.question_count)
    index = _count(blob.get("current_index"), default.current_index)
    index = min(index, max(count - 1, 0))
    history = _history(blob.get("history"), count)
    selected = _options(blob.get("selected_options"))
    completed = _flag(blob.get("completed"), default.completed)
    revealed = _flag(blob.get("feedback_revealed"), default.feedback_revealed)
    if (
        completed
        or not selected
        or index not in {record.question_index for record in history}
    ):
        revealed = False
    correct = revealed and _flag(
        blob.get("last_answer_correct"), default.last_answer_correct
    )

    return QuizSession(
        player=player,
        category=category,
        current_index=index,
        question_count=count,
        selected_options=selected,
        feedback_revealed=revealed,
        last_answer_correct=correct,
        score=sum(1 for record in history if record.is_correct),
        history=history,
        total_time_seconds=_count(
            blob.get("total_time_seconds"), default.total_time_seconds
        ),
        question_started_at=_timestamp(blob.get("question_started_at")),
        completed=completed,
    )


def load_session(store: SessionStore, key: str = STORAGE_KEY) -> QuizSession:
    return load(store.get(key))


def save_session(
    store: SessionStore, session: QuizSession, key: str = STORAGE_KEY
) -> None:
    store.set(key, save(session))


def _record_to_dict(record: AnsweredRecord) -> dict[str, Any]:
    answer = record.correct_answer
    return {
        "question_index": record.question_index,
        "question_text": record.question_text,
        "user_answer": list(record.user_answer),
        "correct_answer": answer if isinstance(answer, str) else list(answer),
        "is_correct": record.is_correct,
        "time_spent_seconds": record.time_spent_seconds,
    }


def _record_from_dict(data: object) -> AnsweredRecord | None:
    if not isinstance(data, Mapping):
        return None
    index = data.get("question_index")
    if not _is_count(index):
        return None
    user_answer = _options(data.get("user_answer"))
    if not user_answer:
        return None
    raw_correct = data.get("correct_answer")
    if isinstance(raw_correct, str):
        correct: str | tuple[str, ...] = raw_correct
    else:
        correct = _options(raw_correct)
        if not correct:
            return None
    is_correct = data.get("is_correct")
    if not isinstance(is_correct, bool):
        return None
    spent = data.get("time_spent_seconds")
    text = data.get("question_text")
    return AnsweredRecord(
        question_index=index,
        question_text=text if isinstance(text, str) else "",
        user_answer=user_answer,
        correct_answer=correct,
        is_correct=is_correct,
        time_spent_seconds=spent if _is_count(spent) else 0,
    )


def _history(raw: object, count: int) -> tuple[AnsweredRecord, ...]:
    if not isinstance(raw, list):
        return ()
    records: list[AnsweredRecord] = []
    for item in raw:
        record = _record_from_dict(item)
        if record is None or record.question_index >= count:
            continue
        # Records are append-only in increasing index order.
        if records and record.question_index <= records[-1].question_index:
            continue
        records.append(record)
    return tuple(records)


def _category(raw: object) -> QuizCategory | None:
    if not isinstance(raw, str):
        return None
    try:
        return QuizCategory(raw)
    except ValueError:
        return None


def _is_count(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return value >= 0


def _count(value: object, fallback: int) -> int:
    if _is_count(value):
        return value  # type: ignore[return-value]
    return fallback


def _flag(value: object, fallback: bool) -> bool:
    return value if isinstance(value, bool) else fallback


def _options(raw: object) -> tuple[str, ...]:
    if not isinstance(raw, list) or not all(isinstance(x, str) for x in raw):
        return ()
    seen: list[str] = []
    for item in raw:
        if item not in seen:
            seen.append(item)
    return tuple(seen)


def _timestamp(raw: object) -> float | None:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return None
    value = float(raw)
    return value if math.isfinite(value) else None


def _atomic_write_json(path: Path, payload: Mapping[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    handle = tempfile.NamedTemporaryFile(
        "w",
        delete=False,
        encoding="utf-8",
        dir=str(path.parent),
        prefix=f".{path.stem}.",
        suffix=".tmp",
    )
    try:
        json.dump(payload, handle, indent=2, sort_keys=True)
        handle.flush()
        os.fsync(handle.fileno())
    finally:
        handle.close()
    os.replace(handle.name, path)
    try:
        path.chmod(0o600)
    except PermissionError:  # pragma: no cover - depends on filesystem
        pass
