from __future__ import annotations

import json

import pytest

from study_quiz.quiz import persistence, state
from study_quiz.quiz.catalog import QuizCategory
from study_quiz.quiz.persistence import (
    STORAGE_KEY,
    JsonFileStore,
    MemoryStore,
    load,
    load_session,
    save,
    save_session,
)
from study_quiz.quiz.state import AnsweredRecord, Phase, QuizSession

T0 = 1_700_000_000.25


def _reachable_sessions(catalog):
    single = catalog.filter(QuizCategory.SINGLE_CHOICE)
    multi = catalog.filter(QuizCategory.MULTI_SELECT)
    fresh = QuizSession()
    named = state.set_player(fresh, "Ada")
    started = state.select_category(
        named, catalog, QuizCategory.SINGLE_CHOICE, now=T0
    )
    picked = state.toggle_option(started, single, "London")
    reviewing = state.commit_answer(picked, single, now=T0 + 4.5)
    second = state.advance(reviewing, now=T0 + 6)
    done = state.submit_early(second)
    multi_started = state.select_category(
        named, catalog, QuizCategory.MULTI_SELECT, now=T0
    )
    multi_picked = state.toggle_option(
        state.toggle_option(multi_started, multi, "C"), multi, "A"
    )
    multi_done = state.commit_answer(multi_picked, multi, now=T0 + 1)
    revisit = state.commit_answer(
        state.toggle_option(
            state.go_back(second, now=T0 + 7), single, "Berlin"
        ),
        single,
        now=T0 + 8,
    )
    return [
        fresh,
        named,
        started,
        picked,
        reviewing,
        second,
        done,
        multi_picked,
        multi_done,
        revisit,
        state.go_home(done),
    ]


def test_round_trip_for_reachable_sessions(catalog):
    for session in _reachable_sessions(catalog):
        assert load(save(session)) == session


def test_round_trip_survives_json_encoding(catalog):
    for session in _reachable_sessions(catalog):
        blob = json.loads(json.dumps(save(session)))
        assert load(blob) == session


def test_blob_shape(catalog):
    session = _reachable_sessions(catalog)[8]
    blob = save(session)
    assert blob["version"] == persistence.BLOB_VERSION
    assert blob["category"] == "multi-select"
    assert blob["selected_options"] == ["C", "A"]
    assert blob["history"][0]["correct_answer"] == ["A", "C"]


@pytest.mark.parametrize("blob", [None, {}, [], "junk", {"player": "  "}])
def test_missing_or_unusable_blob_is_fresh(blob):
    assert load(blob) == QuizSession()


def test_unknown_category_falls_back_to_category_selection():
    session = load({"player": "Ada", "category": "essay", "score": 4})
    assert session == QuizSession(player="Ada")
    assert session.phase is Phase.CATEGORY_SELECTION


def test_each_field_defaults_independently():
    blob = {
        "player": "Ada",
        "category": "single-choice",
        "question_count": 3,
        "current_index": "two",
        "selected_options": ["x", 1],
        "feedback_revealed": "yes",
        "total_time_seconds": -4,
        "question_started_at": "later",
        "completed": None,
    }
    session = load(blob)
    assert session.player == "Ada"
    assert session.category is QuizCategory.SINGLE_CHOICE
    assert session.question_count == 3
    assert session.current_index == 0
    assert session.selected_options == ()
    assert session.feedback_revealed is False
    assert session.total_time_seconds == 0
    assert session.question_started_at is None
    assert session.completed is False


def test_schema_older_blob_without_new_fields():
    session = load(
        {
            "player": "Ada",
            "category": "true-false",
            "question_count": 2,
            "current_index": 1,
        }
    )
    assert session.phase is Phase.IN_PROGRESS
    assert session.current_index == 1
    assert session.history == ()


def _record(index, correct=True, **overrides):
    data = {
        "question_index": index,
        "question_text": f"Q{index}",
        "user_answer": ["a"],
        "correct_answer": "a" if correct else "b",
        "is_correct": correct,
        "time_spent_seconds": 3,
    }
    data.update(overrides)
    return data


def test_history_entries_are_validated_one_by_one():
    blob = {
        "player": "Ada",
        "category": "single-choice",
        "question_count": 4,
        "current_index": 3,
        "score": 99,
        "history": [
            _record(0),
            "garbage",
            _record(1, correct=False),
            _record(1),
            _record(2, is_correct="yes"),
            _record(2, user_answer=[]),
            _record(3, time_spent_seconds=-1),
            _record(9),
        ],
    }
    session = load(blob)
    assert [r.question_index for r in session.history] == [0, 1, 3]
    assert session.history[2].time_spent_seconds == 0
    assert session.score == 2


def test_index_is_clamped_to_question_count():
    session = load(
        {
            "player": "Ada",
            "category": "single-choice",
            "question_count": 2,
            "current_index": 7,
        }
    )
    assert session.current_index == 1


def test_feedback_without_record_is_dropped():
    session = load(
        {
            "player": "Ada",
            "category": "single-choice",
            "question_count": 2,
            "current_index": 0,
            "selected_options": ["Paris"],
            "feedback_revealed": True,
            "last_answer_correct": True,
        }
    )
    assert session.feedback_revealed is False
    assert session.last_answer_correct is False
    assert session.selected_options == ("Paris",)


def test_restored_feedback_keeps_correctness():
    session = load(
        {
            "player": "Ada",
            "category": "single-choice",
            "question_count": 2,
            "current_index": 0,
            "selected_options": ["a"],
            "feedback_revealed": True,
            "last_answer_correct": True,
            "history": [_record(0)],
        }
    )
    assert session.phase is Phase.REVIEWING_FEEDBACK
    assert session.last_answer_correct is True
    assert session.history == (
        AnsweredRecord(
            question_index=0,
            question_text="Q0",
            user_answer=("a",),
            correct_answer="a",
            is_correct=True,
            time_spent_seconds=3,
        ),
    )


def test_memory_store_copies_blobs(catalog):
    store = MemoryStore()
    session = _reachable_sessions(catalog)[4]
    save_session(store, session)
    blob = store.get(STORAGE_KEY)
    blob["history"].clear()
    assert load_session(store) == session
    assert store.writes == 1
    store.clear(STORAGE_KEY)
    assert store.get(STORAGE_KEY) is None
    assert load_session(store) == QuizSession()


def test_json_file_store_round_trip(tmp_path, catalog):
    store = JsonFileStore(tmp_path / "sessions")
    session = _reachable_sessions(catalog)[5]
    save_session(store, session)
    path = store.path_for(STORAGE_KEY)
    assert path.is_file()
    assert json.loads(path.read_text(encoding="utf-8"))["player"] == "Ada"
    assert load_session(store) == session
    assert not list(path.parent.glob("*.tmp"))


def test_json_file_store_last_write_wins(tmp_path, catalog):
    store = JsonFileStore(tmp_path)
    sessions = _reachable_sessions(catalog)
    for session in sessions:
        save_session(store, session)
    assert load_session(store) == sessions[-1]


def test_json_file_store_treats_corrupt_file_as_absent(tmp_path, caplog):
    store = JsonFileStore(tmp_path)
    store.path_for(STORAGE_KEY).write_text("{oops", encoding="utf-8")
    with caplog.at_level("WARNING", logger="study_quiz.quiz.persistence"):
        assert store.get(STORAGE_KEY) is None
    assert "unreadable" in caplog.text
    assert load_session(store) == QuizSession()


def test_json_file_store_rejects_non_object(tmp_path):
    store = JsonFileStore(tmp_path)
    store.path_for(STORAGE_KEY).write_text("[1, 2]", encoding="utf-8")
    assert store.get(STORAGE_KEY) is None


def test_json_file_store_clear(tmp_path, catalog):
    store = JsonFileStore(tmp_path)
    save_session(store, _reachable_sessions(catalog)[1])
    store.clear(STORAGE_KEY)
    store.clear(STORAGE_KEY)
    assert store.get(STORAGE_KEY) is None
