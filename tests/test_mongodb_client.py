"""
Tests for the MongoDB persistence layer.

Queries run against an in-process mongomock server; the exact shape of the
live-answer update is checked against a mocked collection.
"""

import random
from datetime import datetime
from unittest.mock import ANY, MagicMock

import mongomock
import pytest
from pymongo.errors import PyMongoError

from study_companion.core.live_quiz import LiveQuizManager
from study_companion.core.mongodb_client import MongoDBClient
from study_companion.models.schemas import LiveSession


@pytest.fixture
def mongodb():
    return MongoDBClient(client=mongomock.MongoClient())


def make_note(text="문제 1", answer="3"):
    return {"text": text, "answer": answer, "subject": "math", "unit": "미분계수"}


def make_session(session_id="s-1", join_code="ABC123", status="waiting"):
    return {
        "session_id": session_id,
        "join_code": join_code,
        "host_id": "host",
        "status": status,
        "quiz_set": [],
        "participants": [{"user_id": "host", "nickname": "호스트"}],
        "answers": [],
        "created_at": datetime(2025, 12, 1, 9, 0),
        "updated_at": datetime(2025, 12, 1, 9, 0),
    }


class TestIncorrectNotes:
    """One note per user and question text."""

    def test_repeat_miss_updates_count_and_keeps_id(self, mongodb):
        first = mongodb.record_incorrect_note("user-1", make_note())
        second = mongodb.record_incorrect_note("user-1", make_note(answer="4"))

        notes = mongodb.get_incorrect_notes("user-1")
        assert first == second
        assert len(notes) == 1
        assert notes[0]["incorrect_count"] == 2
        assert notes[0]["answer"] == "4"
        assert "_id" not in notes[0]

    def test_notes_are_scoped_per_user(self, mongodb):
        mongodb.record_incorrect_note("user-1", make_note())
        note_id = mongodb.record_incorrect_note("user-2", make_note())

        assert len(mongodb.get_incorrect_notes("user-1")) == 1
        assert mongodb.get_incorrect_note("user-1", note_id) is None
        assert mongodb.get_incorrect_note("user-2", note_id)["text"] == "문제 1"

    def test_delete(self, mongodb):
        note_id = mongodb.record_incorrect_note("user-1", make_note())

        assert mongodb.delete_incorrect_note("user-1", note_id) is True
        assert mongodb.delete_incorrect_note("user-1", note_id) is False
        assert mongodb.get_incorrect_notes("user-1") == []


class TestStudyTimerStorage:

    def test_only_one_timer_per_user(self, mongodb):
        started_at = datetime(2025, 12, 1, 9, 0)

        assert mongodb.start_timer("user-1", "수학", started_at) is True
        assert mongodb.start_timer("user-1", "영어", started_at) is False

        timer = mongodb.pop_timer("user-1")
        assert timer["subject"] == "수학"
        assert timer["started_at"] == started_at
        assert "_id" not in timer
        assert mongodb.pop_timer("user-1") is None
        assert mongodb.start_timer("user-1", "영어", started_at) is True

    def test_study_minutes_accumulate(self, mongodb):
        mongodb.add_study_minutes("user-1", "2025-12-01", "수학", 10)
        mongodb.add_study_minutes("user-1", "2025-12-01", "영어", 5)
        mongodb.add_study_minutes("user-1", "2025-12-01", "수학", 3)

        log = mongodb.get_daily_study_log("user-1", "2025-12-01")
        assert log["total_study_minutes"] == 18
        assert log["subject_minutes"] == {"수학": 13, "영어": 5}
        assert mongodb.get_daily_study_log("user-1", "2025-12-02") is None

    def test_groups_by_member(self, mongodb):
        mongodb.create_study_group({"group_id": "g-1", "group_name": "수학반", "members": ["a", "b"]})
        mongodb.create_study_group({"group_id": "g-2", "group_name": "영어반", "members": ["b"]})

        assert [g["group_id"] for g in mongodb.get_user_groups("a")] == ["g-1"]
        assert sorted(g["group_id"] for g in mongodb.get_user_groups("b")) == ["g-1", "g-2"]


class TestLiveSessionStorage:

    def test_join_code_lookup_skips_finished_sessions(self, mongodb):
        mongodb.create_live_session(make_session("old", "ABC123", status="finished"))
        assert mongodb.find_active_session_by_code("ABC123") is None

        mongodb.create_live_session(make_session("new", "ABC123"))
        assert mongodb.find_active_session_by_code("ABC123")["session_id"] == "new"

    def test_participant_added_once(self, mongodb):
        mongodb.create_live_session(make_session())
        participant = {"user_id": "kid", "nickname": "참가자"}

        assert mongodb.add_live_participant("s-1", participant) is True
        assert mongodb.add_live_participant("s-1", participant) is False
        assert len(mongodb.get_live_session("s-1")["participants"]) == 2

    def test_status_changes_only_from_expected_state(self, mongodb):
        mongodb.create_live_session(make_session())

        assert mongodb.update_live_status("s-1", "in_progress", "finished") is False
        assert mongodb.update_live_status("s-1", "waiting", "in_progress") is True
        assert mongodb.get_live_session("s-1")["status"] == "in_progress"

    def test_answer_recorded_once_per_item(self, mongodb):
        mongodb.create_live_session(make_session(status="in_progress"))

        assert mongodb.record_live_answer("s-1", "kid", "q1", 1) is True
        assert mongodb.record_live_answer("s-1", "kid", "q1", 1) is False
        assert mongodb.record_live_answer("s-1", "kid", "q2", 0) is True
        assert mongodb.record_live_answer("s-1", "other", "q1", 1) is True

        answers = mongodb.get_live_session("s-1")["answers"]
        assert answers == [
            {"user_id": "kid", "item_id": "q1", "points": 1},
            {"user_id": "kid", "item_id": "q2", "points": 0},
            {"user_id": "other", "item_id": "q1", "points": 1},
        ]

    def test_answer_rejected_unless_in_progress(self, mongodb):
        mongodb.create_live_session(make_session(status="waiting"))
        assert mongodb.record_live_answer("s-1", "kid", "q1", 1) is False

    @pytest.mark.parametrize("user_id", ["u.x", "$set", "a.b.c"])
    def test_user_ids_are_stored_as_values(self, mongodb, user_id):
        mongodb.create_live_session(make_session(status="in_progress"))
        mongodb.add_live_participant("s-1", {"user_id": user_id, "nickname": "점점"})

        assert mongodb.record_live_answer("s-1", user_id, "q1", 1) is True
        assert mongodb.record_live_answer("s-1", user_id, "q1", 1) is False

        session = mongodb.get_live_session("s-1")
        assert session["answers"] == [{"user_id": user_id, "item_id": "q1", "points": 1}]

    def test_full_round_with_dotted_user_id(self, mongodb):
        manager = LiveQuizManager(mongodb, rng=random.Random(1), poll_interval=0)
        session = manager.host("host")
        manager.join(session["join_code"], "u.x")
        manager.start(session["session_id"], "host")
        item = session["quiz_set"][0]

        assert manager.answer(session["session_id"], "u.x", item["id"], item["answer"])["score"] == 1

        stored = LiveSession(**manager.get(session["session_id"]))
        assert stored.ranking[0].user_id == "u.x"
        assert stored.ranking[0].score == 1

    def test_answer_update_shape(self):
        mongodb = MongoDBClient(client=MagicMock())
        collection = mongodb.live_collection
        collection.update_one.return_value.modified_count = 1

        assert mongodb.record_live_answer("s-1", "u.x", "q1", 1) is True

        collection.update_one.assert_called_once_with(
            {
                "session_id": "s-1",
                "status": "in_progress",
                "answers": {"$not": {"$elemMatch": {"user_id": "u.x", "item_id": "q1"}}},
            },
            {
                "$push": {"answers": {"user_id": "u.x", "item_id": "q1", "points": 1}},
                "$set": {"updated_at": ANY},
            },
        )


class TestFailureHandling:
    """Reads degrade to empty results; writes re-raise."""

    @pytest.fixture
    def broken(self):
        mongodb = MongoDBClient(client=MagicMock())
        for name in ("find", "find_one", "update_one", "find_one_and_update", "insert_one"):
            setattr(mongodb.notes_collection, name, MagicMock(side_effect=PyMongoError("down")))
        return mongodb

    def test_reads_return_empty(self, broken):
        assert broken.get_incorrect_notes("user-1") == []
        assert broken.get_incorrect_note("user-1", "n-1") is None
        assert broken.get_live_session("s-1") is None

    def test_writes_raise(self, broken):
        with pytest.raises(PyMongoError):
            broken.record_incorrect_note("user-1", make_note())
        with pytest.raises(PyMongoError):
            broken.record_live_answer("s-1", "kid", "q1", 1)
