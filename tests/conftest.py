import copy
import os
import random
import sys
import uuid
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo.errors import OperationFailure

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from study_companion.core.error_notes import ErrorNoteService
from study_companion.core.live_quiz import LiveQuizManager
from study_companion.core.study_timer import StudyTimerService
from study_companion.core.tutor_agent import TutorAgent


class ScriptedRandom:
    """Random source that replays scripted randint values, then falls back to a seeded generator."""

    def __init__(self, script, seed=0):
        self.script = list(script)
        self._random = random.Random(seed)

    def randint(self, a, b):
        if self.script:
            value = self.script.pop(0)
            assert a <= value <= b, f"scripted value {value} outside [{a}, {b}]"
            return value
        return self._random.randint(a, b)

    def shuffle(self, items):
        self._random.shuffle(items)

    def sample(self, population, k):
        return self._random.sample(population, k)

    def choice(self, seq):
        return self._random.choice(seq)


class FakeClock:
    def __init__(self, start=datetime(2025, 12, 1, 9, 0, 0)):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class FakeMongoDBClient:
    """In-memory stand-in for MongoDBClient with the same method surface."""

    def __init__(self):
        self.notes = []
        self.timers = {}
        self.study_logs = {}
        self.groups = []
        self.live_sessions = {}
        self.inquiries = []
        self._tick = 0

    def _stamp(self):
        self._tick += 1
        return datetime(2025, 1, 1) + timedelta(seconds=self._tick)

    # error notes
    def record_incorrect_note(self, user_id, item):
        now = self._stamp()
        for note in self.notes:
            if note["user_id"] == user_id and note["text"] == item["text"]:
                note.update(answer=item["answer"], subject=item["subject"], unit=item["unit"],
                            latest_incorrect_at=now)
                note["incorrect_count"] += 1
                return note["note_id"]
        note = dict(item, user_id=user_id, note_id=str(uuid.uuid4()), first_incorrect_at=now,
                    latest_incorrect_at=now, incorrect_count=1)
        self.notes.append(note)
        return note["note_id"]

    def get_incorrect_notes(self, user_id):
        notes = [copy.deepcopy(n) for n in self.notes if n["user_id"] == user_id]
        return sorted(notes, key=lambda n: n["latest_incorrect_at"], reverse=True)

    def get_incorrect_note(self, user_id, note_id):
        for note in self.notes:
            if note["user_id"] == user_id and note["note_id"] == note_id:
                return copy.deepcopy(note)
        return None

    def delete_incorrect_note(self, user_id, note_id):
        before = len(self.notes)
        self.notes = [n for n in self.notes if not (n["user_id"] == user_id and n["note_id"] == note_id)]
        return len(self.notes) < before

    # study timer
    def start_timer(self, user_id, subject, started_at):
        if user_id in self.timers:
            return False
        self.timers[user_id] = {"user_id": user_id, "subject": subject, "started_at": started_at}
        return True

    def pop_timer(self, user_id):
        return self.timers.pop(user_id, None)

    def add_study_minutes(self, user_id, date, subject, minutes):
        log = self.study_logs.setdefault((user_id, date), {
            "user_id": user_id, "date": date, "total_study_minutes": 0, "subject_minutes": {}
        })
        log["total_study_minutes"] += minutes
        log["subject_minutes"][subject] = log["subject_minutes"].get(subject, 0) + minutes

    def get_daily_study_log(self, user_id, date):
        return copy.deepcopy(self.study_logs.get((user_id, date)))

    def create_study_group(self, group_data):
        self.groups.append(copy.deepcopy(group_data))

    def get_user_groups(self, user_id):
        return [copy.deepcopy(g) for g in self.groups if user_id in g["members"]]

    # live sessions
    def create_live_session(self, session_data):
        self.live_sessions[session_data["session_id"]] = copy.deepcopy(session_data)

    def get_live_session(self, session_id):
        return copy.deepcopy(self.live_sessions.get(session_id))

    def find_active_session_by_code(self, join_code):
        for session in self.live_sessions.values():
            if session["join_code"] == join_code and session["status"] != "finished":
                return copy.deepcopy(session)
        return None

    def add_live_participant(self, session_id, participant):
        session = self.live_sessions.get(session_id)
        if not session or any(p["user_id"] == participant["user_id"] for p in session["participants"]):
            return False
        session["participants"].append(participant)
        session["updated_at"] = self._stamp()
        return True

    def update_live_status(self, session_id, expected_status, new_status):
        session = self.live_sessions.get(session_id)
        if not session or session["status"] != expected_status:
            return False
        session["status"] = new_status
        session["updated_at"] = self._stamp()
        return True

    def record_live_answer(self, session_id, user_id, item_id, points):
        session = self.live_sessions.get(session_id)
        if not session or session["status"] != "in_progress":
            return False
        if any(a["user_id"] == user_id and a["item_id"] == item_id for a in session["answers"]):
            return False
        session["answers"].append({"user_id": user_id, "item_id": item_id, "points": points})
        session["updated_at"] = self._stamp()
        return True

    def watch_live_session(self, session_id):
        raise OperationFailure("The $changeStream stage is only supported on replica sets")

    # inquiries
    def save_inquiry(self, inquiry_data):
        self.inquiries.append(copy.deepcopy(inquiry_data))


@pytest.fixture
def fake_mongodb():
    return FakeMongoDBClient()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def llm_wrapper():
    wrapper = MagicMock()
    wrapper.generate_response = AsyncMock(return_value="튜터 답변")
    return wrapper


@pytest.fixture
def tutor_agent(llm_wrapper):
    return TutorAgent(llm_wrapper)


@pytest.fixture
def error_note_service(fake_mongodb, tutor_agent):
    return ErrorNoteService(fake_mongodb, tutor_agent)


@pytest.fixture
def study_timer(fake_mongodb, clock):
    return StudyTimerService(fake_mongodb, clock=clock)


@pytest.fixture
def live_quiz_manager(fake_mongodb):
    return LiveQuizManager(fake_mongodb, rng=random.Random(7), poll_interval=0)
