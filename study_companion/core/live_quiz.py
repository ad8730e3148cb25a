import asyncio
import logging
import random
import string
import uuid
from datetime import datetime
from typing import Any, AsyncIterator, Callable, Dict, List, Optional

from pymongo.errors import PyMongoError

from study_companion.config import Config
from study_companion.core.exceptions import InvalidStateError, NotFoundError, PermissionDeniedError, StudyCompanionError
from study_companion.core.mongodb_client import MongoDBClient
from study_companion.core.quiz_generator import generate_math_quiz
from study_companion.models.schemas import LiveSessionStatus

logger = logging.getLogger(__name__)

JOIN_CODE_ALPHABET = string.ascii_uppercase + string.digits
MAX_CODE_ATTEMPTS = 20
POINTS_PER_CORRECT_ANSWER = 1


def sort_ranking(ranking: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return sorted(ranking, key=lambda entry: (-entry.get("score", 0), entry.get("nickname", "")))


def build_ranking(session: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Total each participant's answer points into a sorted ranking."""
    scores: Dict[str, int] = {}
    for answer in session.get("answers", []):
        scores[answer["user_id"]] = scores.get(answer["user_id"], 0) + answer.get("points", 0)
    return sort_ranking([
        {"user_id": p["user_id"], "nickname": p["nickname"], "score": scores.get(p["user_id"], 0)}
        for p in session.get("participants", [])
    ])


class LiveQuizManager:
    """
    Real-time multiplayer quiz sessions keyed by join codes.
    - The host creates a session with a fresh math quiz set and a join code
    - Participants join by code; the host starts and finishes the session
    - Every answer is stored as a record; a correct one is worth a point in the ranking
    - Session changes are streamed from MongoDB to connected clients
    """

    def __init__(
        self,
        mongodb_client: MongoDBClient,
        rng: Optional[random.Random] = None,
        quiz_factory: Callable[..., list] = generate_math_quiz,
        clock: Callable[[], datetime] = datetime.now,
        poll_interval: float = Config.LIVE_POLL_INTERVAL,
    ):
        self.mongodb = mongodb_client
        self.rng = rng or random.Random()
        self.quiz_factory = quiz_factory
        self.clock = clock
        self.poll_interval = poll_interval

    def generate_join_code(self) -> str:
        return "".join(self.rng.choice(JOIN_CODE_ALPHABET) for _ in range(Config.JOIN_CODE_LENGTH))

    def _unused_join_code(self) -> str:
        for _ in range(MAX_CODE_ATTEMPTS):
            code = self.generate_join_code()
            if self.mongodb.find_active_session_by_code(code) is None:
                return code
        raise StudyCompanionError("Could not allocate a free join code")

    def host(self, user_id: str, nickname: Optional[str] = None) -> Dict[str, Any]:
        """
        Create a waiting session hosted by `user_id`.

        Input: user_id (str), nickname (Optional[str])
        Output: session dict (session_id, join_code, status, quiz_set, participants, ranking)
        """
        nickname = nickname or "호스트"
        now = self.clock()
        session = {
            "session_id": str(uuid.uuid4()),
            "join_code": self._unused_join_code(),
            "host_id": user_id,
            "status": LiveSessionStatus.WAITING.value,
            "quiz_set": [item.model_dump(mode="json") for item in self.quiz_factory(self.rng)],
            "participants": [{"user_id": user_id, "nickname": nickname}],
            "answers": [],
            "created_at": now,
            "updated_at": now,
        }
        self.mongodb.create_live_session(session)
        return dict(session, ranking=build_ranking(session))

    def get(self, session_id: str) -> Dict[str, Any]:
        session = self.mongodb.get_live_session(session_id)
        if not session:
            raise NotFoundError(f"Live session {session_id} not found")
        session["ranking"] = build_ranking(session)
        return session

    def join(self, join_code: str, user_id: str, nickname: Optional[str] = None) -> Dict[str, Any]:
        code = join_code.strip().upper()
        session = self.mongodb.find_active_session_by_code(code)
        if not session:
            raise NotFoundError("유효하지 않거나 종료된 참여 코드입니다.")

        nickname = nickname or "참가자"
        added = self.mongodb.add_live_participant(session["session_id"], {"user_id": user_id, "nickname": nickname})
        if added:
            logger.info(f"{user_id} joined live session {session['session_id']}")
        return self.get(session["session_id"])

    def _require_host(self, session: Dict[str, Any], user_id: str):
        if session["host_id"] != user_id:
            raise PermissionDeniedError("Only the host can control the session")

    def start(self, session_id: str, user_id: str) -> Dict[str, Any]:
        session = self.get(session_id)
        self._require_host(session, user_id)
        if not self.mongodb.update_live_status(
            session_id, LiveSessionStatus.WAITING.value, LiveSessionStatus.IN_PROGRESS.value
        ):
            raise InvalidStateError(f"Session cannot be started from {session['status']}")
        return self.get(session_id)

    def finish(self, session_id: str, user_id: str) -> Dict[str, Any]:
        session = self.get(session_id)
        self._require_host(session, user_id)
        for current in (LiveSessionStatus.IN_PROGRESS, LiveSessionStatus.WAITING):
            if self.mongodb.update_live_status(session_id, current.value, LiveSessionStatus.FINISHED.value):
                return self.get(session_id)
        raise InvalidStateError("Session is already finished")

    def answer(self, session_id: str, user_id: str, item_id: str, selected: str) -> Dict[str, Any]:
        """
        Grade one answer in a running session.

        Output: dict with is_correct, correct_answer, score (the user's total)
        """
        session = self.get(session_id)
        if session["status"] != LiveSessionStatus.IN_PROGRESS.value:
            raise InvalidStateError("Session is not in progress")
        if not any(p["user_id"] == user_id for p in session.get("participants", [])):
            raise PermissionDeniedError("Join the session before answering")

        item = next((q for q in session.get("quiz_set", []) if q["id"] == item_id), None)
        if item is None:
            raise NotFoundError(f"Question {item_id} is not part of this session")

        is_correct = selected.strip() == item["answer"].strip()
        points = POINTS_PER_CORRECT_ANSWER if is_correct else 0
        if not self.mongodb.record_live_answer(session_id, user_id, item_id, points):
            raise InvalidStateError("Question already answered")

        updated = self.get(session_id)
        score = next((e["score"] for e in updated["ranking"] if e["user_id"] == user_id), 0)
        return {"is_correct": is_correct, "correct_answer": item["answer"], "score": score}

    async def watch(self, session_id: str) -> AsyncIterator[Dict[str, Any]]:
        """
        Yield the session now and again after every change.

        Uses a MongoDB change stream; falls back to polling when the server
        does not support change streams (standalone deployments).
        """
        session = self.get(session_id)
        yield session
        if session["status"] == LiveSessionStatus.FINISHED.value:
            return

        try:
            stream = await asyncio.to_thread(self.mongodb.watch_live_session, session_id)
        except PyMongoError as e:
            logger.info(f"Change streams unavailable, polling session {session_id}: {e}")
            async for update in self._poll(session_id, session.get("updated_at")):
                yield update
            return

        try:
            while True:
                change = await asyncio.to_thread(stream.try_next)
                if change is None or not change.get("fullDocument"):
                    continue
                document = change["fullDocument"]
                document.pop("_id", None)
                document["ranking"] = build_ranking(document)
                yield document
                if document["status"] == LiveSessionStatus.FINISHED.value:
                    return
        finally:
            stream.close()

    async def _poll(self, session_id: str, last_seen: Optional[datetime]) -> AsyncIterator[Dict[str, Any]]:
        while True:
            await asyncio.sleep(self.poll_interval)
            session = self.get(session_id)
            if session.get("updated_at") != last_seen:
                last_seen = session.get("updated_at")
                yield session
            if session["status"] == LiveSessionStatus.FINISHED.value:
                return
