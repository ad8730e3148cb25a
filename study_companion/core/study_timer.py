import logging
import math
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List

from study_companion.config import Config
from study_companion.core.exceptions import InvalidStateError, NotFoundError, ValidationError
from study_companion.core.formatting import format_study_time
from study_companion.core.mongodb_client import MongoDBClient

logger = logging.getLogger(__name__)


def minutes_for(seconds: int) -> int:
    """Credit a study session in whole minutes, rounding up."""
    return math.ceil(seconds / 60)


class StudyTimerService:
    """
    Per-user study timer with a daily log.

    One timer may run per user. Stopping it credits the elapsed time,
    rounded up to whole minutes, to today's total and to the timed subject.
    """

    def __init__(self, mongodb_client: MongoDBClient, clock: Callable[[], datetime] = datetime.now):
        self.mongodb = mongodb_client
        self.clock = clock

    def start(self, user_id: str, subject: str) -> Dict[str, Any]:
        if not Config.is_study_subject(subject):
            raise ValidationError(f"Choose a subject before starting the timer: {subject!r}")

        started_at = self.clock()
        if not self.mongodb.start_timer(user_id, subject, started_at):
            raise InvalidStateError("A study timer is already running")

        logger.info(f"Study timer started for {user_id} ({subject})")
        return {"user_id": user_id, "subject": subject, "started_at": started_at}

    def stop(self, user_id: str) -> Dict[str, Any]:
        timer = self.mongodb.pop_timer(user_id)
        if not timer:
            raise NotFoundError("No study timer is running")

        now = self.clock()
        elapsed = max(0, int((now - timer["started_at"]).total_seconds()))
        minutes = minutes_for(elapsed)
        recorded = minutes > 0
        if recorded:
            self.mongodb.add_study_minutes(user_id, now.date().isoformat(), timer["subject"], minutes)
        else:
            logger.info(f"Study session for {user_id} too short to record")

        return {
            "user_id": user_id,
            "subject": timer["subject"],
            "elapsed_seconds": elapsed,
            "minutes": minutes,
            "formatted": format_study_time(elapsed),
            "recorded": recorded,
        }

    def today(self, user_id: str) -> Dict[str, Any]:
        date = self.clock().date().isoformat()
        log = self.mongodb.get_daily_study_log(user_id, date) or {}
        return {
            "user_id": user_id,
            "date": date,
            "total_study_minutes": log.get("total_study_minutes", 0),
            "subject_minutes": log.get("subject_minutes", {}),
        }

    def create_group(self, group_name: str, members: List[str]) -> Dict[str, Any]:
        name = group_name.strip()
        if not name:
            raise ValidationError("group_name is required")
        group = {"group_id": str(uuid.uuid4()), "group_name": name, "members": list(dict.fromkeys(members))}
        self.mongodb.create_study_group(group)
        return group

    def groups_for(self, user_id: str) -> List[Dict[str, Any]]:
        return self.mongodb.get_user_groups(user_id)
