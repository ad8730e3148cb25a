from pymongo import ASCENDING, MongoClient, ReturnDocument
from pymongo.errors import PyMongoError
from typing import List, Dict, Any, Optional
import logging
import uuid
from datetime import datetime
from study_companion.config import Config

logger = logging.getLogger(__name__)

class MongoDBClient:
    """
    MongoDB client for the study companion.

    Owns the collections for error notes, study timers and daily study logs,
    study groups, live quiz sessions and inquiries. Read helpers log and
    return empty results; write helpers log and re-raise.
    """
    def __init__(self, client: Optional[MongoClient] = None):
        self.client = client or MongoClient(Config.MONGODB_URI)
        self.db = self.client[Config.DATABASE_NAME]
        self.notes_collection = self.db[Config.NOTES_COLLECTION]
        self.study_log_collection = self.db[Config.STUDY_LOG_COLLECTION]
        self.timer_collection = self.db[Config.TIMER_COLLECTION]
        self.group_collection = self.db[Config.GROUP_COLLECTION]
        self.live_collection = self.db[Config.LIVE_SESSION_COLLECTION]
        self.inquiry_collection = self.db[Config.INQUIRY_COLLECTION]
        self._ensure_indexes()

    def _ensure_indexes(self):
        """Create the lookup indexes the services rely on"""
        try:
            self.notes_collection.create_index([("user_id", ASCENDING), ("text", ASCENDING)], unique=True)
            self.study_log_collection.create_index([("user_id", ASCENDING), ("date", ASCENDING)], unique=True)
            self.timer_collection.create_index("user_id", unique=True)
            self.live_collection.create_index("session_id", unique=True)
            self.live_collection.create_index("join_code")
            self.group_collection.create_index("members")
        except PyMongoError as e:
            logger.warning(f"Could not create indexes: {e}")

    def close(self):
        self.client.close()

    # --- error notes -------------------------------------------------------

    def record_incorrect_note(self, user_id: str, item: Dict[str, Any]) -> str:
        """
        Add a question to the user's error-note log.

        A question already in the log (same text) keeps its note_id and first
        timestamp; its latest timestamp and counter are bumped instead.

        Returns:
            str: note_id of the created or updated note
        """
        now = datetime.now()
        try:
            note = self.notes_collection.find_one_and_update(
                {"user_id": user_id, "text": item["text"]},
                {
                    "$set": {
                        "answer": item["answer"],
                        "subject": item["subject"],
                        "unit": item["unit"],
                        "latest_incorrect_at": now,
                    },
                    "$setOnInsert": {"note_id": str(uuid.uuid4()), "first_incorrect_at": now},
                    "$inc": {"incorrect_count": 1},
                },
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
            logger.info(f"Recorded incorrect note {note['note_id']} for user {user_id}")
            return note["note_id"]
        except PyMongoError as e:
            logger.error(f"Error saving incorrect note: {e}")
            raise

    def get_incorrect_notes(self, user_id: str) -> List[Dict[str, Any]]:
        """Get a user's error notes, most recently missed first."""
        try:
            cursor = self.notes_collection.find(
                {"user_id": user_id},
                {"_id": 0}
            ).sort("latest_incorrect_at", -1)
            return list(cursor)
        except PyMongoError as e:
            logger.error(f"Error fetching incorrect notes: {e}")
            return []

    def get_incorrect_note(self, user_id: str, note_id: str) -> Optional[Dict[str, Any]]:
        try:
            return self.notes_collection.find_one({"user_id": user_id, "note_id": note_id}, {"_id": 0})
        except PyMongoError as e:
            logger.error(f"Error fetching incorrect note {note_id}: {e}")
            return None

    def delete_incorrect_note(self, user_id: str, note_id: str) -> bool:
        try:
            result = self.notes_collection.delete_one({"user_id": user_id, "note_id": note_id})
            logger.info(f"Deleted incorrect note {note_id}: {result.deleted_count}")
            return result.deleted_count > 0
        except PyMongoError as e:
            logger.error(f"Error deleting incorrect note: {e}")
            raise

    # --- study timer and daily log ----------------------------------------

    def start_timer(self, user_id: str, subject: str, started_at: datetime) -> bool:
        """Start a timer unless one is already running. Returns True when started."""
        try:
            result = self.timer_collection.update_one(
                {"user_id": user_id},
                {"$setOnInsert": {"subject": subject, "started_at": started_at}},
                upsert=True
            )
            return result.upserted_id is not None
        except PyMongoError as e:
            logger.error(f"Error starting study timer: {e}")
            raise

    def pop_timer(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Remove and return the running timer, if any."""
        try:
            return self.timer_collection.find_one_and_delete({"user_id": user_id}, projection={"_id": 0})
        except PyMongoError as e:
            logger.error(f"Error stopping study timer: {e}")
            raise

    def add_study_minutes(self, user_id: str, date: str, subject: str, minutes: int) -> None:
        """Atomically add minutes to the day's total and to the subject's total."""
        try:
            self.study_log_collection.update_one(
                {"user_id": user_id, "date": date},
                {
                    "$inc": {"total_study_minutes": minutes, f"subject_minutes.{subject}": minutes},
                    "$set": {"updated_at": datetime.now()}
                },
                upsert=True
            )
            logger.info(f"Added {minutes} minutes of {subject} for {user_id} on {date}")
        except PyMongoError as e:
            logger.error(f"Error updating daily study log: {e}")
            raise

    def get_daily_study_log(self, user_id: str, date: str) -> Optional[Dict[str, Any]]:
        try:
            return self.study_log_collection.find_one({"user_id": user_id, "date": date}, {"_id": 0})
        except PyMongoError as e:
            logger.error(f"Error fetching daily study log: {e}")
            return None

    def create_study_group(self, group_data: Dict[str, Any]) -> None:
        try:
            self.group_collection.insert_one(dict(group_data))
            logger.info(f"Created study group: {group_data['group_id']}")
        except PyMongoError as e:
            logger.error(f"Error creating study group: {e}")
            raise

    def get_user_groups(self, user_id: str) -> List[Dict[str, Any]]:
        try:
            return list(self.group_collection.find({"members": user_id}, {"_id": 0}))
        except PyMongoError as e:
            logger.error(f"Error fetching study groups: {e}")
            return []

    # --- live quiz sessions -----------------------------------------------

    def create_live_session(self, session_data: Dict[str, Any]) -> None:
        try:
            self.live_collection.insert_one(dict(session_data))
            logger.info(f"Created live session {session_data['session_id']} ({session_data['join_code']})")
        except PyMongoError as e:
            logger.error(f"Error creating live session: {e}")
            raise

    def get_live_session(self, session_id: str) -> Optional[Dict[str, Any]]:
        try:
            return self.live_collection.find_one({"session_id": session_id}, {"_id": 0})
        except PyMongoError as e:
            logger.error(f"Error fetching live session: {e}")
            return None

    def find_active_session_by_code(self, join_code: str) -> Optional[Dict[str, Any]]:
        """Find a session that can still be joined (not finished)."""
        try:
            return self.live_collection.find_one(
                {"join_code": join_code, "status": {"$ne": "finished"}},
                {"_id": 0}
            )
        except PyMongoError as e:
            logger.error(f"Error looking up join code {join_code}: {e}")
            return None

    def add_live_participant(self, session_id: str, participant: Dict[str, Any]) -> bool:
        """Add a participant once. Returns False when already present."""
        try:
            result = self.live_collection.update_one(
                {"session_id": session_id, "participants.user_id": {"$ne": participant["user_id"]}},
                {
                    "$push": {"participants": participant},
                    "$set": {"updated_at": datetime.now()}
                }
            )
            return result.modified_count > 0
        except PyMongoError as e:
            logger.error(f"Error joining live session: {e}")
            raise

    def update_live_status(self, session_id: str, expected_status: str, new_status: str) -> bool:
        """Move a session between states; only succeeds from `expected_status`."""
        try:
            result = self.live_collection.update_one(
                {"session_id": session_id, "status": expected_status},
                {"$set": {"status": new_status, "updated_at": datetime.now()}}
            )
            return result.modified_count > 0
        except PyMongoError as e:
            logger.error(f"Error updating live session status: {e}")
            raise

    def record_live_answer(self, session_id: str, user_id: str, item_id: str, points: int) -> bool:
        """
        Append an answer record worth `points` for `user_id` on `item_id`.

        User ids only ever appear as values, never in field paths. Returns
        False when the session is not running or the user already answered
        this item.
        """
        try:
            result = self.live_collection.update_one(
                {
                    "session_id": session_id,
                    "status": "in_progress",
                    "answers": {"$not": {"$elemMatch": {"user_id": user_id, "item_id": item_id}}}
                },
                {
                    "$push": {"answers": {"user_id": user_id, "item_id": item_id, "points": points}},
                    "$set": {"updated_at": datetime.now()}
                }
            )
            return result.modified_count > 0
        except PyMongoError as e:
            logger.error(f"Error recording live answer: {e}")
            raise

    def watch_live_session(self, session_id: str):
        """Open a change stream on one session (requires a replica set)."""
        return self.live_collection.watch(
            [{"$match": {"fullDocument.session_id": session_id}}],
            full_document="updateLookup"
        )

    # --- inquiries --------------------------------------------------------

    def save_inquiry(self, inquiry_data: Dict[str, Any]) -> None:
        try:
            self.inquiry_collection.insert_one(dict(inquiry_data))
            logger.info(f"Saved inquiry {inquiry_data['inquiry_id']}")
        except PyMongoError as e:
            logger.error(f"Error saving inquiry: {e}")
            raise
