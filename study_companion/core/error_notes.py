from typing import Any, Dict, List, Optional
import logging
from study_companion.core.exceptions import InvalidStateError, NotFoundError
from study_companion.core.mongodb_client import MongoDBClient
from study_companion.core.tutor_agent import TutorAgent
from study_companion.models.schemas import QuizItem

logger = logging.getLogger(__name__)

def is_correct_answer(item: QuizItem, selected: str) -> bool:
    return selected.strip() == item.answer.strip()

class ErrorNoteService:
    """
    Grades quiz answers and keeps the per-user error-note log.
    - Wrong answers are written to the log (one note per question text)
    - Notes can be listed, removed, or explained by the AI tutor
    """

    def __init__(self, mongodb_client: MongoDBClient, tutor_agent: Optional[TutorAgent] = None):
        self.mongodb = mongodb_client
        self.tutor = tutor_agent

    def grade_answer(self, user_id: str, item: QuizItem, selected: str) -> Dict[str, Any]:
        """
        Check a selected option and log the question when it is wrong.

        Input: user_id (str), item (QuizItem), selected (str)
        Output: dict with is_correct, correct_answer, note_id (None when correct)
        """
        correct = is_correct_answer(item, selected)
        note_id = None
        if not correct:
            note_id = self.mongodb.record_incorrect_note(user_id, {
                "text": item.text,
                "answer": item.answer,
                "subject": item.subject.value,
                "unit": item.unit,
            })

        return {"is_correct": correct, "correct_answer": item.answer, "note_id": note_id}

    def list_notes(self, user_id: str) -> List[Dict[str, Any]]:
        return self.mongodb.get_incorrect_notes(user_id)

    def delete_note(self, user_id: str, note_id: str) -> None:
        if not self.mongodb.delete_incorrect_note(user_id, note_id):
            raise NotFoundError(f"Note {note_id} not found")

    async def explain_note(self, user_id: str, note_id: str) -> str:
        if self.tutor is None:
            raise InvalidStateError("No AI tutor is configured for explanations")
        note = self.mongodb.get_incorrect_note(user_id, note_id)
        if not note:
            raise NotFoundError(f"Note {note_id} not found")
        logger.info(f"Requesting explanation for note {note_id}")
        return await self.tutor.explain_note(note)
