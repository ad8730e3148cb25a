from fastapi import APIRouter, Depends
import logging
from study_companion.api.deps import get_error_note_service, http_error
from study_companion.core.error_notes import ErrorNoteService
from study_companion.models.schemas import ExplanationResponse, IncorrectNote, NoteListResponse

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/notes/{user_id}", response_model=NoteListResponse)
async def list_notes(user_id: str, service: ErrorNoteService = Depends(get_error_note_service)):
    """
    Get the user's error notes.

    Returns:
        NoteListResponse: notes ordered by the most recent wrong answer
    """
    try:
        notes = service.list_notes(user_id)
        return NoteListResponse(notes=[IncorrectNote(**note) for note in notes])
    except Exception as e:
        raise http_error(e, "Failed to fetch notes")

@router.delete("/notes/{user_id}/{note_id}")
async def delete_note(user_id: str, note_id: str, service: ErrorNoteService = Depends(get_error_note_service)):
    try:
        service.delete_note(user_id, note_id)
        return {"deleted": True, "note_id": note_id}
    except Exception as e:
        raise http_error(e, "Failed to delete note")

@router.post("/notes/{user_id}/{note_id}/explanation", response_model=ExplanationResponse)
async def explain_note(user_id: str, note_id: str, service: ErrorNoteService = Depends(get_error_note_service)):
    """Ask the AI tutor for a step-by-step explanation of a missed question."""
    try:
        explanation = await service.explain_note(user_id, note_id)
        return ExplanationResponse(note_id=note_id, explanation=explanation)
    except Exception as e:
        raise http_error(e, "Failed to generate explanation")
