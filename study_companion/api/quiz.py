from fastapi import APIRouter, Depends, HTTPException
from datetime import datetime
import logging
from study_companion.api.deps import get_error_note_service, get_quiz_rng, http_error
from study_companion.core.error_notes import ErrorNoteService
from study_companion.core.quiz_generator import generate_english_quiz, generate_math_quiz, generate_mixed_quiz
from study_companion.models.schemas import AnswerRequest, AnswerResponse, QuizResponse

logger = logging.getLogger(__name__)

router = APIRouter()

QUIZ_BUILDERS = {
    "math": generate_math_quiz,
    "english": generate_english_quiz,
    "all": generate_mixed_quiz,
}

@router.get("/quiz/{subject}", response_model=QuizResponse)
async def generate_quiz(subject: str, rng=Depends(get_quiz_rng)):
    """
    Generate a fresh quiz batch.

    Args:
        subject (str): "math", "english" or "all" (math and english mixed)

    Returns:
        QuizResponse: the new batch; the previous one is simply discarded by the client

    Raises:
        HTTPException: 400 for an unknown subject
    """
    builder = QUIZ_BUILDERS.get(subject)
    if builder is None:
        raise HTTPException(status_code=400, detail=f"Unknown subject: {subject}")

    items = builder(rng)
    logger.info(f"Generated {len(items)} {subject} quiz items")
    return QuizResponse(subject=subject, items=items, generated_at=datetime.now())

@router.post("/quiz/answer", response_model=AnswerResponse)
async def submit_answer(request: AnswerRequest, service: ErrorNoteService = Depends(get_error_note_service)):
    """Grade one answer; wrong answers go to the user's error-note log."""
    try:
        result = service.grade_answer(request.user_id, request.item, request.selected)
        return AnswerResponse(**result)
    except Exception as e:
        raise http_error(e, "Failed to grade answer")
