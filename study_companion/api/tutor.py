from fastapi import APIRouter, Depends
from datetime import datetime
import logging
from study_companion.api.deps import get_tutor_agent, http_error
from study_companion.core.tutor_agent import TutorAgent
from study_companion.models.schemas import ChatRequest, ChatResponse

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/tutor/chat", response_model=ChatResponse)
async def chat_with_tutor(request: ChatRequest, tutor: TutorAgent = Depends(get_tutor_agent)):
    """
    Ask the AI tutor a question.

    Args:
        request (ChatRequest): message, optional captured quiz screen
                               (base64 PNG plus its text) and prior turns

    Returns:
        ChatResponse: tutor reply

    Raises:
        HTTPException: 400 when both message and image are missing
    """
    try:
        response = await tutor.chat(
            message=request.message,
            image_base64=request.image_base64,
            image_text=request.image_text,
            history=[turn.model_dump() for turn in request.history],
        )
        return ChatResponse(response=response, timestamp=datetime.now())
    except Exception as e:
        raise http_error(e, "Failed to get tutor response")
