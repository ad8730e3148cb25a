import asyncio
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from typing import Any, AsyncIterator, Dict
import logging
from study_companion.api.deps import get_live_quiz_manager, http_error
from study_companion.core.exceptions import NotFoundError
from study_companion.core.live_quiz import LiveQuizManager
from study_companion.models.schemas import (
    HostActionRequest, HostRequest, JoinRequest, LiveAnswerRequest, LiveAnswerResponse, LiveSession
)

logger = logging.getLogger(__name__)

router = APIRouter()

def _session_response(session: Dict[str, Any]) -> LiveSession:
    return LiveSession(**session)

@router.post("/live/host", response_model=LiveSession)
async def host_live_quiz(request: HostRequest, manager: LiveQuizManager = Depends(get_live_quiz_manager)):
    """
    Create a live quiz room.

    Generates a 6-character join code and a math quiz set; the host is the
    first participant with a score of 0.
    """
    try:
        return _session_response(manager.host(request.user_id, request.nickname))
    except Exception as e:
        raise http_error(e, "Failed to create live quiz")

@router.post("/live/join", response_model=LiveSession)
async def join_live_quiz(request: JoinRequest, manager: LiveQuizManager = Depends(get_live_quiz_manager)):
    """
    Join a room by code.

    Raises:
        HTTPException: 404 for an unknown or finished code
    """
    try:
        return _session_response(manager.join(request.join_code, request.user_id, request.nickname))
    except Exception as e:
        raise http_error(e, "Failed to join live quiz")

@router.get("/live/{session_id}", response_model=LiveSession)
async def get_live_quiz(session_id: str, manager: LiveQuizManager = Depends(get_live_quiz_manager)):
    try:
        return _session_response(manager.get(session_id))
    except Exception as e:
        raise http_error(e, "Failed to fetch live quiz")

@router.post("/live/{session_id}/start", response_model=LiveSession)
async def start_live_quiz(session_id: str, request: HostActionRequest,
                          manager: LiveQuizManager = Depends(get_live_quiz_manager)):
    try:
        return _session_response(manager.start(session_id, request.user_id))
    except Exception as e:
        raise http_error(e, "Failed to start live quiz")

@router.post("/live/{session_id}/finish", response_model=LiveSession)
async def finish_live_quiz(session_id: str, request: HostActionRequest,
                           manager: LiveQuizManager = Depends(get_live_quiz_manager)):
    try:
        return _session_response(manager.finish(session_id, request.user_id))
    except Exception as e:
        raise http_error(e, "Failed to finish live quiz")

@router.post("/live/{session_id}/answer", response_model=LiveAnswerResponse)
async def answer_live_quiz(session_id: str, request: LiveAnswerRequest,
                           manager: LiveQuizManager = Depends(get_live_quiz_manager)):
    try:
        result = manager.answer(session_id, request.user_id, request.item_id, request.selected)
        return LiveAnswerResponse(**result)
    except Exception as e:
        raise http_error(e, "Failed to submit answer")

async def _push_updates(websocket: WebSocket, updates: AsyncIterator[Dict[str, Any]]):
    async for session in updates:
        payload = _session_response(session).model_dump(mode="json")
        await websocket.send_json({"type": "session", "session": payload})

        if payload["status"] == "finished":
            await websocket.send_json({"type": "session_complete", "ranking": payload["ranking"]})
            return

async def _wait_for_disconnect(websocket: WebSocket):
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return

@router.websocket("/ws/live/{session_id}")
async def live_quiz_websocket(websocket: WebSocket, session_id: str,
                              manager: LiveQuizManager = Depends(get_live_quiz_manager)):
    """
    Push live session state to a client.

    The socket is read alongside the push loop so that a client leaving
    stops the session stream right away.

    Message Types Sent:
        - "session": full session document (status, participants, ranking)
        - "session_complete": sent once the host finishes the session
        - "error": the session does not exist
    """
    await websocket.accept()

    updates = manager.watch(session_id)
    push = asyncio.create_task(_push_updates(websocket, updates))
    listen = asyncio.create_task(_wait_for_disconnect(websocket))

    try:
        done, _ = await asyncio.wait({push, listen}, return_when=asyncio.FIRST_COMPLETED)
        if push in done:
            push.result()
            await websocket.close()
        else:
            logger.info(f"WebSocket disconnected for live session: {session_id}")

    except NotFoundError as e:
        await websocket.send_json({"type": "error", "detail": str(e)})
        await websocket.close()
    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected for live session: {session_id}")
    except Exception as e:
        logger.error(f"WebSocket error: {e}")
        await websocket.close()
    finally:
        for task in (push, listen):
            task.cancel()
        await asyncio.gather(push, listen, return_exceptions=True)
        await updates.aclose()
