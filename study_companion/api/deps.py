from fastapi import HTTPException
from fastapi.requests import HTTPConnection
import logging
from study_companion.core.error_notes import ErrorNoteService
from study_companion.core.exceptions import InvalidStateError, NotFoundError, PermissionDeniedError, ValidationError
from study_companion.core.live_quiz import LiveQuizManager
from study_companion.core.meal_client import MealClient
from study_companion.core.mongodb_client import MongoDBClient
from study_companion.core.study_timer import StudyTimerService
from study_companion.core.tutor_agent import TutorAgent

logger = logging.getLogger(__name__)

# Components are built once in the app lifespan and live on app.state.

def get_mongodb_client(connection: HTTPConnection) -> MongoDBClient:
    return connection.app.state.mongodb_client

def get_tutor_agent(connection: HTTPConnection) -> TutorAgent:
    return connection.app.state.tutor_agent

def get_error_note_service(connection: HTTPConnection) -> ErrorNoteService:
    return connection.app.state.error_note_service

def get_study_timer(connection: HTTPConnection) -> StudyTimerService:
    return connection.app.state.study_timer

def get_live_quiz_manager(connection: HTTPConnection) -> LiveQuizManager:
    return connection.app.state.live_quiz_manager

def get_meal_client(connection: HTTPConnection) -> MealClient:
    return connection.app.state.meal_client

def get_quiz_rng(connection: HTTPConnection):
    return getattr(connection.app.state, "quiz_rng", None)

_STATUS_CODES = [
    (NotFoundError, 404),
    (PermissionDeniedError, 403),
    (InvalidStateError, 409),
    (ValidationError, 400),
]

def http_error(error: Exception, message: str) -> HTTPException:
    """Map a service error to an HTTPException; anything unexpected becomes a 500."""
    for error_type, status_code in _STATUS_CODES:
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=str(error))
    logger.error(f"{message}: {error}")
    return HTTPException(status_code=500, detail=message)
