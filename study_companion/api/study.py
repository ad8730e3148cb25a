from fastapi import APIRouter, Depends
import logging
from study_companion.api.deps import get_study_timer, http_error
from study_companion.core.study_timer import StudyTimerService
from study_companion.models.schemas import (
    DailyStudyLog, StudyGroup, StudyGroupListResponse, StudyGroupRequest,
    StudyStartRequest, StudyStopRequest, StudyStopResponse, StudyTimerResponse
)

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/study/start", response_model=StudyTimerResponse)
async def start_study(request: StudyStartRequest, timer: StudyTimerService = Depends(get_study_timer)):
    """
    Start the user's study timer for a subject.

    Raises:
        HTTPException: 400 for an unknown subject, 409 if a timer is already running
    """
    try:
        return StudyTimerResponse(**timer.start(request.user_id, request.subject))
    except Exception as e:
        raise http_error(e, "Failed to start study timer")

@router.post("/study/stop", response_model=StudyStopResponse)
async def stop_study(request: StudyStopRequest, timer: StudyTimerService = Depends(get_study_timer)):
    """
    Stop the running timer and credit the session to today's log.

    Raises:
        HTTPException: 404 when no timer is running
    """
    try:
        return StudyStopResponse(**timer.stop(request.user_id))
    except Exception as e:
        raise http_error(e, "Failed to stop study timer")

@router.get("/study/{user_id}/today", response_model=DailyStudyLog)
async def today_log(user_id: str, timer: StudyTimerService = Depends(get_study_timer)):
    try:
        return DailyStudyLog(**timer.today(user_id))
    except Exception as e:
        raise http_error(e, "Failed to fetch study log")

@router.post("/study/groups", response_model=StudyGroup)
async def create_group(request: StudyGroupRequest, timer: StudyTimerService = Depends(get_study_timer)):
    try:
        return StudyGroup(**timer.create_group(request.group_name, request.members))
    except Exception as e:
        raise http_error(e, "Failed to create study group")

@router.get("/study/{user_id}/groups", response_model=StudyGroupListResponse)
async def my_groups(user_id: str, timer: StudyTimerService = Depends(get_study_timer)):
    try:
        return StudyGroupListResponse(groups=[StudyGroup(**group) for group in timer.groups_for(user_id)])
    except Exception as e:
        raise http_error(e, "Failed to fetch study groups")
