from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Dict
from datetime import datetime
from enum import Enum

class Subject(str, Enum):
    MATH = "math"
    ENGLISH = "english"

class AnswerKind(str, Enum):
    """Shape of a canonical answer, used to synthesize filler options."""
    ALGEBRAIC = "algebraic"
    NUMERIC = "numeric"
    TEXT = "text"

class QuizItem(BaseModel):
    """One generated multiple-choice question. Never mutated after creation."""
    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    subject: Subject
    unit: str
    answer: str
    options: List[str]

class QuizResponse(BaseModel):
    subject: str
    items: List[QuizItem]
    generated_at: datetime

class AnswerRequest(BaseModel):
    user_id: str
    item: QuizItem
    selected: str

class AnswerResponse(BaseModel):
    is_correct: bool
    correct_answer: str
    note_id: Optional[str] = None

class IncorrectNote(BaseModel):
    note_id: str
    user_id: str
    text: str
    answer: str
    subject: Subject
    unit: str
    first_incorrect_at: datetime
    latest_incorrect_at: datetime
    incorrect_count: int = 1

class NoteListResponse(BaseModel):
    notes: List[IncorrectNote]

class ExplanationResponse(BaseModel):
    note_id: str
    explanation: str

class StudyStartRequest(BaseModel):
    user_id: str
    subject: str

class StudyStopRequest(BaseModel):
    user_id: str

class StudyTimerResponse(BaseModel):
    user_id: str
    subject: str
    started_at: datetime

class StudyStopResponse(BaseModel):
    user_id: str
    subject: str
    elapsed_seconds: int
    minutes: int
    formatted: str
    recorded: bool

class DailyStudyLog(BaseModel):
    user_id: str
    date: str
    total_study_minutes: int = 0
    subject_minutes: Dict[str, int] = {}

class StudyGroupRequest(BaseModel):
    group_name: str
    members: List[str] = []

class StudyGroup(BaseModel):
    group_id: str
    group_name: str
    members: List[str] = []

class StudyGroupListResponse(BaseModel):
    groups: List[StudyGroup]

class LiveSessionStatus(str, Enum):
    WAITING = "waiting"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"

class Participant(BaseModel):
    user_id: str
    nickname: str

class RankingEntry(BaseModel):
    user_id: str
    nickname: str
    score: int = 0

class LiveAnswer(BaseModel):
    user_id: str
    item_id: str
    points: int = 0

class LiveSession(BaseModel):
    """
    Live quiz session pushed to clients.

    MongoDB stores participants and answer records; the ranking is
    derived from them on every read.
    """
    session_id: str
    join_code: str
    host_id: str
    status: LiveSessionStatus = LiveSessionStatus.WAITING
    quiz_set: List[QuizItem] = []
    participants: List[Participant] = []
    answers: List[LiveAnswer] = []
    ranking: List[RankingEntry] = []
    created_at: datetime
    updated_at: Optional[datetime] = None

class HostRequest(BaseModel):
    user_id: str
    nickname: Optional[str] = None

class JoinRequest(BaseModel):
    join_code: str = Field(..., min_length=1)
    user_id: str
    nickname: Optional[str] = None

class HostActionRequest(BaseModel):
    user_id: str

class LiveAnswerRequest(BaseModel):
    user_id: str
    item_id: str
    selected: str

class LiveAnswerResponse(BaseModel):
    is_correct: bool
    correct_answer: str
    score: int

class ChatMessage(BaseModel):
    role: str
    content: str

class ChatRequest(BaseModel):
    message: str = ""
    image_base64: Optional[str] = None
    image_text: Optional[str] = None
    history: List[ChatMessage] = []

class ChatResponse(BaseModel):
    response: str
    timestamp: datetime

class InquiryRequest(BaseModel):
    user_id: str
    user_name: Optional[str] = None
    content: str

class InquiryResponse(BaseModel):
    inquiry_id: str
    status: str

class Meal(BaseModel):
    time: str
    menu: str

class MealResponse(BaseModel):
    date: str
    meals: List[Meal]
