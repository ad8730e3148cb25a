import os
from dotenv import load_dotenv
from typing import List

load_dotenv()

class Config:
    # API Keys
    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")

    # Model Settings
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
    GEMINI_TEMPERATURE: float = float(os.getenv("GEMINI_TEMPERATURE", "0.3"))
    GEMINI_MAX_OUTPUT_TOKENS: int = int(os.getenv("GEMINI_MAX_OUTPUT_TOKENS", "2048"))
    LLM_MAX_RETRIES: int = int(os.getenv("LLM_MAX_RETRIES", "3"))
    TUTOR_SYSTEM_INSTRUCTION: str = "당신은 한국 고등학생을 위한 전문 학습 튜터입니다. 질문에 대해 친절하고 명확하게 답변해 주세요."

    # MongoDB Settings
    MONGODB_URI: str = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
    DATABASE_NAME: str = os.getenv("DATABASE_NAME", "study_companion")
    NOTES_COLLECTION: str = "incorrect_notes"
    STUDY_LOG_COLLECTION: str = "daily_study_logs"
    TIMER_COLLECTION: str = "active_timers"
    GROUP_COLLECTION: str = "study_groups"
    LIVE_SESSION_COLLECTION: str = "quiz_sessions"
    INQUIRY_COLLECTION: str = "inquiries"

    # Quiz Settings
    QUIZ_SIZE: int = 10
    OPTION_COUNT: int = 4
    JOIN_CODE_LENGTH: int = 6
    LIVE_POLL_INTERVAL: float = float(os.getenv("LIVE_POLL_INTERVAL", "1.0"))

    # Study timer
    NO_SUBJECT: str = "선택 안함"
    STUDY_SUBJECTS: List[str] = ["국어", "영어", "수학", "탐구", "기타"]

    # NEIS meal service
    NEIS_API_URL: str = "https://open.neis.go.kr/hub/mealServiceDietInfo"
    NEIS_API_KEY: str = os.getenv("NEIS_API_KEY", "")
    NEIS_OFFICE_CODE: str = os.getenv("NEIS_OFFICE_CODE", "B10")
    NEIS_SCHOOL_CODE: str = os.getenv("NEIS_SCHOOL_CODE", "7010806")
    HTTP_TIMEOUT: float = 10.0

    # Server Settings
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))

    @classmethod
    def is_study_subject(cls, subject: str) -> bool:
        """Check whether a subject can be timed (the empty selection cannot)."""
        return subject in cls.STUDY_SUBJECTS

    @classmethod
    def validate_config(cls):
        if not cls.GEMINI_API_KEY:
            raise ValueError("GEMINI_API_KEY is required")
        if not cls.MONGODB_URI:
            raise ValueError("MONGODB_URI is required")
