from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn
import logging
from contextlib import asynccontextmanager

from study_companion.config import Config
from study_companion.core.error_notes import ErrorNoteService
from study_companion.core.live_quiz import LiveQuizManager
from study_companion.core.llm import GeminiLLMWrapper
from study_companion.core.meal_client import MealClient
from study_companion.core.mongodb_client import MongoDBClient
from study_companion.core.study_timer import StudyTimerService
from study_companion.core.tutor_agent import TutorAgent
from study_companion.api import inquiry, live_quiz, meals, notes, quiz, study, tutor


logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize components on startup and hand them to the routers via app.state"""
    mongodb_client = None

    try:
        # Validate configuration
        Config.validate_config()

        # Initialize components
        llm_wrapper = GeminiLLMWrapper()
        mongodb_client = MongoDBClient()
        tutor_agent = TutorAgent(llm_wrapper)

        app.state.mongodb_client = mongodb_client
        app.state.tutor_agent = tutor_agent
        app.state.error_note_service = ErrorNoteService(mongodb_client, tutor_agent)
        app.state.study_timer = StudyTimerService(mongodb_client)
        app.state.live_quiz_manager = LiveQuizManager(mongodb_client)
        app.state.meal_client = MealClient()

        logger.info("Application initialized successfully")

    except Exception as e:
        logger.error(f"Initialization failed: {e}")
        raise e

    yield

    # Cleanup on shutdown
    if mongodb_client:
        mongodb_client.close()
    logger.info("Application shutting down")

# Create FastAPI app
app = FastAPI(
    title="Study Companion API",
    description="Quiz practice, error notes, study timer, live quizzes and an AI tutor",
    version=VERSION,
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(quiz.router, prefix="/api", tags=["quiz"])
app.include_router(notes.router, prefix="/api", tags=["notes"])
app.include_router(study.router, prefix="/api", tags=["study"])
app.include_router(live_quiz.router, prefix="/api", tags=["live"])
app.include_router(tutor.router, prefix="/api", tags=["tutor"])
app.include_router(inquiry.router, prefix="/api", tags=["inquiry"])
app.include_router(meals.router, prefix="/api", tags=["meals"])

@app.get("/")
async def root():
    return {"message": "Study Companion API is running"}

@app.get("/health")
async def health_check():
    return {"status": "healthy", "version": VERSION}

def run():
    uvicorn.run(
        "study_companion.main:app",
        host=Config.HOST,
        port=Config.PORT,
        reload=True
    )

if __name__ == "__main__":
    run()
