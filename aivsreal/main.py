import logging

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import func
from sqlalchemy.orm import Session

from .config import settings
from .database import get_db, init_db
from .errors import register_exception_handlers
from .models.models import Classroom, Contest, User
from .routers import auth, classrooms, contests, submissions, votes

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="AI vs Real Contest API",
    description="API for classroom contests: join, submit image pairs, "
    "vote and tally results",
    version="1.0.0",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include routers
app.include_router(auth.router)
app.include_router(classrooms.router)
app.include_router(contests.router)
app.include_router(submissions.router)
app.include_router(votes.router)


@app.on_event("startup")
def on_startup():
    init_db()
    logger.info("Database schema ready")


@app.get("/")
def root():
    return {"message": "AI vs Real Contest API is running"}


@app.get("/status")
def database_status(db: Session = Depends(get_db)):
    """Row counts, handy to check the database is reachable"""
    return {
        "status": "Database is ready",
        "stats": {
            "users": db.query(func.count(User.id)).scalar(),
            "classrooms": db.query(func.count(Classroom.id)).scalar(),
            "contests": db.query(func.count(Contest.id)).scalar(),
        },
    }
