# reading_portal/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from reading_portal.api.v1.endpoints import (
    analytics,
    auth,
    forms,
    generation,
    health,
    leaderboard,
    permissions,
    scores,
    stories,
    submissions,
    users,
)
from reading_portal.core.config import settings
from reading_portal.core.logging_config import setup_logging
from reading_portal.db.base import Base
from reading_portal.db.session import engine

setup_logging()

app = FastAPI(title=settings.PROJECT_NAME)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def on_startup():
    Base.metadata.create_all(bind=engine)


app.include_router(auth.router, prefix="/api/v1/auth", tags=["auth"])
app.include_router(health.router, prefix="/api/v1/health")
for module in (users, stories, forms, submissions, scores, leaderboard, permissions, analytics, generation):
    app.include_router(module.router, prefix="/api/v1")
