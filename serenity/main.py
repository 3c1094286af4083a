import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from serenity.core.config import CORS_ORIGINS, LOG_LEVEL
from serenity.core.database import Base, SessionLocal, engine
from serenity.activities.catalog import DEFAULT_ACTIVITIES
from serenity.activities.db import seed_activities
from serenity.auth import routes as auth_router
from serenity.journals import routes as journals_router
from serenity.activities import routes as activities_router
from serenity.chat import routes as chat_router
from serenity.telegram import routes as telegram_router

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # DB Tables
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as db:
        added = seed_activities(db, DEFAULT_ACTIVITIES)
    if added:
        logger.info(f"Seeded {added} activities")
    yield


app = FastAPI(
    title="Serenity Journal API",
    version="1.0.0",
    description="Backend for Serenity: journaling, asynchronous entry enrichment and journal-grounded AI chat.",
    lifespan=lifespan,
)

# CORS config
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(auth_router.router)
app.include_router(journals_router.router)
app.include_router(activities_router.router)
app.include_router(chat_router.router)
app.include_router(telegram_router.router)
