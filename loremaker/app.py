"""FastAPI application factory, CORS, and lifespan wiring."""

from __future__ import annotations

from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

from loremaker.config import get_settings
from loremaker.routers.characters import router as characters_router
from loremaker.services.sheets import get_library
from loremaker.utils.logging_config import get_logger, setup_logging

settings = get_settings()
logger = get_logger("loremaker.app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.log_file)
    if not settings.sheet_id:
        logger.warning("SHEET_ID is not set; serving the bundled roster only")
    yield
    # Drop the roster so a reload starts cold
    get_library().clear()


app = FastAPI(title="LoreMaker Codex", version="1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)

app.include_router(characters_router)
