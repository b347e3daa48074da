import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import CORS_ORIGINS, LOG_LEVEL
from database import SessionLocal
from init_db import init_database
from routers import generation
from services.orchestrator import build_orchestrator

# --------------------------------------------------------------------------
# --- Configuration & Setup ---
# --------------------------------------------------------------------------

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s - %(levelname)s - %(message)s")


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_database()
    app.state.orchestrator = build_orchestrator(SessionLocal)
    logging.info("🚀 Motion Studio backend started")
    yield


app = FastAPI(
    title="Motion Studio Video Generator",
    description="A backend that turns text prompts into rendered Remotion videos.",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --------------------------------------------------------------------------
# --- API Endpoints ---
# --------------------------------------------------------------------------

app.include_router(generation.router)


@app.get("/")
def read_root():
    return {"status": "🚀 Motion Studio Video Generator is running!"}
