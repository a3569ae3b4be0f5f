"""
DartPractice API - darts practice scoring and checkout coaching

Scores virtual darts thrown at a normalized board, tracks competition legs,
keeps per-user training accuracy and recommends checkout targets from it.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dartpractice.api.routes import router, API_VERSION
from dartpractice.core.leg_tracker import leg_manager
from dartpractice.core.training import training_manager

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Configuration
API_TITLE = "DartPractice API"
API_DESCRIPTION = """
Darts practice scoring and checkout recommendations.

All coordinates are in board-radius units: the board is the unit disk centred
on the origin, +x right, +y down. Points further than 1.0 from the centre miss.

## Endpoints

### Scoring
- `POST /v1/score` - Score an impact point
- `POST /v1/hit` - Check a point against an aimed-at section

### Checkout
- `POST /v1/checkout` - Recommend the next target for a remaining score

### Competition legs
- `POST /v1/legs` - Start a leg
- `POST /v1/legs/{leg_id}/throws` - Register a dart
- `POST /v1/legs/{leg_id}/undo` - Remove the last dart of the turn
- `POST /v1/legs/{leg_id}/confirm` - Apply the turn

### Training
- `POST /v1/training` - Start a training session
- `POST /v1/training/{session_id}/throws` - Record an attempt
- `POST /v1/training/{session_id}/undo` - Revert the last attempt
- `POST /v1/training/{session_id}/end` - Finish and save the session

### Sessions and analytics
- `PUT/GET/DELETE /v1/users/{user_id}/sessions/{session_id}`
- `POST /v1/users/{user_id}/sessions/load` - Refresh from the document store
- `GET /v1/users/{user_id}/accuracy|tendencies|stats`
- `GET /v1/users/{user_id}/timeline/{section_key}` - Training accuracy per session

### Health
- `GET /health` - Service health check
"""


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("DartPractice API starting")
    yield
    removed = leg_manager.cleanup_inactive() + training_manager.cleanup_inactive()
    logger.info(f"DartPractice API shutting down ({len(removed)} inactive legs and training sessions dropped)")


app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# CORS - allow all for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(router)


@app.get("/")
async def root():
    """API info and links."""
    return {
        "name": API_TITLE,
        "version": API_VERSION,
        "docs": "/docs",
        "health": "/health",
    }
