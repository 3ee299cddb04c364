"""
FastAPI Endpoints for the Intro Match Engine
============================================
REST API for scoring contacts against conversations and storing the
resulting introduction suggestions.

Base URL: http://localhost:8000

Endpoints:
- GET  /                                  - API info
- GET  /api/health                        - Health check
- POST /api/matches/score                 - Score inline entities/contacts (no persistence)
- POST /api/conversations                 - Register a conversation snapshot
- POST /api/contacts                      - Register contacts
- POST /api/conversations/{id}/matches    - Generate, explain and store matches
- GET  /api/conversations/{id}/matches    - Stored matches for a conversation
- POST /api/names/match                   - Debug the name matcher
- POST /api/eval                          - Offline ranking evaluation
- POST /api/eval/tune                     - Grid-search scoring weights on stored breakdowns
- GET  /api/stats                         - Engine statistics
"""

import time
import logging
from fastapi import FastAPI, HTTPException, Query, Body
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List
from datetime import datetime

from .. import __version__
from ..errors import ConversationNotFoundError
from ..config.settings import LLM_CONFIG
from ..models.schemas import (
    Contact,
    ConversationSnapshot,
    GenerateMatchesResult,
    MatchCandidate,
    NameMatchResult,
    ScoreRequest,
)
from ..engine import MatchingEngine
from ..evaluation.metrics import ConversationLabels, EvaluationReport, evaluate_rankings
from ..evaluation.tuning import TuningResult, grid_search
from ..stages.stage3_names import fuzzy_name_match

logger = logging.getLogger(__name__)


# =============================================================================
# FastAPI App Initialization
# =============================================================================

app = FastAPI(
    title="Intro Match Engine API",
    description="""
## Multi-Signal Contact Matching

Ranks your contacts against what was discussed in a conversation and
suggests warm introductions.

### Features:
- **Staged Pipeline**: Normalize → Features → Names → Scorers → Aggregate → Rank
- **Cold-start aware**: sparse profiles are not penalized for missing data
- **Explainable**: every match carries reasons and a score breakdown
- **LLM Explanations**: optional prose for the top matches

### Quick Start:
1. `POST /api/matches/score` with entities and contacts for a dry run
2. Register data with `/api/conversations` and `/api/contacts`
3. `POST /api/conversations/{id}/matches` to generate and store suggestions
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware - Allow all origins for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Engine Initialization
# =============================================================================

# In-memory storage lives on the engine (replace with database in production)
default_engine = MatchingEngine()


# =============================================================================
# Request Models
# =============================================================================

class NameMatchRequest(BaseModel):
    mentioned_name: str = Field(..., description="Name as said in the conversation")
    contact_name: str = Field(..., description="Stored contact name")

    class Config:
        json_schema_extra = {
            "example": {"mentioned_name": "Bob Smith", "contact_name": "Robert Smith"}
        }


class EvalRequest(BaseModel):
    """Labels to evaluate; rankings default to the stored suggestions"""
    labels: List[ConversationLabels]
    rankings: Optional[Dict[str, List[str]]] = Field(
        None, description="conversation_id -> contact ids, best first"
    )


class TuneRequest(BaseModel):
    """Labels to tune on; suggestions come from the repository"""
    labels: List[ConversationLabels]
    steps: Optional[List[float]] = Field(
        None, description="Candidate values for the embedding, tag and affinity weights"
    )


def _candidate_json(candidate: MatchCandidate) -> Dict[str, Any]:
    data = candidate.model_dump(mode="json")
    data["justification"] = candidate.justification
    return data


# =============================================================================
# Health & Info Endpoints
# =============================================================================

@app.get("/", tags=["Info"])
async def root():
    """API information and available endpoints"""
    return {
        "service": "Intro Match Engine",
        "version": __version__,
        "status": "running",
        "docs": "/docs",
        "endpoints": {
            "Score": "POST /api/matches/score",
            "Register Conversation": "POST /api/conversations",
            "Register Contacts": "POST /api/contacts",
            "Generate Matches": "POST /api/conversations/{id}/matches",
            "List Matches": "GET /api/conversations/{id}/matches",
            "Name Match": "POST /api/names/match",
            "Evaluate": "POST /api/eval",
            "Tune Weights": "POST /api/eval/tune",
            "Health": "GET /api/health",
        }
    }


@app.get("/api/health", tags=["Info"])
async def health_check():
    """Health check endpoint for monitoring"""
    return {
        "status": "healthy",
        "service": "Intro Match Engine",
        "version": __version__,
        "timestamp": datetime.utcnow().isoformat(),
        "llm_configured": default_engine.stage7.enabled,
        "llm_provider": LLM_CONFIG.get("provider"),
    }


# =============================================================================
# Matching Endpoints
# =============================================================================

@app.post("/api/matches/score", tags=["Matching"])
async def score_matches(request: ScoreRequest):
    """
    Score contacts against inline conversation data.

    Nothing is stored and no LLM is called.
    """
    start_time = time.time()
    options = request.options or {}

    candidates = default_engine.score_contacts(
        entities=request.entities,
        contacts=request.contacts,
        context=request.context,
        conversation_embedding=request.conversation_embedding,
        max_workers=options.get("max_workers"),
    )

    return {
        "count": len(candidates),
        "contacts_scored": len(request.contacts),
        "matches": [_candidate_json(c) for c in candidates],
        "processing_time_ms": round((time.time() - start_time) * 1000, 2),
    }


@app.post("/api/conversations", tags=["Data"])
async def register_conversation(snapshot: ConversationSnapshot):
    """Create or replace a conversation snapshot"""
    default_engine.store.save_conversation(snapshot)
    return {
        "conversation_id": snapshot.conversation_id,
        "status": "created",
        "entities": len(snapshot.entities),
    }


@app.post("/api/contacts", tags=["Data"])
async def register_contacts(contacts: List[Contact] = Body(..., description="Contacts to add or replace")):
    """Add or replace contacts by id"""
    saved = default_engine.store.save_contacts(contacts)
    return {
        "saved": saved,
        "total": len(default_engine.store.list_contacts()),
    }


@app.post(
    "/api/conversations/{conversation_id}/matches",
    response_model=GenerateMatchesResult,
    tags=["Matching"],
)
async def generate_matches(
    conversation_id: str,
    max_workers: Optional[int] = Query(None, description="Parallel scoring workers"),
):
    """
    Score all stored contacts against a stored conversation, explain the top
    matches and upsert the suggestions. Re-running replaces earlier rows.
    """
    try:
        return default_engine.generate_matches(conversation_id, max_workers=max_workers)
    except ConversationNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@app.get("/api/conversations/{conversation_id}/matches", tags=["Matching"])
async def list_matches(conversation_id: str):
    """Stored suggestions for a conversation, best score first"""
    if default_engine.store.get_conversation(conversation_id) is None:
        raise HTTPException(status_code=404, detail="Conversation not found")

    rows = default_engine.repository.list_for_conversation(conversation_id)
    return {
        "conversation_id": conversation_id,
        "count": len(rows),
        "matches": [r.model_dump(mode="json") for r in rows],
    }


@app.post("/api/names/match", response_model=NameMatchResult, tags=["Debug"])
async def match_name(request: NameMatchRequest):
    """Run the fuzzy name matcher on one pair of names"""
    return fuzzy_name_match(request.mentioned_name, request.contact_name)


@app.post("/api/eval", response_model=EvaluationReport, tags=["Evaluation"])
async def evaluate(request: EvalRequest):
    """
    Precision@5/10, hit-rate@1, MRR and NDCG@5 against feedback labels.
    """
    rankings = request.rankings
    if rankings is None:
        rankings = {
            label.conversation_id: [
                row.contact_id
                for row in default_engine.repository.list_for_conversation(label.conversation_id)
            ]
            for label in request.labels
        }
    return evaluate_rankings(rankings, request.labels)


@app.post("/api/eval/tune", response_model=TuningResult, tags=["Evaluation"])
async def tune_weights(request: TuneRequest):
    """
    Re-rank stored suggestions under alternative weights and return the
    vector with the best MRR.
    """
    suggestions = [
        row
        for label in request.labels
        for row in default_engine.repository.list_for_conversation(label.conversation_id)
    ]
    return grid_search(suggestions, request.labels, steps=request.steps)


# =============================================================================
# Statistics
# =============================================================================

@app.get("/api/stats", tags=["Info"])
async def get_stats():
    """Get engine statistics"""
    return {
        "default_engine": default_engine.get_stats(),
        "conversations": len(default_engine.store.list_conversations()),
        "contacts": len(default_engine.store.list_contacts()),
        "suggestions": default_engine.repository.count(),
    }


# =============================================================================
# Error Handlers
# =============================================================================

@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "detail": str(exc),
            "type": type(exc).__name__,
        }
    )
