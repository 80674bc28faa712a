"""
API route aggregator: register endpoints; no logic; only delegate to handlers.
"""

import logging

from fastapi import APIRouter, Query

from app.api.handlers import handle_follow_up, handle_search
from app.schemas.search import FollowUpRequest, FollowUpResponse, SearchResponse

logger = logging.getLogger(__name__)
router = APIRouter()


# --- System ---

@router.get("/", tags=["system"])
def root():
    return {"status": "Gemini search backend running"}


@router.get("/health", tags=["system"])
def health():
    return {"ok": True}


# --- Search ---

@router.get(
    "/api/search",
    response_model=SearchResponse,
    tags=["search"],
    summary="Search with Gemini (starts a chat session)",
    description="Send a query; receive sessionId, HTML summary, and cited sources. 400 on blank query, 429 when rate limited, 500 on upstream failure.",
)
def get_search(q: str | None = Query(None, description="Search query.")) -> SearchResponse:
    logger.info("[api:get_search] IN  q=%r", q)
    return handle_search(q)


@router.post(
    "/api/follow-up",
    response_model=FollowUpResponse,
    tags=["search"],
    summary="Ask a follow-up in an existing session",
    description="Continue the conversation for sessionId. 400 on missing fields, 404 on unknown session, 429 when rate limited.",
)
def post_follow_up(body: FollowUpRequest) -> FollowUpResponse:
    logger.info("[api:post_follow_up] IN  query=%r session_id=%s", body.query, body.session_id)
    return handle_follow_up(body)
