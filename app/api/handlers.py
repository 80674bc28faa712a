"""
API handlers: validate request data, call services, map outcomes to HTTP.

Responsibility: Bridge HTTP types and services. Marshalling and outcome-to-HTTP mapping.
Lives in the API layer so services stay free of FastAPI/HTTP types.
"""

import logging

from fastapi import HTTPException

from app.agent.results import (
    GenerationOutcome,
    GenerationResult,
    MissingApiKey,
    RateLimited,
    SessionNotFound,
    UpstreamFailure,
)
from app.schemas.search import FollowUpRequest, FollowUpResponse, SearchResponse, SourceItem
from app.services.formatter import format_to_html
from app.services.search_service import follow_up, start_search

logger = logging.getLogger(__name__)


class RateLimitHTTPException(HTTPException):
    """429 that also reports retryAfterSeconds in the JSON body."""

    def __init__(self, retry_after_seconds: int | None) -> None:
        self.retry_after_seconds = retry_after_seconds
        if retry_after_seconds is None:
            detail = "Rate limit/quota exceeded. Please retry shortly."
            headers = None
        else:
            detail = f"Rate limit/quota exceeded. Retry in ~{retry_after_seconds}s."
            headers = {"Retry-After": str(retry_after_seconds)}
        super().__init__(status_code=429, detail=detail, headers=headers)


def _unwrap(outcome: GenerationOutcome, failure_message: str) -> GenerationResult:
    """Return the result or raise the HTTPException for the failure variant."""
    if isinstance(outcome, GenerationResult):
        return outcome
    if isinstance(outcome, MissingApiKey):
        logger.error("[api] %s", outcome.message)
        raise HTTPException(status_code=500, detail=outcome.message)
    if isinstance(outcome, RateLimited):
        raise RateLimitHTTPException(outcome.retry_after_seconds)
    if isinstance(outcome, UpstreamFailure):
        logger.error("[api] upstream failure status=%s: %s", outcome.status_code, outcome.message)
        raise HTTPException(status_code=500, detail=failure_message)
    raise TypeError(f"Unhandled generation outcome: {outcome!r}")


def _sources(result: GenerationResult) -> list[SourceItem]:
    return [SourceItem(**s.to_dict()) for s in result.sources]


def handle_search(query: str | None) -> SearchResponse:
    """Start a new chat session for query. 400 on blank query."""
    if not query or not query.strip():
        raise HTTPException(status_code=400, detail="Query parameter 'q' is required")
    session, outcome = start_search(query)
    result = _unwrap(outcome, "An error occurred while processing your search")
    return SearchResponse(
        session_id=session.session_id,
        summary=format_to_html(result.text),
        sources=_sources(result),
    )


def handle_follow_up(body: FollowUpRequest) -> FollowUpResponse:
    """Continue a chat session. 400 on blank fields, 404 on unknown session."""
    session_id = (body.session_id or "").strip()
    query = (body.query or "").strip()
    if not session_id or not query:
        raise HTTPException(status_code=400, detail="Both sessionId and query are required")
    outcome = follow_up(session_id, body.query)
    if isinstance(outcome, SessionNotFound):
        raise HTTPException(status_code=404, detail=outcome.message)
    result = _unwrap(outcome, "An error occurred while processing your follow-up question")
    return FollowUpResponse(summary=format_to_html(result.text), sources=_sources(result))
