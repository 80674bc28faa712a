"""
Search orchestration: resolve the chat session, then ask Gemini.

Responsibility: Compose the session store and the Gemini client into the two
conversational operations (new search, follow-up). No HTTP or FastAPI here.
"""

import logging

from app.agent.gemini import GeminiClient
from app.agent.results import GenerationOutcome, SessionNotFound
from app.core.session_store import ChatSession, SessionStore, session_store

logger = logging.getLogger(__name__)

_client: GeminiClient | None = None


def get_client() -> GeminiClient:
    """Shared client built from config on first use."""
    global _client
    if _client is None:
        _client = GeminiClient()
    return _client


def start_search(
    query: str,
    store: SessionStore | None = None,
    client: GeminiClient | None = None,
) -> tuple[ChatSession, GenerationOutcome]:
    """Create a session and generate the first answer for query."""
    if store is None:
        store = session_store
    if client is None:
        client = get_client()
    session = store.create_session()
    logger.info("[search_service:start_search] IN  query=%r session_id=%s", query, session.session_id)
    outcome = client.generate_first_answer(query, session)
    logger.info("[search_service:start_search] OUT outcome=%s", type(outcome).__name__)
    return session, outcome


def follow_up(
    session_id: str,
    query: str,
    store: SessionStore | None = None,
    client: GeminiClient | None = None,
) -> GenerationOutcome | SessionNotFound:
    """Answer a follow-up in an existing session; unknown ids never reach Gemini."""
    if store is None:
        store = session_store
    session = store.get_session(session_id)
    if session is None:
        logger.info("[search_service:follow_up] session_id=%s not found", session_id)
        return SessionNotFound(session_id=session_id)
    if client is None:
        client = get_client()
    logger.info("[search_service:follow_up] IN  query=%r session_id=%s", query, session_id)
    outcome = client.generate_follow_up(query, session)
    logger.info("[search_service:follow_up] OUT outcome=%s", type(outcome).__name__)
    return outcome
