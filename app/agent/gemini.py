"""
Gemini client: generateContent over HTTP with Google Search grounding.

First answers try with the google_search tool and, on any non-429 failure,
retry once without tools; the outcome is remembered on the session and reused
for follow-ups (which never fall back). Returns a GenerationOutcome instead of
raising so the API layer can map every case explicitly.
"""

import json
import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Sequence

import httpx

from app.agent.results import (
    GenerationOutcome,
    GenerationResult,
    MissingApiKey,
    RateLimited,
    Source,
    UpstreamFailure,
)
from app.core.config import (
    GEMINI_API_BASE,
    GEMINI_MODEL,
    GENERATION_MAX_OUTPUT_TOKENS,
    GENERATION_TEMPERATURE,
    GENERATION_TOP_K,
    GENERATION_TOP_P,
    GOOGLE_API_KEY,
    LLM_API_TIMEOUT,
)
from app.core.session_store import ChatSession, Turn

logger = logging.getLogger(__name__)

# Gemini error bodies, e.g. "Please retry in 16.028201274s." or "retryDelay": "16s"
_RETRY_IN_RE = re.compile(r"retry in\s+(\d+(?:\.\d+)?)s", re.IGNORECASE)
_RETRY_DELAY_RE = re.compile(r"retryDelay\"\s*:\s*\"(\d+)s\"", re.IGNORECASE)

GOOGLE_SEARCH_TOOL: dict[str, Any] = {"google_search": {}}


@dataclass(frozen=True)
class _CallResult:
    status_code: int
    body: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


def build_payload(history: Sequence[Turn], with_tools: bool) -> dict[str, Any]:
    """Translate the conversation into a generateContent request body."""
    payload: dict[str, Any] = {
        "contents": [{"role": turn.role, "parts": [{"text": turn.text}]} for turn in history],
        "generationConfig": {
            "temperature": GENERATION_TEMPERATURE,
            "topP": GENERATION_TOP_P,
            "topK": GENERATION_TOP_K,
            "maxOutputTokens": GENERATION_MAX_OUTPUT_TOKENS,
        },
    }
    if with_tools:
        payload["tools"] = [GOOGLE_SEARCH_TOOL]
    return payload


def extract_retry_after_seconds(body: str | None) -> int | None:
    """
    Best-effort retry hint from an error body. The formats are not a stable contract,
    so "retry in Ns" (rounded up) is checked before the "retryDelay" field.
    """
    if not body or not body.strip():
        return None
    m = _RETRY_IN_RE.search(body)
    if m:
        return math.ceil(float(m.group(1)))
    m = _RETRY_DELAY_RE.search(body)
    if m:
        return int(m.group(1))
    return None


def _non_blank(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _first_candidate(data: Any) -> dict[str, Any] | None:
    if not isinstance(data, dict):
        return None
    candidates = data.get("candidates")
    if isinstance(candidates, list) and candidates and isinstance(candidates[0], dict):
        return candidates[0]
    return None


def extract_text(candidate: dict[str, Any] | None) -> str:
    """Concatenate every textual part of the candidate's content, in order."""
    if not candidate:
        return ""
    content = candidate.get("content")
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        return ""
    return "".join(p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str))


def extract_sources(candidate: dict[str, Any] | None) -> list[Source]:
    """
    Build sources from groundingMetadata: one per distinct chunk url (first-seen order),
    with the text of every support referencing that chunk joined by spaces.
    Chunks with a blank uri or title are skipped entirely.
    """
    if not candidate:
        return []
    metadata = candidate.get("groundingMetadata")
    if not isinstance(metadata, dict):
        return []
    chunks = metadata.get("groundingChunks")
    supports = metadata.get("groundingSupports")
    if not isinstance(chunks, list):
        return []
    if not isinstance(supports, list):
        supports = []

    # url -> [title, snippet parts]; dicts keep insertion order
    by_url: dict[str, tuple[str, list[str]]] = {}
    for i, chunk in enumerate(chunks):
        web = chunk.get("web") if isinstance(chunk, dict) else None
        if not isinstance(web, dict):
            continue
        url, title = web.get("uri"), web.get("title")
        if not _non_blank(url) or not _non_blank(title):
            continue
        if url not in by_url:
            by_url[url] = (title, [])
        snippets = by_url[url][1]
        for support in supports:
            if not isinstance(support, dict):
                continue
            indices = support.get("groundingChunkIndices")
            if not isinstance(indices, list):
                continue
            if not any(isinstance(idx, int) and not isinstance(idx, bool) and idx == i for idx in indices):
                continue
            segment = support.get("segment")
            text = segment.get("text") if isinstance(segment, dict) else None
            if _non_blank(text):
                snippets.append(text)

    return [Source(title=title, url=url, snippet=" ".join(parts)) for url, (title, parts) in by_url.items()]


def parse_result(body: str) -> GenerationResult:
    """Parse a generateContent response body. Raises ValueError if it is not JSON."""
    data = json.loads(body)
    candidate = _first_candidate(data)
    return GenerationResult(text=extract_text(candidate), sources=tuple(extract_sources(candidate)))


class GeminiClient:
    """Sends conversations to Gemini and applies the tools / rate-limit policy."""

    def __init__(
        self,
        api_key: str = GOOGLE_API_KEY,
        model: str = GEMINI_MODEL,
        base_url: str = GEMINI_API_BASE,
        timeout: float = LLM_API_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.api_key = (api_key or "").strip()
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def generate_first_answer(self, query: str, session: ChatSession) -> GenerationOutcome:
        """
        Start a conversation. Tries grounded search first; on a non-429 failure retries
        once without tools. 429 is reported immediately, without the fallback.
        """
        if not self.api_key:
            return MissingApiKey()
        with session.lock:
            session.add_user_message(query)
            history = session.history
            logger.info("[gemini:first_answer] IN  session_id=%s history_len=%d", session.session_id, len(history))

            res = self._call_generate_content(history, with_tools=True)
            if isinstance(res, UpstreamFailure):
                return res
            if res.ok:
                return self._finish(res, session, tools_enabled=True)
            if res.status_code == 429:
                return self._rate_limited(res)

            logger.info("[gemini:first_answer] tools call failed status=%d; retrying without tools", res.status_code)
            res = self._call_generate_content(history, with_tools=False)
            if isinstance(res, UpstreamFailure):
                return res
            if res.status_code == 429:
                return self._rate_limited(res)
            if not res.ok:
                return self._upstream_failure(res)
            return self._finish(res, session, tools_enabled=False)

    def generate_follow_up(self, query: str, session: ChatSession) -> GenerationOutcome:
        """Continue a conversation with whatever tools setting the first answer settled on."""
        if not self.api_key:
            return MissingApiKey()
        with session.lock:
            session.add_user_message(query)
            history = session.history
            tools = session.tools_enabled
            logger.info(
                "[gemini:follow_up] IN  session_id=%s history_len=%d tools=%s",
                session.session_id,
                len(history),
                tools,
            )
            res = self._call_generate_content(history, with_tools=tools)
            if isinstance(res, UpstreamFailure):
                return res
            if res.status_code == 429:
                return self._rate_limited(res)
            if not res.ok:
                return self._upstream_failure(res)
            return self._finish(res, session)

    def _finish(
        self, res: _CallResult, session: ChatSession, tools_enabled: bool | None = None
    ) -> GenerationOutcome:
        try:
            result = parse_result(res.body)
        except ValueError as e:
            logger.warning("[gemini] unreadable response body: %s", e)
            return UpstreamFailure(status_code=res.status_code, message=f"Unreadable Gemini response: {e!s}")
        if tools_enabled is not None:
            session.tools_enabled = tools_enabled
        session.add_model_message(result.text)
        logger.info("[gemini] OUT text_len=%d sources=%d", len(result.text), len(result.sources))
        return result

    def _rate_limited(self, res: _CallResult) -> RateLimited:
        retry_after = extract_retry_after_seconds(res.body)
        logger.warning("[gemini] rate limited retry_after=%s", retry_after)
        return RateLimited(retry_after_seconds=retry_after)

    def _upstream_failure(self, res: _CallResult) -> UpstreamFailure:
        return UpstreamFailure(
            status_code=res.status_code,
            message=f"Gemini API request failed (status {res.status_code})",
        )

    def _call_generate_content(self, history: Sequence[Turn], with_tools: bool) -> _CallResult | UpstreamFailure:
        payload = build_payload(history, with_tools)
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(self.endpoint, params={"key": self.api_key}, json=payload)
        except httpx.HTTPError as e:
            logger.warning("[gemini] request failed: %s", e.__class__.__name__)
            return UpstreamFailure(status_code=None, message=f"Gemini API request failed: {e.__class__.__name__}")
        if not response.is_success:
            logger.warning(
                "[gemini] Gemini error %s (tools=%s): %s", response.status_code, with_tools, response.text[:200]
            )
        return _CallResult(status_code=response.status_code, body=response.text)
