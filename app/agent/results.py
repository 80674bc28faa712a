"""
Outcome types for one upstream generation call.

A call yields exactly one of: GenerationResult (success), MissingApiKey,
RateLimited, or UpstreamFailure. Callers branch on the type instead of
catching exceptions; see app/api/handlers.py for the HTTP mapping.
"""

from dataclasses import dataclass, field
from typing import Union

from app.core.config import MISSING_API_KEY_MESSAGE


@dataclass(frozen=True)
class Source:
    """A cited web page: title and url are always non-blank."""

    title: str
    url: str
    snippet: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"title": self.title, "url": self.url, "snippet": self.snippet}


@dataclass(frozen=True)
class GenerationResult:
    """Answer text (possibly empty) and its sources, unique by url, first-seen order."""

    text: str = ""
    sources: tuple[Source, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class MissingApiKey:
    message: str = MISSING_API_KEY_MESSAGE


@dataclass(frozen=True)
class RateLimited:
    """Upstream answered 429. retry_after_seconds is a best-effort hint, None when unknown."""

    retry_after_seconds: int | None = None
    message: str = "Rate limit/quota exceeded"


@dataclass(frozen=True)
class UpstreamFailure:
    """Non-2xx (other than 429), unreadable body, or transport error (status_code None)."""

    status_code: int | None = None
    message: str = ""


@dataclass(frozen=True)
class SessionNotFound:
    session_id: str
    message: str = "Chat session not found"


GenerationOutcome = Union[GenerationResult, MissingApiKey, RateLimited, UpstreamFailure]
