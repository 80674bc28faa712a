"""Schemas for the search and follow-up endpoints. Wire names are camelCase for the frontend."""

from pydantic import BaseModel, ConfigDict, Field


class SourceItem(BaseModel):
    """One cited web page."""

    title: str = Field(..., description="Page title reported by Google Search grounding.")
    url: str = Field(..., description="Page URL.")
    snippet: str = Field("", description="Answer segments backed by this page, space-joined.")


class SearchResponse(BaseModel):
    """Response for GET /api/search."""

    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(..., alias="sessionId", description="Pass back to /api/follow-up to continue the chat.")
    summary: str = Field(..., description="Answer rendered as HTML.")
    sources: list[SourceItem] = Field(default_factory=list, description="Cited pages, unique by url.")


class FollowUpRequest(BaseModel):
    """Request body for POST /api/follow-up. History is stored server-side by sessionId."""

    model_config = ConfigDict(populate_by_name=True)

    session_id: str | None = Field(None, alias="sessionId", description="Session ID returned by /api/search.")
    query: str | None = Field(None, description="Follow-up question.")


class FollowUpResponse(BaseModel):
    """Response for POST /api/follow-up."""

    summary: str = Field(..., description="Answer rendered as HTML.")
    sources: list[SourceItem] = Field(default_factory=list, description="Cited pages, unique by url.")
