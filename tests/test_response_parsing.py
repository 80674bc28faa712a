"""
Unit tests for Gemini response parsing: answer text, citation sources, retry hints.
"""

import json

import pytest

from app.agent.gemini import extract_retry_after_seconds, extract_sources, parse_result
from app.agent.results import Source


def _candidate(chunks: list, supports: list) -> dict:
    return {"groundingMetadata": {"groundingChunks": chunks, "groundingSupports": supports}}


class TestExtractSources:
    """Tests for extract_sources()."""

    def test_snippets_join_supports_per_chunk(self) -> None:
        candidate = _candidate(
            [{"web": {"uri": "u1", "title": "T1"}}, {"web": {"uri": "u2", "title": "T2"}}],
            [
                {"groundingChunkIndices": [0], "segment": {"text": "a"}},
                {"groundingChunkIndices": [0], "segment": {"text": "b"}},
                {"groundingChunkIndices": [1], "segment": {"text": "c"}},
            ],
        )
        assert extract_sources(candidate) == [
            Source(title="T1", url="u1", snippet="a b"),
            Source(title="T2", url="u2", snippet="c"),
        ]

    def test_blank_title_or_url_is_dropped(self) -> None:
        candidate = _candidate(
            [
                {"web": {"uri": "u1", "title": "  "}},
                {"web": {"uri": "", "title": "T"}},
                {"web": {"title": "T"}},
                {},
                {"web": {"uri": "u2", "title": "T2"}},
            ],
            [{"groundingChunkIndices": [0, 1, 2, 3, 4], "segment": {"text": "x"}}],
        )
        assert extract_sources(candidate) == [Source(title="T2", url="u2", snippet="x")]

    def test_duplicate_urls_merge_snippets(self) -> None:
        candidate = _candidate(
            [{"web": {"uri": "u1", "title": "First"}}, {"web": {"uri": "u1", "title": "Second"}}],
            [
                {"groundingChunkIndices": [1], "segment": {"text": "late"}},
                {"groundingChunkIndices": [0, 1], "segment": {"text": "both"}},
            ],
        )
        assert extract_sources(candidate) == [Source(title="First", url="u1", snippet="both late both")]

    def test_blank_segments_and_bad_indices_are_ignored(self) -> None:
        candidate = _candidate(
            [{"web": {"uri": "u1", "title": "T1"}}],
            [
                {"groundingChunkIndices": [0], "segment": {"text": " "}},
                {"groundingChunkIndices": [0]},
                {"groundingChunkIndices": ["0"], "segment": {"text": "str index"}},
                {"groundingChunkIndices": 0, "segment": {"text": "not a list"}},
                {"groundingChunkIndices": [0], "segment": {"text": "kept"}},
            ],
        )
        assert extract_sources(candidate) == [Source(title="T1", url="u1", snippet="kept")]

    def test_chunk_without_supports_has_empty_snippet(self) -> None:
        candidate = {"groundingMetadata": {"groundingChunks": [{"web": {"uri": "u1", "title": "T1"}}]}}
        assert extract_sources(candidate) == [Source(title="T1", url="u1", snippet="")]

    @pytest.mark.parametrize("candidate", [None, {}, {"groundingMetadata": None}, {"groundingMetadata": {}}])
    def test_missing_metadata_gives_no_sources(self, candidate) -> None:
        assert extract_sources(candidate) == []


class TestParseResult:
    """Tests for parse_result()."""

    def test_concatenates_text_parts(self) -> None:
        body = json.dumps(
            {"candidates": [{"content": {"parts": [{"text": "a"}, {"inlineData": {}}, {"text": 3}, {"text": "b"}]}}]}
        )
        result = parse_result(body)
        assert result.text == "ab"
        assert result.sources == ()

    def test_only_first_candidate_counts(self) -> None:
        body = json.dumps(
            {"candidates": [{"content": {"parts": [{"text": "first"}]}}, {"content": {"parts": [{"text": "second"}]}}]}
        )
        assert parse_result(body).text == "first"

    @pytest.mark.parametrize("body", ["{}", '{"candidates": []}', '{"candidates": [{}]}', "[]"])
    def test_no_candidates_gives_empty_text(self, body: str) -> None:
        result = parse_result(body)
        assert result.text == ""
        assert result.sources == ()

    def test_invalid_json_raises(self) -> None:
        with pytest.raises(ValueError):
            parse_result("<html>oops</html>")


class TestRetryAfter:
    """Tests for extract_retry_after_seconds()."""

    def test_retry_in_rounds_up(self) -> None:
        assert extract_retry_after_seconds("Please retry in 16.03s.") == 17

    def test_retry_in_whole_seconds(self) -> None:
        assert extract_retry_after_seconds("RETRY IN 5s") == 5

    def test_retry_delay_field(self) -> None:
        assert extract_retry_after_seconds('{"retryDelay":"16s"}') == 16
        assert extract_retry_after_seconds('{"retryDelay": "8s"}') == 8

    def test_retry_in_wins_over_retry_delay(self) -> None:
        body = '{"message": "Please retry in 2.5s.", "details": [{"retryDelay": "9s"}]}'
        assert extract_retry_after_seconds(body) == 3

    @pytest.mark.parametrize("body", [None, "", "   ", "quota exceeded", '{"retryDelay":"1.5s"}'])
    def test_no_hint(self, body) -> None:
        assert extract_retry_after_seconds(body) is None


class TestMalformedShapes:
    """Valid JSON with unexpected value types parses leniently instead of raising."""

    @pytest.mark.parametrize("content", [["x"], "x", 3, None])
    def test_non_object_content_gives_empty_text(self, content) -> None:
        body = json.dumps({"candidates": [{"content": content}]})
        assert parse_result(body).text == ""

    def test_non_object_segment_is_ignored(self) -> None:
        candidate = _candidate(
            [{"web": {"uri": "u1", "title": "T1"}}],
            [
                {"groundingChunkIndices": [0], "segment": "oops"},
                {"groundingChunkIndices": [0], "segment": ["a"]},
                {"groundingChunkIndices": [0], "segment": {"text": "kept"}},
            ],
        )
        assert extract_sources(candidate) == [Source(title="T1", url="u1", snippet="kept")]
