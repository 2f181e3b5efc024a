"""Tests for mock streaming functionality."""

import pytest
from services.errors import ProviderError
from services.mock_streams import (
    MOCK_REVIEW_CHUNKS,
    is_mock_mode,
    mock_review_stream,
    mock_error_stream,
)


class TestMockMode:
    """Test suite for mock mode detection."""

    def test_mock_mode_disabled_by_default(self, monkeypatch):
        """Mock mode should be disabled by default."""
        monkeypatch.delenv("MOCK_LLM", raising=False)
        assert is_mock_mode() is False

    @pytest.mark.parametrize("value", ["1", "true", "yes", "TRUE"])
    def test_mock_mode_enabled(self, monkeypatch, value):
        monkeypatch.setenv("MOCK_LLM", value)
        assert is_mock_mode() is True

    def test_mock_mode_disabled_with_0(self, monkeypatch):
        """Mock mode should be disabled with MOCK_LLM=0."""
        monkeypatch.setenv("MOCK_LLM", "0")
        assert is_mock_mode() is False


class TestMockReviewStream:
    """Test suite for the canned review stream."""

    @pytest.mark.asyncio
    async def test_emits_all_chunks_in_order(self):
        chunks = [chunk async for chunk in mock_review_stream(delay_ms=1)]
        assert chunks == MOCK_REVIEW_CHUNKS

    @pytest.mark.asyncio
    async def test_custom_chunks(self):
        chunks = [chunk async for chunk in mock_review_stream(["a", "b"], delay_ms=0)]
        assert chunks == ["a", "b"]


class TestMockErrorStream:
    """Test suite for the failing stream."""

    @pytest.mark.asyncio
    async def test_raises_after_partial_output(self):
        received = []
        with pytest.raises(ProviderError, match="boom"):
            async for chunk in mock_error_stream("boom", chunks_before_error=3, delay_ms=0):
                received.append(chunk)

        assert received == MOCK_REVIEW_CHUNKS[:3]
