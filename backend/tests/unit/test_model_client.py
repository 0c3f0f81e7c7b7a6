"""
Tests for AnalysisModelClient outcome folding.
"""

import asyncio
from typing import Any, Dict
from unittest.mock import AsyncMock, Mock

import pytest

from sentinel.agents.base_agent import AgentProcessingError
from sentinel.agents.model_client import AnalysisIntent, AnalysisModelClient, AnalysisOutcome


def _client_with(agent: Mock, timeout: float = 1.0) -> AnalysisModelClient:
    return AnalysisModelClient(agents={AnalysisIntent.CONTENT_ANALYSIS: agent}, timeout_seconds=timeout)


def _agent(**process_kwargs: Any) -> Mock:
    agent = Mock()
    agent.process = AsyncMock(**process_kwargs)
    return agent


class TestAnalysisModelClient:

    @pytest.mark.asyncio
    async def test_success(self, sample_content_result: Dict[str, Any]) -> None:
        agent = _agent(return_value=sample_content_result)
        client = _client_with(agent)

        outcome = await client.analyze("content", AnalysisIntent.CONTENT_ANALYSIS, reference_material="ref")

        assert outcome.ok
        assert outcome.result == sample_content_result
        agent.process.assert_awaited_once_with("content", reference_material="ref")

    @pytest.mark.asyncio
    async def test_error_payload_is_failure(self) -> None:
        client = _client_with(_agent(return_value={"error": "not religious content"}))

        outcome = await client.analyze("content", AnalysisIntent.CONTENT_ANALYSIS)

        assert not outcome.ok
        assert outcome.error == "not religious content"
        assert outcome.result is None

    @pytest.mark.asyncio
    async def test_empty_payload_is_failure(self) -> None:
        client = _client_with(_agent(return_value={}))

        outcome = await client.analyze("content", AnalysisIntent.CONTENT_ANALYSIS)

        assert not outcome.ok
        assert "empty payload" in outcome.error

    @pytest.mark.asyncio
    async def test_agent_error_is_failure(self) -> None:
        client = _client_with(_agent(side_effect=AgentProcessingError("Claude API error: boom")))

        outcome = await client.analyze("content", AnalysisIntent.CONTENT_ANALYSIS)

        assert outcome == AnalysisOutcome(error="Claude API error: boom")

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_failure(self) -> None:
        client = _client_with(_agent(side_effect=ConnectionError("reset by peer")))

        outcome = await client.analyze("content", AnalysisIntent.CONTENT_ANALYSIS)

        assert not outcome.ok
        assert "reset by peer" in outcome.error

    @pytest.mark.asyncio
    async def test_timeout_is_failure(self) -> None:
        async def slow(content: str, **kwargs: Any) -> Dict[str, Any]:
            await asyncio.sleep(1)
            return {"summary": "late"}

        agent = Mock()
        agent.process = slow
        client = _client_with(agent, timeout=0.01)

        outcome = await client.analyze("content", AnalysisIntent.CONTENT_ANALYSIS)

        assert not outcome.ok
        assert "timed out" in outcome.error

    @pytest.mark.asyncio
    async def test_unregistered_intent(self) -> None:
        client = _client_with(_agent(return_value={"summary": "x"}))

        outcome = await client.analyze("content", AnalysisIntent.CALVINISM_DEEP_DIVE)

        assert not outcome.ok
        assert "calvinism_deep_dive" in outcome.error

    def test_default_agents_share_client(self, mock_anthropic_client: Mock) -> None:
        client = AnalysisModelClient(client=mock_anthropic_client)

        assert set(client.agents) == set(AnalysisIntent)
        assert all(agent.client is mock_anthropic_client for agent in client.agents.values())
