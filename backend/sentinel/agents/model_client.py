"""
Single entry point to the structured-generation model.

Routes each request to the agent for its intent and folds every kind of
failure (transport, parsing, model-declared error payload) into one
``AnalysisOutcome`` so callers cannot mistake an error for an empty success.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from anthropic import AsyncAnthropic

from sentinel.agents.base_agent import AgentProcessingError, BaseAgent
from sentinel.agents.calvinism_deep_dive import CalvinismDeepDiveAgent
from sentinel.agents.content_analyzer import ContentAnalyzerAgent
from sentinel.agents.report_chat import ReportChatAgent
from sentinel.agents.teaching_analyzer import TeachingAnalyzerAgent
from sentinel.config import get_settings
from sentinel.utils.logger import get_logger

logger = get_logger(__name__)


class AnalysisIntent(str, Enum):
    CONTENT_ANALYSIS = "content_analysis"
    TEACHING_ANALYSIS = "teaching_analysis"
    CALVINISM_DEEP_DIVE = "calvinism_deep_dive"
    REPORT_CHAT = "report_chat"


@dataclass
class AnalysisOutcome:
    """Either a structured result or an error message, never both."""
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.result is not None


class AnalysisModelClient:
    """Stateless request/response wrapper around the Claude agents."""

    def __init__(self, agents: Optional[Dict[AnalysisIntent, BaseAgent]] = None,
                 client: Optional[AsyncAnthropic] = None,
                 timeout_seconds: Optional[float] = None) -> None:
        if agents is None:
            agents = {
                AnalysisIntent.CONTENT_ANALYSIS: ContentAnalyzerAgent(client),
                AnalysisIntent.TEACHING_ANALYSIS: TeachingAnalyzerAgent(client),
                AnalysisIntent.CALVINISM_DEEP_DIVE: CalvinismDeepDiveAgent(client),
                AnalysisIntent.REPORT_CHAT: ReportChatAgent(client),
            }
        self.agents = agents
        self.timeout_seconds = timeout_seconds or get_settings().collaborator_timeout_seconds

    async def analyze(self, content: str, intent: AnalysisIntent, **options: Any) -> AnalysisOutcome:
        """
        Run one analysis.

        Args:
            content: Text to analyze
            intent: Which analysis to perform
            **options: Intent-specific parameters forwarded to the agent

        Returns:
            AnalysisOutcome carrying the structured result or the failure reason
        """
        agent = self.agents.get(intent)
        if agent is None:
            return AnalysisOutcome(error=f"No agent registered for intent '{intent.value}'")

        try:
            payload = await asyncio.wait_for(agent.process(content, **options), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.error("Analysis model timed out", intent=intent.value, timeout_seconds=self.timeout_seconds)
            return AnalysisOutcome(error=f"Analysis timed out after {self.timeout_seconds:g} seconds")
        except AgentProcessingError as e:
            logger.error("Analysis model call failed", intent=intent.value, error=str(e))
            return AnalysisOutcome(error=str(e))
        except Exception as e:
            logger.error("Unexpected analysis model failure", intent=intent.value,
                         error=str(e), error_type=type(e).__name__)
            return AnalysisOutcome(error=f"Unexpected analysis failure: {str(e)}")

        if not isinstance(payload, dict) or not payload:
            return AnalysisOutcome(error="Analysis model returned an empty payload")
        if payload.get("error"):
            logger.warning("Analysis model returned an error payload", intent=intent.value, error=payload["error"])
            return AnalysisOutcome(error=str(payload["error"]))

        return AnalysisOutcome(result=payload)
