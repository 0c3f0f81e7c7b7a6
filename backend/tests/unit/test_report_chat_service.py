"""
Tests for question answering over stored reports.
"""

from datetime import datetime
from typing import Any, Callable, Dict
from unittest.mock import AsyncMock, Mock

import pytest

from sentinel.agents.model_client import AnalysisIntent, AnalysisOutcome
from sentinel.schemas.chat import ChatMessage, ChatRole
from sentinel.schemas.report import AnalysisReport, ReportStatus
from sentinel.services.report_chat_service import (
    ReportChatService, build_analysis_context, build_teaching_context
)
from sentinel.services.report_store import InMemoryReportStore
from sentinel.utils.errors import AnalysisModelError, ReportNotFoundError, SourceNotReadyError, ValidationError

CONTENT = "For God so loved the world, that he gave his only begotten Son"


@pytest.fixture
def completed_report(analysis_store: InMemoryReportStore, sample_content_result: Dict[str, Any]) -> AnalysisReport:
    now = datetime.utcnow()
    return analysis_store.create(AnalysisReport(
        id="report-1", title="John 3:16", status=ReportStatus.COMPLETED, created_at=now, updated_at=now,
        original_content=CONTENT, analysis_result=sample_content_result,
        calvinism_deep_dive="No Calvinistic elements found.",
    ))


@pytest.fixture
def service(analysis_store: InMemoryReportStore, teaching_store: InMemoryReportStore,
            model_client: Mock) -> ReportChatService:
    return ReportChatService(analysis_store, teaching_store, model_client)


class TestBuildContext:

    def test_analysis_context(self, completed_report: AnalysisReport) -> None:
        context = build_analysis_context(completed_report)

        assert context.startswith(f"Content Submitted:\n{CONTENT}\n\n--- Analysis Result ---")
        assert "Summary: The passage proclaims God's love" in context
        assert "Scriptural Analysis: John 3:16: Salvation is offered" in context
        assert "Calvinism Analysis: Limited atonement:" in context
        assert "Calvinism Deep Dive: No Calvinistic elements found." in context
        assert "Fallacies:" not in context

    def test_teaching_context(self, make_completed_teaching: Callable) -> None:
        report = make_completed_teaching(additional_notes="Please be brief.")

        context = build_teaching_context(report)

        assert "Recipient for Letter: Pastor John" in context
        assert "Desired Tone: gentle" in context
        assert "Additional User Notes: Please be brief." in context
        assert ("Promoters/Demonstrators: Augustine of Hippo: Early systematizer of the doctrine.; "
                "John Calvin: Popularized it during the Reformation.") in context
        assert context.endswith("Biblical Warnings: 2 Peter 2:1 warns of false teachers among you.")


class TestReportChatService:
    """Test the ReportChatService class."""

    @pytest.mark.asyncio
    async def test_chat_about_report(self, service: ReportChatService, model_client: Mock,
                                     completed_report: AnalysisReport) -> None:
        history = [ChatMessage(role=ChatRole.USER, content="Hello"),
                   ChatMessage(role=ChatRole.MODEL, content="Ask me about the report.")]

        response = await service.chat_about_report(completed_report.id, " Which verse? ", history)

        assert response.report_id == completed_report.id
        assert response.ai_response == "The report cites John 3:16."
        model_client.analyze.assert_awaited_once_with(
            build_analysis_context(completed_report), AnalysisIntent.REPORT_CHAT,
            question="Which verse?",
            chat_history=[{"role": "user", "content": "Hello"},
                          {"role": "model", "content": "Ask me about the report."}],
        )

    @pytest.mark.asyncio
    async def test_chat_does_not_modify_report(self, service: ReportChatService,
                                               analysis_store: InMemoryReportStore,
                                               completed_report: AnalysisReport) -> None:
        await service.chat_about_report(completed_report.id, "Which verse?")

        assert analysis_store.get_by_id(completed_report.id) == completed_report

    @pytest.mark.asyncio
    async def test_chat_about_teaching(self, service: ReportChatService, model_client: Mock,
                                       make_completed_teaching: Callable) -> None:
        report = make_completed_teaching()

        response = await service.chat_about_teaching(report.id, "Who promoted it?")

        assert response.ai_response == "The report cites John 3:16."
        assert model_client.analyze.await_args.args == (build_teaching_context(report), AnalysisIntent.REPORT_CHAT)

    @pytest.mark.asyncio
    async def test_missing_report(self, service: ReportChatService) -> None:
        with pytest.raises(ReportNotFoundError):
            await service.chat_about_report("report-missing", "Why?")
        with pytest.raises(ReportNotFoundError):
            await service.chat_about_teaching("teach-missing", "Why?")

    @pytest.mark.asyncio
    async def test_processing_report_not_ready(self, service: ReportChatService, model_client: Mock,
                                               analysis_store: InMemoryReportStore) -> None:
        now = datetime.utcnow()
        analysis_store.create(AnalysisReport(id="report-2", title="Pending", created_at=now, updated_at=now,
                                             original_content=CONTENT))

        with pytest.raises(SourceNotReadyError):
            await service.chat_about_report("report-2", "Why?")

        model_client.analyze.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_teaching_not_ready(self, service: ReportChatService,
                                             make_completed_teaching: Callable) -> None:
        report = make_completed_teaching(status="failed", analysis_result=None, error_message="refused")

        with pytest.raises(SourceNotReadyError):
            await service.chat_about_teaching(report.id, "Why?")

    @pytest.mark.asyncio
    async def test_blank_question(self, service: ReportChatService, completed_report: AnalysisReport) -> None:
        with pytest.raises(ValidationError):
            await service.chat_about_report(completed_report.id, "   ")

    @pytest.mark.asyncio
    async def test_model_error(self, service: ReportChatService, model_client: Mock,
                               completed_report: AnalysisReport) -> None:
        model_client.analyze = AsyncMock(return_value=AnalysisOutcome(error="overloaded"))

        with pytest.raises(AnalysisModelError, match="overloaded"):
            await service.chat_about_report(completed_report.id, "Why?")

    @pytest.mark.asyncio
    async def test_empty_answer(self, service: ReportChatService, model_client: Mock,
                                completed_report: AnalysisReport) -> None:
        model_client.analyze = AsyncMock(return_value=AnalysisOutcome(result={"ai_response": ""}))

        with pytest.raises(AnalysisModelError, match="no answer"):
            await service.chat_about_report(completed_report.id, "Why?")
