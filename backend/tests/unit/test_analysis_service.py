"""
Tests for the primary analysis service.
"""

from typing import Any, Dict
from unittest.mock import AsyncMock, Mock

import pytest

from sentinel.agents.model_client import AnalysisIntent, AnalysisOutcome
from sentinel.schemas.report import AnalysisType, ReportStatus
from sentinel.services.analysis_service import AnalysisService, derive_title
from sentinel.services.report_store import InMemoryReportStore
from sentinel.utils.errors import ReportNotFoundError, ValidationError

CONTENT = "For God so loved the world, that he gave his only begotten Son"


class TestAnalysisService:
    """Test the AnalysisService class."""

    @pytest.fixture
    def service(self, analysis_store: InMemoryReportStore, model_client: Mock) -> AnalysisService:
        return AnalysisService(analysis_store, model_client)

    @pytest.mark.asyncio
    async def test_submit_success(self, service: AnalysisService, model_client: Mock,
                                  sample_content_result: Dict[str, Any]) -> None:
        report = await service.submit(CONTENT, reference_material="notes")

        assert report.status == ReportStatus.COMPLETED
        assert report.analysis_result.summary == sample_content_result["summary"]
        assert report.original_content == CONTENT
        assert report.title == CONTENT
        assert report.error_message is None
        model_client.analyze.assert_awaited_once_with(
            CONTENT, AnalysisIntent.CONTENT_ANALYSIS, reference_material="notes"
        )
        assert service.get(report.id) == report

    @pytest.mark.asyncio
    async def test_submit_keeps_title_and_type(self, service: AnalysisService) -> None:
        report = await service.submit(CONTENT, title="  Sunday sermon ", analysis_type=AnalysisType.FILE_AUDIO)

        assert report.title == "Sunday sermon"
        assert report.analysis_type == AnalysisType.FILE_AUDIO

    @pytest.mark.asyncio
    async def test_submit_empty_content_rejected(self, service: AnalysisService, model_client: Mock,
                                                 analysis_store: InMemoryReportStore) -> None:
        with pytest.raises(ValidationError, match="Content cannot be empty"):
            await service.submit("   \n ")

        model_client.analyze.assert_not_awaited()
        assert analysis_store.list() == []

    @pytest.mark.asyncio
    async def test_submit_model_error_marks_failed(self, service: AnalysisService, model_client: Mock) -> None:
        model_client.analyze = AsyncMock(return_value=AnalysisOutcome(error="Claude API error: overloaded"))

        report = await service.submit(CONTENT)

        assert report.status == ReportStatus.FAILED
        assert report.analysis_result is None
        assert report.error_message == "Claude API error: overloaded"
        assert report.original_content == CONTENT

    @pytest.mark.asyncio
    async def test_submit_malformed_result_marks_failed(self, service: AnalysisService, model_client: Mock) -> None:
        model_client.analyze = AsyncMock(return_value=AnalysisOutcome(result={"summary": ""}))

        report = await service.submit(CONTENT)

        assert report.status == ReportStatus.FAILED
        assert report.analysis_result is None
        assert "Malformed analysis result" in report.error_message

    @pytest.mark.asyncio
    async def test_list_newest_first(self, service: AnalysisService) -> None:
        first = await service.submit("First sermon text")
        second = await service.submit("Second sermon text")

        summaries = service.list()

        assert {s.id for s in summaries} == {first.id, second.id}
        assert summaries[0].created_at >= summaries[1].created_at
        assert all(s.has_original_content for s in summaries)
        assert not any(s.has_deep_dive for s in summaries)

    def test_get_missing(self, service: AnalysisService) -> None:
        with pytest.raises(ReportNotFoundError):
            service.get("report-missing")

    @pytest.mark.asyncio
    async def test_delete(self, service: AnalysisService) -> None:
        report = await service.submit(CONTENT)

        service.delete(report.id)

        with pytest.raises(ReportNotFoundError):
            service.get(report.id)
        with pytest.raises(ReportNotFoundError):
            service.delete(report.id)

    @pytest.mark.asyncio
    async def test_clear(self, service: AnalysisService) -> None:
        await service.submit("First sermon text")
        await service.submit("Second sermon text")

        assert service.clear() == 2
        assert service.list() == []


class TestDeriveTitle:

    def test_first_non_empty_line(self) -> None:
        assert derive_title("\n\n  Grace alone  \nsecond line") == "Grace alone"

    def test_long_line_shortened(self) -> None:
        title = derive_title("word " * 50)

        assert len(title) <= 80
        assert title.endswith("...")
