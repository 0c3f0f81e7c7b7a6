"""
Service layer for primary content analysis.
Handles submission, status transitions, retrieval, listing and deletion.
"""

from datetime import datetime
from typing import List, Optional

from sentinel.agents.model_client import AnalysisIntent, AnalysisModelClient
from sentinel.schemas.report import (
    AnalysisReport, AnalysisReportSummary, AnalysisType, ContentAnalysisResult, ReportStatus
)
from sentinel.services.report_store import ReportStore, generate_report_id
from sentinel.utils.errors import ReportNotFoundError, ValidationError
from sentinel.utils.logger import get_logger

logger = get_logger(__name__)

TITLE_MAX_LENGTH = 80


def derive_title(content: str, max_length: int = TITLE_MAX_LENGTH) -> str:
    """Use the first non-empty line of the content, shortened, as a title."""
    first_line = next((line.strip() for line in content.splitlines() if line.strip()), "Untitled analysis")
    if len(first_line) <= max_length:
        return first_line
    return first_line[:max_length - 3].rstrip() + "..."


class AnalysisService:
    """
    Service class for primary analysis reports.

    Creates the report in ``processing`` before calling the model so the
    submission is visible (and inspectable) even if the call never returns.
    """

    def __init__(self, store: ReportStore[AnalysisReport], model_client: AnalysisModelClient) -> None:
        """
        Initialize the analysis service.

        Args:
            store: Store holding primary analysis reports
            model_client: Client for the structured-generation model
        """
        self.store = store
        self.model_client = model_client

    async def submit(self, content: str, title: Optional[str] = None,
                     analysis_type: AnalysisType = AnalysisType.TEXT,
                     reference_material: Optional[str] = None) -> AnalysisReport:
        """
        Submit content for analysis.

        Args:
            content: Raw text; retained verbatim as ``original_content``
            title: Optional display title (derived from content if omitted)
            analysis_type: Source kind of the content
            reference_material: Optional material for the model to consider

        Returns:
            The stored report, ``completed`` or ``failed``

        Raises:
            ValidationError: If content is empty after trimming
        """
        if content is None or not content.strip():
            logger.warning("Rejected empty content submission")
            raise ValidationError("Content cannot be empty.")

        now = datetime.utcnow()
        report = self.store.create(AnalysisReport(
            id=generate_report_id("report"),
            title=(title or "").strip() or derive_title(content),
            analysis_type=analysis_type,
            status=ReportStatus.PROCESSING,
            created_at=now,
            updated_at=now,
            original_content=content,
        ))

        logger.info("Analysis submitted",
                    report_id=report.id,
                    analysis_type=analysis_type.value,
                    content_length=len(content))

        outcome = await self.model_client.analyze(
            content, AnalysisIntent.CONTENT_ANALYSIS, reference_material=reference_material
        )

        if outcome.ok:
            try:
                result = ContentAnalysisResult.model_validate(outcome.result)
            except Exception as e:
                logger.error("Analysis result failed validation", report_id=report.id, error=str(e))
                return self._mark_failed(report.id, f"Malformed analysis result: {str(e)}")

            report = self.store.update_fields(report.id, {
                "status": ReportStatus.COMPLETED,
                "analysis_result": result,
                "error_message": None,
            })
            logger.info("Analysis completed",
                        report_id=report.id,
                        scripture_entries=len(result.scriptural_analysis))
            return report

        return self._mark_failed(report.id, outcome.error)

    def get(self, report_id: str) -> AnalysisReport:
        """
        Get a report by id.

        Raises:
            ReportNotFoundError: If the report does not exist
        """
        report = self.store.get_by_id(report_id)
        if report is None:
            logger.warning("Analysis report not found", report_id=report_id)
            raise ReportNotFoundError(f"Report {report_id} not found")
        return report

    def list(self) -> List[AnalysisReportSummary]:
        """List report summaries, newest first."""
        summaries = [AnalysisReportSummary.from_report(r) for r in self.store.list()]
        logger.info("Listed analysis reports", count=len(summaries))
        return summaries

    def delete(self, report_id: str) -> None:
        """
        Delete a report.

        Raises:
            ReportNotFoundError: If the report does not exist
        """
        if not self.store.delete(report_id):
            logger.warning("Analysis report not found for deletion", report_id=report_id)
            raise ReportNotFoundError(f"Report {report_id} not found")
        logger.info("Deleted analysis report", report_id=report_id)

    def clear(self) -> int:
        """Delete every primary report and return how many were removed."""
        count = self.store.clear()
        logger.info("Cleared analysis report history", deleted=count)
        return count

    def _mark_failed(self, report_id: str, reason: Optional[str]) -> AnalysisReport:
        reason = reason or "Analysis failed for an unknown reason"
        report = self.store.update_fields(report_id, {
            "status": ReportStatus.FAILED,
            "analysis_result": None,
            "error_message": reason,
        })
        logger.error("Analysis failed", report_id=report_id, error=reason)
        return report
