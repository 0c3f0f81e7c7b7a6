"""
Service layer for teaching analysis reports.
Validates submissions, runs the teaching analysis, and renders plain-text
output for download.
"""

from datetime import datetime
from typing import List, Optional

from sentinel.agents.model_client import AnalysisIntent, AnalysisModelClient
from sentinel.schemas.report import ReportStatus
from sentinel.schemas.teaching import (
    OutputFormat, TeachingAnalysisReport, TeachingAnalysisResult, TeachingReportSummary, TonePreference
)
from sentinel.services.analysis_service import derive_title
from sentinel.services.report_store import ReportStore, generate_report_id
from sentinel.utils.errors import ReportNotFoundError, SourceNotReadyError, ValidationError
from sentinel.utils.logger import get_logger
from sentinel.utils.validation import is_valid_email

logger = get_logger(__name__)

MIN_TEACHING_LENGTH = 20
MIN_RECIPIENT_LENGTH = 3


class TeachingService:
    """Service class for teaching analysis reports."""

    def __init__(self, store: ReportStore[TeachingAnalysisReport], model_client: AnalysisModelClient) -> None:
        self.store = store
        self.model_client = model_client

    async def submit(self, teaching: str, recipient_name_title: str,
                     tone_preference: TonePreference, output_formats: List[OutputFormat],
                     user_email: Optional[str] = None,
                     additional_notes: Optional[str] = None) -> TeachingAnalysisReport:
        """
        Submit a teaching for analysis.

        Returns:
            The stored report, ``completed`` or ``failed``

        Raises:
            ValidationError: If any input rule is violated
        """
        self._validate(teaching, recipient_name_title, output_formats, user_email)

        now = datetime.utcnow()
        report = self.store.create(TeachingAnalysisReport(
            id=generate_report_id("teach"),
            title=derive_title(teaching),
            teaching=teaching,
            recipient_name_title=recipient_name_title.strip(),
            tone_preference=tone_preference,
            output_formats=output_formats,
            user_email=(user_email or "").strip() or None,
            additional_notes=additional_notes,
            status=ReportStatus.PROCESSING,
            created_at=now,
            updated_at=now,
        ))

        logger.info("Teaching analysis submitted",
                    report_id=report.id,
                    tone=tone_preference.value,
                    output_formats=[f.value for f in output_formats])

        outcome = await self.model_client.analyze(
            teaching,
            AnalysisIntent.TEACHING_ANALYSIS,
            recipient_name_title=report.recipient_name_title,
            tone_preference=tone_preference.value,
            additional_notes=additional_notes,
        )

        if outcome.ok:
            try:
                result = TeachingAnalysisResult.model_validate(outcome.result)
            except Exception as e:
                logger.error("Teaching result failed validation", report_id=report.id, error=str(e))
                return self._mark_failed(report.id, f"Malformed teaching analysis: {str(e)}")

            report = self.store.update_fields(report.id, {
                "status": ReportStatus.COMPLETED,
                "analysis_result": result,
                "error_message": None,
            })
            logger.info("Teaching analysis completed", report_id=report.id)
            return report

        return self._mark_failed(report.id, outcome.error)

    def get(self, report_id: str) -> TeachingAnalysisReport:
        report = self.store.get_by_id(report_id)
        if report is None:
            logger.warning("Teaching report not found", report_id=report_id)
            raise ReportNotFoundError(f"Teaching analysis {report_id} not found")
        return report

    def list(self) -> List[TeachingReportSummary]:
        summaries = [TeachingReportSummary.from_report(r) for r in self.store.list()]
        logger.info("Listed teaching reports", count=len(summaries))
        return summaries

    def delete(self, report_id: str) -> None:
        """Delete a teaching report together with its podcast record."""
        if not self.store.delete(report_id):
            logger.warning("Teaching report not found for deletion", report_id=report_id)
            raise ReportNotFoundError(f"Teaching analysis {report_id} not found")
        logger.info("Deleted teaching report", report_id=report_id)

    def render_txt(self, report_id: str) -> str:
        """
        Render a completed teaching report as plain text.

        Raises:
            ReportNotFoundError: If the report does not exist
            SourceNotReadyError: If the report has no completed analysis
        """
        report = self.get(report_id)
        result = report.analysis_result
        if report.status != ReportStatus.COMPLETED or result is None:
            raise SourceNotReadyError(f"Teaching analysis {report_id} is not completed")

        lines = [
            "KJV Sentinel - Teaching Analysis Report",
            f"Generated: {report.created_at.strftime('%Y-%m-%d %H:%M:%S')} UTC",
            "",
            "Teaching Submitted:",
            report.teaching,
            "",
            f"Recipient: {report.recipient_name_title}",
            "",
            "--- Church History Context ---",
            result.church_history_context,
            "",
            "--- Promoters/Demonstrators ---",
        ]
        for promoter in result.promoters_demonstrators:
            lines.extend([f"  {promoter.name}:", f"  {promoter.description}", ""])
        lines.extend([
            "--- Church Council Summary ---",
            result.church_council_summary,
            "",
            f"--- Letter of Clarification (Tone: {report.tone_preference.value}) ---",
            result.letter_of_clarification,
            "",
            "--- Biblical Warnings on False Teachers (KJV 1611) ---",
            result.biblical_warnings,
            "",
        ])
        if report.additional_notes:
            lines.extend(["--- Additional User Notes ---", report.additional_notes, ""])

        return "\n".join(lines) + "\n"

    def _validate(self, teaching: str, recipient_name_title: str,
                  output_formats: List[OutputFormat], user_email: Optional[str]) -> None:
        errors = []
        if teaching is None or len(teaching.strip()) < MIN_TEACHING_LENGTH:
            errors.append(f"teaching: must be at least {MIN_TEACHING_LENGTH} characters")
        if recipient_name_title is None or len(recipient_name_title.strip()) < MIN_RECIPIENT_LENGTH:
            errors.append("recipient_name_title: recipient details are required")
        if not output_formats:
            errors.append("output_formats: at least one output format must be selected")

        needs_email = OutputFormat.EMAIL in output_formats or OutputFormat.SHARE in output_formats
        if user_email and user_email.strip() and not is_valid_email(user_email):
            errors.append("user_email: invalid email address")
        elif needs_email and not (user_email and user_email.strip()):
            errors.append("user_email: required when Email or Share output is selected")

        if errors:
            logger.warning("Rejected teaching submission", errors=errors)
            raise ValidationError(", ".join(errors))

    def _mark_failed(self, report_id: str, reason: Optional[str]) -> TeachingAnalysisReport:
        reason = reason or "Teaching analysis failed for an unknown reason"
        report = self.store.update_fields(report_id, {
            "status": ReportStatus.FAILED,
            "analysis_result": None,
            "error_message": reason,
        })
        logger.error("Teaching analysis failed", report_id=report_id, error=reason)
        return report
