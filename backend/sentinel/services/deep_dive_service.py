"""
Deep-dive analysis of a primary report's retained content.

The result is handed back to the caller as soon as the model returns; saving
it onto the report is a separate step whose failure is logged but never
invalidates the analysis already delivered.
"""

from datetime import datetime

from sentinel.agents.model_client import AnalysisIntent, AnalysisModelClient
from sentinel.schemas.report import AnalysisReport, DeepDiveResponse
from sentinel.services.report_store import ReportStore
from sentinel.utils.errors import AnalysisModelError, MissingOriginalContentError, SourceNotFoundError
from sentinel.utils.logger import get_logger

logger = get_logger(__name__)


class DeepDiveService:
    """Runs the Calvinism deep dive and appends it to the originating report."""

    def __init__(self, store: ReportStore[AnalysisReport], model_client: AnalysisModelClient) -> None:
        self.store = store
        self.model_client = model_client

    async def request_deep_dive(self, report_id: str, persist: bool = True) -> DeepDiveResponse:
        """
        Run a deep dive on the report's original content.

        Args:
            report_id: Id of the primary report
            persist: Save the result onto the report before returning. Pass
                False when the caller schedules ``persist_deep_dive`` itself.

        Returns:
            The freshly generated deep-dive analysis

        Raises:
            SourceNotFoundError: If the report does not exist
            MissingOriginalContentError: If the report retained no content
            AnalysisModelError: If the model call fails or returns an error payload
        """
        report = self.store.get_by_id(report_id)
        if report is None:
            logger.warning("Deep dive source not found", report_id=report_id)
            raise SourceNotFoundError(f"Report {report_id} not found")
        if not report.original_content or not report.original_content.strip():
            logger.warning("Deep dive requested without original content", report_id=report_id)
            raise MissingOriginalContentError(
                "Original content not found for this report. Cannot perform deep dive."
            )

        logger.info("Deep dive started", report_id=report_id,
                    content_length=len(report.original_content))

        outcome = await self.model_client.analyze(report.original_content, AnalysisIntent.CALVINISM_DEEP_DIVE)
        if not outcome.ok:
            logger.error("Deep dive failed", report_id=report_id, error=outcome.error)
            raise AnalysisModelError(f"Deep dive failed: {outcome.error}")

        analysis = str(outcome.result.get("analysis") or "").strip()
        if not analysis:
            raise AnalysisModelError("Deep dive completed but no analysis returned.")

        response = DeepDiveResponse(report_id=report_id, analysis=analysis, generated_at=datetime.utcnow())
        logger.info("Deep dive completed", report_id=report_id, analysis_length=len(analysis))

        if persist:
            self.persist_deep_dive(report_id, analysis, response.generated_at)
        return response

    def persist_deep_dive(self, report_id: str, analysis: str, generated_at: datetime = None) -> bool:
        """
        Save a deep-dive result onto its report, last write wins.

        Returns:
            True if the write landed, False if it failed (the failure is logged)
        """
        try:
            self.store.update_fields(report_id, {
                "calvinism_deep_dive": analysis,
                "deep_dive_at": generated_at or datetime.utcnow(),
            })
        except Exception as e:
            logger.error("Failed to persist deep dive", report_id=report_id,
                         error=str(e), error_type=type(e).__name__)
            return False

        logger.info("Deep dive persisted", report_id=report_id)
        return True
