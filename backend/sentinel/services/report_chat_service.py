"""
Question answering over a stored report.

The model only sees a plain-text rendering of the report, so answers stay
grounded in what the analysis actually says.
"""

from typing import List, Optional

from sentinel.agents.model_client import AnalysisIntent, AnalysisModelClient
from sentinel.schemas.chat import ChatMessage, ChatResponse
from sentinel.schemas.report import AnalysisReport, ReportStatus
from sentinel.schemas.teaching import TeachingAnalysisReport
from sentinel.services.report_store import ReportStore
from sentinel.utils.errors import AnalysisModelError, ReportNotFoundError, SourceNotReadyError, ValidationError
from sentinel.utils.logger import get_logger

logger = get_logger(__name__)


def build_analysis_context(report: AnalysisReport) -> str:
    result = report.analysis_result
    lines = []
    if report.original_content:
        lines += ["Content Submitted:", report.original_content, ""]
    lines += ["--- Analysis Result ---", f"Summary: {result.summary}"]
    if result.scriptural_analysis:
        lines.append("Scriptural Analysis: " + "; ".join(
            f"{entry.verse}: {entry.analysis}" for entry in result.scriptural_analysis
        ))
    if result.historical_context:
        lines.append(f"Historical Context: {result.historical_context}")
    if result.fallacies:
        lines.append("Fallacies: " + "; ".join(f"{f.type}: {f.description}" for f in result.fallacies))
    if result.manipulative_tactics:
        lines.append("Manipulative Tactics: " + "; ".join(
            f"{t.technique}: {t.description}" for t in result.manipulative_tactics
        ))
    if result.identified_isms:
        lines.append("Identified Isms: " + "; ".join(f"{i.ism}: {i.description}" for i in result.identified_isms))
    if result.calvinism_analysis:
        lines.append("Calvinism Analysis: " + "; ".join(
            f"{c.element}: {c.description}" for c in result.calvinism_analysis
        ))
    if report.calvinism_deep_dive:
        lines.append(f"Calvinism Deep Dive: {report.calvinism_deep_dive}")
    return "\n".join(lines).strip()


def build_teaching_context(report: TeachingAnalysisReport) -> str:
    result = report.analysis_result
    lines = [
        "Teaching Submitted:",
        report.teaching,
        "",
        f"Recipient for Letter: {report.recipient_name_title}",
        f"Desired Tone: {report.tone_preference.value}",
    ]
    if report.additional_notes:
        lines.append(f"Additional User Notes: {report.additional_notes}")
    lines += [
        "--- Analysis Result ---",
        f"Church History Context: {result.church_history_context}",
        "Promoters/Demonstrators: " + "; ".join(
            f"{p.name}: {p.description}" for p in result.promoters_demonstrators
        ),
        f"Church Council Summary: {result.church_council_summary}",
        f"Letter of Clarification: {result.letter_of_clarification}",
        f"Biblical Warnings: {result.biblical_warnings}",
    ]
    return "\n".join(lines).strip()


class ReportChatService:
    """Answers questions about primary and teaching reports."""

    def __init__(self, analysis_store: ReportStore[AnalysisReport],
                 teaching_store: ReportStore[TeachingAnalysisReport],
                 model_client: AnalysisModelClient) -> None:
        self.analysis_store = analysis_store
        self.teaching_store = teaching_store
        self.model_client = model_client

    async def chat_about_report(self, report_id: str, question: str,
                                chat_history: Optional[List[ChatMessage]] = None) -> ChatResponse:
        """
        Answer a question about a primary report.

        Raises:
            ReportNotFoundError: If the report does not exist
            SourceNotReadyError: If the report has no completed analysis
            AnalysisModelError: If the model call fails
        """
        report = self.analysis_store.get_by_id(report_id)
        if report is None:
            raise ReportNotFoundError(f"Report {report_id} not found")
        self._check_ready(report_id, report.status, report.analysis_result)
        return await self._ask(report_id, build_analysis_context(report), question, chat_history)

    async def chat_about_teaching(self, report_id: str, question: str,
                                  chat_history: Optional[List[ChatMessage]] = None) -> ChatResponse:
        """Answer a question about a teaching report; raises as ``chat_about_report``."""
        report = self.teaching_store.get_by_id(report_id)
        if report is None:
            raise ReportNotFoundError(f"Teaching analysis {report_id} not found")
        self._check_ready(report_id, report.status, report.analysis_result)
        return await self._ask(report_id, build_teaching_context(report), question, chat_history)

    def _check_ready(self, report_id: str, status: ReportStatus, result: object) -> None:
        if status != ReportStatus.COMPLETED or result is None:
            logger.warning("Chat requested on unfinished report", report_id=report_id, status=status.value)
            raise SourceNotReadyError(f"Report {report_id} has no completed analysis to discuss")

    async def _ask(self, report_id: str, context: str, question: str,
                   chat_history: Optional[List[ChatMessage]]) -> ChatResponse:
        if not question or not question.strip():
            raise ValidationError("Question cannot be empty")

        history = [{"role": m.role.value, "content": m.content} for m in chat_history or []]
        logger.info("Report chat started", report_id=report_id, question_length=len(question),
                    history_turns=len(history))

        outcome = await self.model_client.analyze(context, AnalysisIntent.REPORT_CHAT,
                                                  question=question.strip(), chat_history=history)
        if not outcome.ok:
            logger.error("Report chat failed", report_id=report_id, error=outcome.error)
            raise AnalysisModelError(f"Report chat failed: {outcome.error}")

        answer = str(outcome.result.get("ai_response") or "").strip()
        if not answer:
            raise AnalysisModelError("Report chat completed but no answer returned.")

        logger.info("Report chat completed", report_id=report_id, response_length=len(answer))
        return ChatResponse(report_id=report_id, ai_response=answer)
