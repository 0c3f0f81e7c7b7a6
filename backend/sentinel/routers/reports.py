"""
API routes for primary content analysis reports and their deep dives.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, status

from sentinel.dependencies import get_analysis_service, get_deep_dive_service, get_report_chat_service
from sentinel.schemas.chat import ChatRequest, ChatResponse
from sentinel.schemas.report import (
    AnalysisReport, AnalysisReportListResponse, ClearReportsResponse, DeepDiveResponse, SubmitContentRequest
)
from sentinel.services.analysis_service import AnalysisService
from sentinel.services.deep_dive_service import DeepDiveService
from sentinel.services.report_chat_service import ReportChatService
from sentinel.utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/api/reports", tags=["reports"])


@router.post("", response_model=AnalysisReport, status_code=status.HTTP_201_CREATED)
async def submit_content(
    request: SubmitContentRequest,
    service: AnalysisService = Depends(get_analysis_service)
) -> AnalysisReport:
    """
    Submit content for analysis.

    The analysis runs inline; the returned report is already ``completed``
    or ``failed`` (with ``error_message``).
    """
    logger.info("Submit content request", analysis_type=request.analysis_type.value,
                content_length=len(request.content))

    return await service.submit(
        request.content,
        title=request.title,
        analysis_type=request.analysis_type,
        reference_material=request.reference_material,
    )


@router.get("", response_model=AnalysisReportListResponse)
def list_reports(service: AnalysisService = Depends(get_analysis_service)) -> AnalysisReportListResponse:
    """List report summaries, newest first."""
    reports = service.list()
    return AnalysisReportListResponse(reports=reports, total=len(reports))


@router.delete("", response_model=ClearReportsResponse)
def clear_reports(service: AnalysisService = Depends(get_analysis_service)) -> ClearReportsResponse:
    """Delete the entire report history."""
    deleted = service.clear()
    return ClearReportsResponse(deleted=deleted, message=f"Deleted {deleted} report(s).")


@router.get("/{report_id}", response_model=AnalysisReport)
def get_report(report_id: str, service: AnalysisService = Depends(get_analysis_service)) -> AnalysisReport:
    return service.get(report_id)


@router.delete("/{report_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_report(report_id: str, service: AnalysisService = Depends(get_analysis_service)) -> None:
    service.delete(report_id)


@router.post("/{report_id}/deep-dive", response_model=DeepDiveResponse)
async def request_deep_dive(
    report_id: str,
    background_tasks: BackgroundTasks,
    service: DeepDiveService = Depends(get_deep_dive_service)
) -> DeepDiveResponse:
    """
    Run a Calvinism deep dive on the report's original content.

    The analysis is returned immediately; saving it onto the report runs
    after the response has been sent.
    """
    logger.info("Deep dive request", report_id=report_id)

    response = await service.request_deep_dive(report_id, persist=False)
    background_tasks.add_task(service.persist_deep_dive, report_id, response.analysis, response.generated_at)
    return response


@router.post("/{report_id}/chat", response_model=ChatResponse)
async def chat_about_report(
    report_id: str,
    request: ChatRequest,
    service: ReportChatService = Depends(get_report_chat_service)
) -> ChatResponse:
    """Answer a question using only the contents of a completed report."""
    logger.info("Report chat request", report_id=report_id, history_turns=len(request.chat_history))
    return await service.chat_about_report(report_id, request.question, request.chat_history)
