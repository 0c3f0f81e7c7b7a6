"""
API routes for teaching analysis reports, their text export and podcast.
"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse, PlainTextResponse

from sentinel.dependencies import get_podcast_pipeline, get_report_chat_service, get_teaching_service
from sentinel.schemas.chat import ChatRequest, ChatResponse
from sentinel.schemas.podcast import (
    ExportPodcastRequest, GeneratePodcastRequest, PodcastData, PodcastOperationResult
)
from sentinel.schemas.teaching import SubmitTeachingRequest, TeachingAnalysisReport, TeachingReportListResponse
from sentinel.services.podcast_pipeline import PodcastPipeline
from sentinel.services.report_chat_service import ReportChatService
from sentinel.services.teaching_service import TeachingService
from sentinel.utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/api/teaching-reports", tags=["teaching-reports"])


def _operation_response(result: PodcastOperationResult) -> JSONResponse:
    # Collaborator failures were recorded on the podcast; surface them as 502
    status_code = status.HTTP_200_OK if result.success else status.HTTP_502_BAD_GATEWAY
    return JSONResponse(status_code=status_code, content=result.model_dump(mode="json"))


@router.post("", response_model=TeachingAnalysisReport, status_code=status.HTTP_201_CREATED)
async def submit_teaching(
    request: SubmitTeachingRequest,
    service: TeachingService = Depends(get_teaching_service)
) -> TeachingAnalysisReport:
    """Submit a teaching for analysis and a letter of clarification."""
    logger.info("Submit teaching request", tone=request.tone_preference.value,
                output_formats=[f.value for f in request.output_formats])

    return await service.submit(
        request.teaching,
        request.recipient_name_title,
        request.tone_preference,
        request.output_formats,
        user_email=request.user_email,
        additional_notes=request.additional_notes,
    )


@router.get("", response_model=TeachingReportListResponse)
def list_teaching_reports(service: TeachingService = Depends(get_teaching_service)) -> TeachingReportListResponse:
    reports = service.list()
    return TeachingReportListResponse(reports=reports, total=len(reports))


@router.get("/{report_id}", response_model=TeachingAnalysisReport)
def get_teaching_report(report_id: str,
                        service: TeachingService = Depends(get_teaching_service)) -> TeachingAnalysisReport:
    return service.get(report_id)


@router.delete("/{report_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_teaching_report(report_id: str, service: TeachingService = Depends(get_teaching_service)) -> None:
    service.delete(report_id)


@router.get("/{report_id}/txt", response_class=PlainTextResponse)
def download_teaching_report_txt(report_id: str,
                                 service: TeachingService = Depends(get_teaching_service)) -> PlainTextResponse:
    """Download the report as a plain-text file."""
    text = service.render_txt(report_id)
    return PlainTextResponse(
        text,
        headers={"Content-Disposition": f'attachment; filename="kjv-sentinel-teaching-{report_id}.txt"'},
    )


@router.post("/{report_id}/chat", response_model=ChatResponse)
async def chat_about_teaching_report(
    report_id: str,
    request: ChatRequest,
    service: ReportChatService = Depends(get_report_chat_service)
) -> ChatResponse:
    logger.info("Teaching report chat request", report_id=report_id, history_turns=len(request.chat_history))
    return await service.chat_about_teaching(report_id, request.question, request.chat_history)


@router.get("/{report_id}/podcast", response_model=PodcastData)
def get_podcast(report_id: str, pipeline: PodcastPipeline = Depends(get_podcast_pipeline)) -> PodcastData:
    """Current podcast state; poll this after a disconnect to recover the outcome."""
    return pipeline.get_podcast(report_id)


@router.post("/{report_id}/podcast/generate", response_model=PodcastOperationResult)
async def generate_podcast(
    report_id: str,
    request: GeneratePodcastRequest,
    pipeline: PodcastPipeline = Depends(get_podcast_pipeline)
) -> JSONResponse:
    logger.info("Generate podcast request", report_id=report_id,
                content_scope=[s.value for s in request.content_scope])

    result = await pipeline.generate(report_id, request.content_scope, request.treatment_type)
    return _operation_response(result)


@router.post("/{report_id}/podcast/export", response_model=PodcastOperationResult)
async def export_podcast(
    report_id: str,
    request: ExportPodcastRequest,
    pipeline: PodcastPipeline = Depends(get_podcast_pipeline)
) -> JSONResponse:
    logger.info("Export podcast request", report_id=report_id,
                export_options=[o.value for o in request.export_options])

    result = await pipeline.export(report_id, request.export_options, request.email)
    return _operation_response(result)
