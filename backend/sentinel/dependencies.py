"""
FastAPI dependency providers.

Each provider returns a process-wide instance so the in-memory stores and the
pipeline's per-report locks are shared by every request. Tests swap them out
through ``app.dependency_overrides``.
"""

from functools import lru_cache

from fastapi import Depends

from sentinel.agents.model_client import AnalysisModelClient
from sentinel.config import get_settings
from sentinel.db.database import get_session_factory
from sentinel.models.report import AnalysisReportRecord, TeachingReportRecord
from sentinel.schemas.report import AnalysisReport
from sentinel.schemas.teaching import TeachingAnalysisReport
from sentinel.services.analysis_service import AnalysisService
from sentinel.services.deep_dive_service import DeepDiveService
from sentinel.services.export_service import ExportService
from sentinel.services.podcast_pipeline import PodcastPipeline
from sentinel.services.report_chat_service import ReportChatService
from sentinel.services.report_store import InMemoryReportStore, ReportStore, SqlReportStore
from sentinel.services.synthesis_service import SynthesisService
from sentinel.services.teaching_service import TeachingService


def _use_database() -> bool:
    return get_settings().report_store_backend.lower() == "database"


@lru_cache()
def get_analysis_store() -> ReportStore[AnalysisReport]:
    if _use_database():
        return SqlReportStore(AnalysisReport, AnalysisReportRecord, get_session_factory())
    return InMemoryReportStore(AnalysisReport)


@lru_cache()
def get_teaching_store() -> ReportStore[TeachingAnalysisReport]:
    if _use_database():
        return SqlReportStore(TeachingAnalysisReport, TeachingReportRecord, get_session_factory())
    return InMemoryReportStore(TeachingAnalysisReport)


@lru_cache()
def get_model_client() -> AnalysisModelClient:
    return AnalysisModelClient()


@lru_cache()
def get_synthesis_service() -> SynthesisService:
    return SynthesisService()


@lru_cache()
def get_export_service() -> ExportService:
    return ExportService()


@lru_cache()
def get_podcast_pipeline() -> PodcastPipeline:
    return PodcastPipeline(get_teaching_store(), get_synthesis_service(), get_export_service())


def get_analysis_service(
    store: ReportStore[AnalysisReport] = Depends(get_analysis_store),
    model_client: AnalysisModelClient = Depends(get_model_client),
) -> AnalysisService:
    return AnalysisService(store, model_client)


def get_deep_dive_service(
    store: ReportStore[AnalysisReport] = Depends(get_analysis_store),
    model_client: AnalysisModelClient = Depends(get_model_client),
) -> DeepDiveService:
    return DeepDiveService(store, model_client)


def get_teaching_service(
    store: ReportStore[TeachingAnalysisReport] = Depends(get_teaching_store),
    model_client: AnalysisModelClient = Depends(get_model_client),
) -> TeachingService:
    return TeachingService(store, model_client)


def get_report_chat_service(
    analysis_store: ReportStore[AnalysisReport] = Depends(get_analysis_store),
    teaching_store: ReportStore[TeachingAnalysisReport] = Depends(get_teaching_store),
    model_client: AnalysisModelClient = Depends(get_model_client),
) -> ReportChatService:
    return ReportChatService(analysis_store, teaching_store, model_client)
