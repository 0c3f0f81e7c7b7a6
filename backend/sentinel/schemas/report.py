"""
Pydantic schemas for primary content-analysis reports.
"""

from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field, model_validator


class AnalysisType(str, Enum):
    TEXT = "text"
    FILE_AUDIO = "file_audio"
    FILE_VIDEO = "file_video"
    FILE_DOCUMENT = "file_document"


class ReportStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ScripturalAnalysisEntry(BaseModel):
    verse: str
    analysis: str


class FallacyEntry(BaseModel):
    type: str
    description: str


class ManipulativeTacticEntry(BaseModel):
    technique: str
    description: str


class IsmEntry(BaseModel):
    ism: str
    description: str
    evidence: str


class CalvinismEntry(BaseModel):
    element: str
    description: str
    evidence: str
    infiltration_tactic: Optional[str] = None


class BiblicalRemonstrance(BaseModel):
    """Detailed critical assessment of the content against the KJV 1611."""
    scriptural_foundation_assessment: str = ""
    historical_theological_contextualization: str = ""
    rhetorical_and_homiletical_observations: str = ""
    theological_framework_remarks: str = ""
    kjv_scriptural_counterpoints: str = ""
    suggestions_for_further_study: str = ""


class ContentAnalysisResult(BaseModel):
    """Structured output of the primary content analysis."""
    summary: str = Field(..., min_length=1)
    scriptural_analysis: List[ScripturalAnalysisEntry] = []
    historical_context: str = ""
    fallacies: List[FallacyEntry] = []
    manipulative_tactics: List[ManipulativeTacticEntry] = []
    identified_isms: List[IsmEntry] = []
    calvinism_analysis: List[CalvinismEntry] = []

    etymology: Optional[str] = None
    exposure: Optional[str] = None
    biblical_remonstrance: Optional[BiblicalRemonstrance] = None
    potential_manipulative_speaker_profile: Optional[str] = None
    guidance_on_wise_confrontation: Optional[str] = None


class ReportBase(BaseModel):
    """
    Fields and lifecycle invariants shared by every stored report.

    A completed report always exposes its structured result; a failed report
    never exposes a partial one.
    """
    id: str
    title: str
    status: ReportStatus = ReportStatus.PROCESSING
    created_at: datetime
    updated_at: datetime
    error_message: Optional[str] = None

    @model_validator(mode="after")
    def _check_result_matches_status(self) -> "ReportBase":
        result: Any = getattr(self, "analysis_result", None)
        if self.status == ReportStatus.COMPLETED and result is None:
            raise ValueError("a completed report requires an analysis_result")
        if self.status == ReportStatus.FAILED and result is not None:
            raise ValueError("a failed report must not carry an analysis_result")
        return self

    class Config:
        from_attributes = True


class AnalysisReport(ReportBase):
    """A persisted primary analysis of one content submission."""
    analysis_type: AnalysisType = AnalysisType.TEXT
    original_content: Optional[str] = None
    analysis_result: Optional[ContentAnalysisResult] = None
    calvinism_deep_dive: Optional[str] = None
    deep_dive_at: Optional[datetime] = None


class AnalysisReportSummary(BaseModel):
    """Compact listing entry for a primary report."""
    id: str
    title: str
    analysis_type: AnalysisType
    status: ReportStatus
    created_at: datetime
    updated_at: datetime
    has_original_content: bool
    has_deep_dive: bool

    @classmethod
    def from_report(cls, report: AnalysisReport) -> "AnalysisReportSummary":
        return cls(
            id=report.id,
            title=report.title,
            analysis_type=report.analysis_type,
            status=report.status,
            created_at=report.created_at,
            updated_at=report.updated_at,
            has_original_content=bool(report.original_content),
            has_deep_dive=bool(report.calvinism_deep_dive),
        )


class SubmitContentRequest(BaseModel):
    """Schema for submitting content for analysis."""
    content: str
    title: Optional[str] = Field(None, max_length=200)
    analysis_type: AnalysisType = AnalysisType.TEXT
    reference_material: Optional[str] = None


class AnalysisReportListResponse(BaseModel):
    reports: List[AnalysisReportSummary]
    total: int


class DeepDiveResponse(BaseModel):
    """Schema for a freshly generated deep-dive analysis."""
    report_id: str
    analysis: str
    generated_at: datetime


class ClearReportsResponse(BaseModel):
    deleted: int
    message: str
