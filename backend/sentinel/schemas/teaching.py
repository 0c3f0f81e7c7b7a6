"""
Pydantic schemas for teaching analysis reports and their API payloads.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel

from sentinel.schemas.podcast import PodcastData, PodcastStatus
from sentinel.schemas.report import ReportBase, ReportStatus


class TonePreference(str, Enum):
    GENTLE = "gentle"
    FIRM = "firm"
    URGENT = "urgent"


class OutputFormat(str, Enum):
    PDF = "PDF"
    TXT = "TXT"
    RTF = "RTF"
    EMAIL = "Email"
    SHARE = "Share"
    PRINT = "Print"


class AnalysisMode(str, Enum):
    OVERVIEW = "Overview"
    SCHOLASTIC = "Scholastic"
    DEEP = "Deep"
    VERY_DEEP = "Very Deep"
    FULL_SUMMARY = "Full Summary"


class PromoterEntry(BaseModel):
    name: str
    description: str


class TeachingAnalysisResult(BaseModel):
    """Structured output of a teaching analysis."""
    church_history_context: str
    promoters_demonstrators: List[PromoterEntry] = []
    church_council_summary: str
    letter_of_clarification: str
    biblical_warnings: str


class TeachingAnalysisReport(ReportBase):
    """A persisted teaching analysis, owner of at most one podcast record."""
    teaching: str
    recipient_name_title: str
    tone_preference: TonePreference
    output_formats: List[OutputFormat]
    user_email: Optional[str] = None
    additional_notes: Optional[str] = None
    analysis_mode: AnalysisMode = AnalysisMode.FULL_SUMMARY
    analysis_result: Optional[TeachingAnalysisResult] = None
    podcast: Optional[PodcastData] = None


class TeachingReportSummary(BaseModel):
    id: str
    title: str
    recipient_name_title: str
    tone_preference: TonePreference
    status: ReportStatus
    created_at: datetime
    podcast_status: Optional[PodcastStatus] = None

    @classmethod
    def from_report(cls, report: TeachingAnalysisReport) -> "TeachingReportSummary":
        return cls(
            id=report.id,
            title=report.title,
            recipient_name_title=report.recipient_name_title,
            tone_preference=report.tone_preference,
            status=report.status,
            created_at=report.created_at,
            podcast_status=report.podcast.status if report.podcast else None,
        )


class SubmitTeachingRequest(BaseModel):
    """Schema for submitting a teaching for analysis."""
    teaching: str
    recipient_name_title: str
    tone_preference: TonePreference
    output_formats: List[OutputFormat] = []
    user_email: Optional[str] = None
    additional_notes: Optional[str] = None


class TeachingReportListResponse(BaseModel):
    reports: List[TeachingReportSummary]
    total: int
