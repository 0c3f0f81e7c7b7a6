"""
Pydantic schemas for the podcast derivative artifact of a teaching report.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, model_validator


class PodcastStatus(str, Enum):
    PENDING = "pending"
    GENERATING = "generating"
    GENERATED = "generated"
    EXPORTING = "exporting"
    EXPORTED = "exported"
    FAILED = "failed"


class ContentScope(str, Enum):
    FULL_REPORT = "Full Report"
    CHURCH_HISTORY = "Church History"
    PROMOTERS = "Promoters"
    CHURCH_COUNCIL = "Church Council"
    LETTER_OF_CAUTION = "Letter of Caution"
    WARNINGS = "Warnings"


class TreatmentType(str, Enum):
    GENERAL_OVERVIEW = "General Overview"
    DEEP = "Deep"


class ExportOption(str, Enum):
    EMAIL = "Email"
    GOOGLE_DRIVE = "Google Drive"


class ExportStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class PodcastData(BaseModel):
    """
    State of a report's podcast artifact.

    Every write replaces fields of the previous value; there is no history.
    """
    status: PodcastStatus = PodcastStatus.PENDING
    content_scope: List[ContentScope] = []
    treatment_type: TreatmentType = TreatmentType.GENERAL_OVERVIEW
    audio_url: Optional[str] = None
    export_options: List[ExportOption] = []
    export_status: ExportStatus = ExportStatus.PENDING
    export_results: Dict[str, str] = {}
    last_error: Optional[str] = None
    updated_at: Optional[datetime] = None

    @model_validator(mode="after")
    def _check_invariants(self) -> "PodcastData":
        if self.status == PodcastStatus.GENERATING and self.audio_url:
            raise ValueError("a podcast that is generating cannot have an audio_url yet")
        if self.export_status == ExportStatus.COMPLETED:
            if self.status != PodcastStatus.EXPORTED or not self.audio_url:
                raise ValueError("a completed export requires status 'exported' and an audio_url")
        return self


class GeneratePodcastRequest(BaseModel):
    content_scope: List[ContentScope] = []
    treatment_type: TreatmentType = TreatmentType.GENERAL_OVERVIEW


class ExportPodcastRequest(BaseModel):
    export_options: List[ExportOption] = []
    email: Optional[str] = None


class PodcastOperationResult(BaseModel):
    """Explicit outcome of a generate or export stage."""
    success: bool
    message: str
    podcast: PodcastData
    error_code: Optional[str] = None
