"""
SQLAlchemy models for primary and teaching analysis reports.
"""

from datetime import datetime
from sqlalchemy import Column, String, DateTime, Text, JSON
from sqlalchemy.dialects.postgresql import JSONB

from sentinel.db.database import Base

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class AnalysisReportRecord(Base):
    """
    Database model for primary content analysis reports.

    Stores the submitted content verbatim so a deep dive can be requested
    later without re-submission.
    """

    __tablename__ = "analysis_reports"

    id = Column(String(64), primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    analysis_type = Column(String(20), nullable=False, default="text")
    status = Column(String(20), nullable=False, default="processing", index=True)  # processing, completed, failed
    original_content = Column(Text, nullable=True)
    analysis_result = Column(JSONType, nullable=True)
    calvinism_deep_dive = Column(Text, nullable=True)
    deep_dive_at = Column(DateTime, nullable=True)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<AnalysisReportRecord(id={self.id}, status='{self.status}')>"


class TeachingReportRecord(Base):
    """
    Database model for teaching analysis reports.

    The podcast sub-record lives in a JSON column and is only ever merged,
    never replaced together with the rest of the row.
    """

    __tablename__ = "teaching_reports"

    id = Column(String(64), primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    teaching = Column(Text, nullable=False)
    recipient_name_title = Column(String(255), nullable=False)
    tone_preference = Column(String(20), nullable=False)
    output_formats = Column(JSONType, nullable=False, default=list)
    user_email = Column(String(255), nullable=True)
    additional_notes = Column(Text, nullable=True)
    analysis_mode = Column(String(20), nullable=False, default="Full Summary")
    status = Column(String(20), nullable=False, default="processing", index=True)
    analysis_result = Column(JSONType, nullable=True)
    podcast = Column(JSONType, nullable=True)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<TeachingReportRecord(id={self.id}, status='{self.status}')>"
