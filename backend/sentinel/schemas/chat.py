"""
Pydantic schemas for follow-up questions about a stored report.
"""

from enum import Enum
from typing import List

from pydantic import BaseModel, Field


class ChatRole(str, Enum):
    USER = "user"
    MODEL = "model"


class ChatMessage(BaseModel):
    """One earlier turn of the conversation."""
    role: ChatRole
    content: str = Field(..., min_length=1)


class ChatRequest(BaseModel):
    """Schema for asking a question about a report."""
    question: str = Field(..., min_length=1)
    chat_history: List[ChatMessage] = []


class ChatResponse(BaseModel):
    report_id: str
    ai_response: str
