from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr


class BookingNotice(BaseModel):
    """Plain snapshot of a session for out-of-request delivery."""
    session_id: int
    scheduled_at: datetime
    duration_minutes: int
    parent_name: str = "Parent"
    parent_email: Optional[EmailStr] = None
    tutor_name: str = "Tutor"
    tutor_email: Optional[EmailStr] = None
    notes: Optional[str] = None
    manage_url: Optional[str] = None


class EmailAttachment(BaseModel):
    filename: str
    content_type: str
    content: str


class EmailMessage(BaseModel):
    to: EmailStr
    subject: str
    body: str
    attachments: list[EmailAttachment] = []
