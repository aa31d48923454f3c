"""
Booking notifications.

Runs after the response via BackgroundTasks. Delivery failures are logged
and swallowed: a booking that committed is never reported as failed.
"""
from __future__ import annotations
import logging
from typing import Optional, Protocol

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from core.clock import aware
from core.config_loader import settings
from sessions.models import TutorSession
from user.models import User
from .calendar import generate_calendar_invite
from .schema import BookingNotice, EmailAttachment, EmailMessage

logger = logging.getLogger(__name__)


class EmailSender(Protocol):
    def send(self, message: EmailMessage) -> None: ...


class LoggingEmailSender:
    """Default sender; real delivery belongs to the mail service."""

    def send(self, message: EmailMessage) -> None:
        logger.info(
            "email to=%s subject=%r attachments=%s",
            message.to, message.subject, [a.filename for a in message.attachments],
        )


_sender: EmailSender = LoggingEmailSender()


def get_email_sender() -> EmailSender:
    return _sender


def set_email_sender(sender: EmailSender) -> None:
    global _sender
    _sender = sender


def manage_url(token: Optional[str]) -> Optional[str]:
    if not token:
        return None
    return f"{settings.FRONTEND_URL}/manage-booking/{token}"


def build_booking_notice(db: Session, row: TutorSession) -> BookingNotice:
    parent = db.get(User, row.parent_id)
    tutor = db.get(User, row.tutor_id)
    return BookingNotice(
        session_id=row.id,
        scheduled_at=aware(row.scheduled_at),
        duration_minutes=row.duration_minutes,
        parent_name=(parent and parent.name) or "Parent",
        parent_email=parent.email if parent else None,
        tutor_name=(tutor and tutor.name) or "Tutor",
        tutor_email=tutor.email if tutor else None,
        notes=row.notes,
        manage_url=manage_url(row.management_token),
    )


def _when(notice: BookingNotice) -> str:
    return aware(notice.scheduled_at).strftime("%A, %B %d, %Y at %H:%M UTC")


def _send(sender: EmailSender, message: EmailMessage) -> bool:
    try:
        sender.send(message)
        return True
    except Exception:
        logger.exception("failed to send %r to %s", message.subject, message.to)
        return False


def send_booking_confirmation(notice: BookingNotice, sender: Optional[EmailSender] = None) -> int:
    """Confirmation with calendar invite to parent and tutor; returns emails sent."""
    sender = sender or get_email_sender()
    try:
        invite = EmailAttachment(
            filename="session.ics",
            content_type="text/calendar; method=REQUEST",
            content=generate_calendar_invite(notice),
        )
    except Exception:
        logger.exception("failed to build calendar invite for session %s", notice.session_id)
        return 0

    sent = 0
    if notice.parent_email:
        body = (
            f"Hi {notice.parent_name},\n\n"
            f"Your session with {notice.tutor_name} is booked for {_when(notice)} "
            f"({notice.duration_minutes} minutes).\n"
        )
        if notice.manage_url:
            body += f"\nManage your booking: {notice.manage_url}\n"
        sent += _send(sender, EmailMessage(
            to=notice.parent_email, subject="Booking confirmed", body=body, attachments=[invite],
        ))
    if notice.tutor_email:
        body = (
            f"Hi {notice.tutor_name},\n\n"
            f"{notice.parent_name} booked a session with you for {_when(notice)} "
            f"({notice.duration_minutes} minutes).\n"
        )
        sent += _send(sender, EmailMessage(
            to=notice.tutor_email, subject="New session booked", body=body, attachments=[invite],
        ))
    return sent


def send_cancellation_confirmation(notice: BookingNotice, sender: Optional[EmailSender] = None) -> int:
    sender = sender or get_email_sender()
    if not notice.parent_email:
        return 0
    body = (
        f"Hi {notice.parent_name},\n\n"
        f"Your session with {notice.tutor_name} on {_when(notice)} has been cancelled.\n"
    )
    return int(_send(sender, EmailMessage(to=notice.parent_email, subject="Session cancelled", body=body)))


def queue_booking_confirmation(background_tasks: BackgroundTasks, db: Session, row: TutorSession) -> None:
    try:
        notice = build_booking_notice(db, row)
    except Exception:
        logger.exception("could not prepare confirmation for session %s", row.id)
        return
    background_tasks.add_task(send_booking_confirmation, notice)


def queue_cancellation_confirmation(background_tasks: BackgroundTasks, db: Session, row: TutorSession) -> None:
    try:
        notice = build_booking_notice(db, row)
    except Exception:
        logger.exception("could not prepare cancellation notice for session %s", row.id)
        return
    background_tasks.add_task(send_cancellation_confirmation, notice)
