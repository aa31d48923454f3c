from __future__ import annotations
from datetime import datetime, timedelta, timezone

from icalendar import Calendar, Event, vCalAddress, vText

from core.clock import aware
from core.config_loader import settings
from .schema import BookingNotice


def _attendee(email: str, name: str) -> vCalAddress:
    addr = vCalAddress(f"MAILTO:{email}")
    addr.params["cn"] = vText(name)
    addr.params["role"] = vText("REQ-PARTICIPANT")
    addr.params["rsvp"] = vText("TRUE")
    return addr


def generate_calendar_invite(notice: BookingNotice) -> str:
    start = aware(notice.scheduled_at)
    end = start + timedelta(minutes=notice.duration_minutes)

    cal = Calendar()
    cal.add("prodid", "-//Tutoring Scheduler//EN")
    cal.add("version", "2.0")
    cal.add("method", "REQUEST")
    cal.add("x-wr-calname", settings.CALENDAR_NAME)

    event = Event()
    event.add("uid", f"session-{notice.session_id}@tutoring")
    event.add("dtstamp", datetime.now(timezone.utc))
    event.add("dtstart", start)
    event.add("dtend", end)
    event.add("summary", f"Tutoring session with {notice.tutor_name}")
    description = f"Tutoring session for {notice.parent_name} with {notice.tutor_name}."
    if notice.notes:
        description += f"\n\nNotes: {notice.notes}"
    if notice.manage_url:
        description += f"\n\nManage booking: {notice.manage_url}"
    event.add("description", description)
    event.add("location", "Online")

    organizer = vCalAddress(f"MAILTO:{settings.EMAIL_FROM}")
    organizer.params["cn"] = vText(settings.CALENDAR_NAME)
    event["organizer"] = organizer

    if notice.parent_email:
        event.add("attendee", _attendee(notice.parent_email, notice.parent_name), encode=0)
    if notice.tutor_email:
        event.add("attendee", _attendee(notice.tutor_email, notice.tutor_name), encode=0)

    cal.add_component(event)
    return cal.to_ical().decode("utf-8")
