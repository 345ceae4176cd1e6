"""Meeting detection and date/time resolution for calendar scheduling."""

from __future__ import annotations

import json
import logging
import re
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple

import dateparser

from .models import MeetingDetails, MeetingRequest

logger = logging.getLogger(__name__)

_MEETING_WORDS = re.compile(
    r"meeting|schedule|appointment|call|discuss|zoom|teams|google meet|conference",
    re.IGNORECASE,
)
_MEETING_DATE = re.compile(
    r"(\d{1,2}(?:st|nd|rd|th)?\s+(?:jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)\w*"
    r"|\d{1,2}[-/]\d{1,2}[-/]\d{2,4}"
    r"|tomorrow|next week|monday|tuesday|wednesday|thursday|friday|saturday|sunday)",
    re.IGNORECASE,
)
_MEETING_TIME = re.compile(
    r"(\d{1,2}(?::\d{2})?\s*(?:am|pm)|noon|midnight|\d{1,2}\s*o'?clock)",
    re.IGNORECASE,
)
_DATE_OR_TIME = re.compile(
    r"(today|tomorrow|monday|tuesday|wednesday|thursday|friday|saturday|sunday|next week|next month"
    r"|january|february|march|april|may|june|july|august|september|october|november|december"
    r"|\d{1,2}(st|nd|rd|th)?|\d{1,2}[-/]\d{1,2}[-/]\d{2,4}|\d{4}[-/]\d{1,2}[-/]\d{1,2}"
    r"|\d{1,2}:\d{2}|\d{1,2}\s*(am|pm)|noon|midnight)",
    re.IGNORECASE,
)

SCHEDULING_PATTERNS: List[re.Pattern[str]] = [
    re.compile(r"schedule (a|an) (meeting|appointment|event|call)", re.IGNORECASE),
    re.compile(r"set up (a|an) (meeting|appointment|event|call)", re.IGNORECASE),
    re.compile(r"create (a|an) (meeting|appointment|event|call)", re.IGNORECASE),
    re.compile(r"add (a|an) (meeting|appointment|event|call)", re.IGNORECASE),
    re.compile(r"book (a|an) (appointment|meeting|event|call)", re.IGNORECASE),
    re.compile(r"plan (a|an) (meeting|appointment|event|call)", re.IGNORECASE),
    re.compile(r"calendar", re.IGNORECASE),
]

_DIRECT_REQUEST = re.compile(
    r"schedule\s+(?:a|an)?\s*meeting\s+on\s+(\d{1,2}[-/]\d{1,2}[-/]\d{4})\s+at\s+(\d{1,2}(?::\d{2})?\s*(?:am|pm))",
    re.IGNORECASE,
)
_REQUEST_TITLE = re.compile(r"(?:about|for|to discuss)\s+['\"]?([^'\".,]+)['\"]?", re.IGNORECASE)
_REQUEST_ATTENDEES = re.compile(r"(?:with|including)\s+([^.,]+)", re.IGNORECASE)
_ATTENDEE_SPLIT = re.compile(r",|\s+and\s+", re.IGNORECASE)
_CONFIRMATION = re.compile(r"confirm|yes|accept", re.IGNORECASE)
_RESCHEDULE = re.compile(r"reschedule|change(\s+the)?\s+time|different time|another time", re.IGNORECASE)

_NUMERIC_DATE = re.compile(r"^(\d{1,2})[-/](\d{1,2})[-/](\d{4})$")
_ISO_DATE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
_CLOCK_TIME = re.compile(r"(\d{1,2})(?::(\d{2}))?\s*([ap]m)?", re.IGNORECASE)
_EMAIL_ADDRESS = re.compile(r"^[a-zA-Z0-9._-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,6}$")


class SchedulingError(ValueError):
    """Raised when a meeting date or time cannot be resolved."""


def detect_meeting(text: Optional[str]) -> Optional[MeetingDetails]:
    """Return date/time hints when ``text`` talks about a meeting."""

    if not text or not _MEETING_WORDS.search(text):
        return None
    date_match = _MEETING_DATE.search(text)
    time_match = _MEETING_TIME.search(text)
    if not date_match and not time_match:
        return None
    return MeetingDetails(
        date=date_match.group(0) if date_match else None,
        time=time_match.group(0) if time_match else None,
        raw_text=text,
    )


def has_scheduling_intent(message: str) -> bool:
    return any(pattern.search(message) for pattern in SCHEDULING_PATTERNS)


def mentions_date_or_time(message: str) -> bool:
    return bool(_DATE_OR_TIME.search(message))


def is_confirmation(message: str) -> bool:
    return bool(_CONFIRMATION.search(message.strip()))


def is_reschedule(message: str) -> bool:
    return bool(_RESCHEDULE.search(message.strip()))


def parse_direct_request(message: str) -> Optional[MeetingRequest]:
    """Handle ``schedule a meeting on 31-03-2025 at 5 pm`` style requests."""

    match = _DIRECT_REQUEST.search(message)
    if not match:
        return None
    title_match = _REQUEST_TITLE.search(message)
    title = title_match.group(1).strip() if title_match else "Meeting"
    participants: List[str] = []
    attendee_match = _REQUEST_ATTENDEES.search(message)
    if attendee_match:
        participants = [part.strip() for part in _ATTENDEE_SPLIT.split(attendee_match.group(1)) if part.strip()]
    return MeetingRequest(title=title, date=match.group(1), time=match.group(2), participants=participants)


def parse_time(text: Optional[str], *, default_hour: int = 9) -> Tuple[int, int]:
    """Convert ``5 pm``, ``5:30PM``, ``17:30``, ``noon`` or ``midnight`` into hour and minute."""

    if not text:
        return default_hour, 0
    lowered = text.strip().lower()
    if lowered == "noon":
        return 12, 0
    if lowered == "midnight":
        return 0, 0
    match = _CLOCK_TIME.search(lowered)
    if not match:
        return default_hour, 0
    hour = int(match.group(1))
    minute = int(match.group(2)) if match.group(2) else 0
    meridiem = match.group(3)
    if meridiem == "pm" and hour < 12:
        hour += 12
    elif meridiem == "am" and hour == 12:
        hour = 0
    if hour > 23 or minute > 59:
        raise SchedulingError(f"Invalid time: {text!r}")
    return hour, minute


def parse_date(text: str, *, now: Optional[datetime] = None, day_first: bool = True) -> date:
    """Resolve a meeting date.

    Numeric dates typed by the user are read day first (``31-03-2025``); the
    model's scheduling reply uses ``MM/DD/YYYY`` and passes ``day_first=False``.
    Anything else goes through dateparser relative to ``now``.
    """

    cleaned = text.strip()
    numeric = _NUMERIC_DATE.match(cleaned)
    iso = _ISO_DATE.match(cleaned)
    try:
        if numeric:
            first, second, year = (int(part) for part in numeric.groups())
            day, month = (first, second) if day_first else (second, first)
            return date(year, month, day)
        if iso:
            year, month, day = (int(part) for part in iso.groups())
            return date(year, month, day)
    except ValueError as exc:
        raise SchedulingError(f"Invalid date: {text!r}") from exc
    settings: Dict[str, Any] = {
        "DATE_ORDER": "DMY" if day_first else "MDY",
        "PREFER_DATES_FROM": "future",
    }
    if now is not None:
        settings["RELATIVE_BASE"] = now
    parsed = dateparser.parse(cleaned, settings=settings)
    if parsed is None:
        raise SchedulingError(f"Could not understand date: {text!r}")
    return parsed.date()


def resolve_meeting_times(
    date_text: Optional[str],
    time_text: Optional[str],
    *,
    duration_minutes: int = 60,
    default_hour: int = 9,
    now: Optional[datetime] = None,
    day_first: bool = True,
) -> Tuple[datetime, datetime]:
    """Return start and end datetimes for a meeting.

    A missing date means tomorrow.
    """

    now = now or datetime.now()
    if date_text:
        day = parse_date(date_text, now=now, day_first=day_first)
    else:
        day = (now + timedelta(days=1)).date()
    hour, minute = parse_time(time_text, default_hour=default_hour)
    start = datetime(day.year, day.month, day.day, hour, minute)
    return start, start + timedelta(minutes=duration_minutes)


def valid_participants(participants: Iterable[Any]) -> List[str]:
    participants = list(participants)
    valid = [p for p in participants if isinstance(p, str) and _EMAIL_ADDRESS.match(p)]
    if participants and not valid:
        logger.warning("No valid participant emails found, creating event without attendees")
    return valid


def build_event(
    request: MeetingRequest,
    start: datetime,
    end: datetime,
    *,
    timezone: str = "UTC",
) -> Dict[str, Any]:
    """Build a Google Calendar event body for ``request``."""

    if end <= start:
        raise SchedulingError("Meeting end must be after its start")
    return {
        "summary": request.title,
        "description": request.description,
        "start": {"dateTime": start.isoformat(), "timeZone": timezone},
        "end": {"dateTime": end.isoformat(), "timeZone": timezone},
        "attendees": [{"email": email} for email in valid_participants(request.participants)],
    }


def _extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    start = text.find("{")
    end = text.rfind("}")
    candidate = text[start : end + 1] if start != -1 and end > start else text
    try:
        payload = json.loads(candidate)
    except json.JSONDecodeError:
        logger.debug("Scheduling reply was not JSON: %s", text[:200])
        return None
    return payload if isinstance(payload, dict) else None


def parse_scheduling_response(text: str) -> Optional[MeetingRequest]:
    """Read the JSON verdict returned by the scheduling check prompt."""

    payload = _extract_json_object(text or "")
    if not payload or not payload.get("isSchedulingRequest"):
        return None
    details = payload.get("eventDetails") or {}
    attendees = details.get("attendees") or ""
    if isinstance(attendees, str):
        attendees = [part.strip() for part in attendees.split(",") if part.strip()]
    try:
        duration = int(str(details.get("duration") or 30).split()[0])
    except (ValueError, IndexError):
        duration = 30
    start_date = details.get("startDate")
    start_time = details.get("startTime")
    return MeetingRequest(
        title=details.get("title") or "Meeting",
        date=None if start_date in (None, "", "not specified") else str(start_date),
        time=None if start_time in (None, "", "not specified") else str(start_time),
        duration_minutes=duration,
        participants=list(attendees),
    )
