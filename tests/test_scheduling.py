from datetime import date, datetime

import pytest

from capture_assistant.models import MeetingRequest
from capture_assistant.scheduling import (
    SchedulingError,
    build_event,
    detect_meeting,
    has_scheduling_intent,
    is_confirmation,
    is_reschedule,
    parse_date,
    parse_direct_request,
    parse_scheduling_response,
    parse_time,
    resolve_meeting_times,
)

NOW = datetime(2025, 3, 30, 10, 0)


def test_detect_meeting_date_and_time():
    details = detect_meeting("Can we schedule a meeting tomorrow at 3 pm?")
    assert details.date == "tomorrow"
    assert details.time == "3 pm"


def test_detect_meeting_needs_meeting_words_and_a_when():
    assert detect_meeting("Let's discuss the budget") is None
    assert detect_meeting("Totally unrelated 5 pm") is None
    assert detect_meeting("") is None


def test_scheduling_intent():
    assert has_scheduling_intent("Please schedule a meeting with Jane")
    assert has_scheduling_intent("Open my calendar")
    assert not has_scheduling_intent("What is the weather like")


def test_confirmation_and_reschedule_words():
    assert is_confirmation("Yes please")
    assert is_confirmation("I confirm")
    assert not is_confirmation("Not sure")
    assert is_reschedule("Can we pick a different time?")
    assert is_reschedule("please reschedule")


def test_direct_request():
    request = parse_direct_request(
        "Schedule a meeting on 31-03-2025 at 5 pm about budget review with Alice and Bob"
    )
    assert request.date == "31-03-2025"
    assert request.time == "5 pm"
    assert request.title.startswith("budget review")
    assert request.participants == ["Alice", "Bob"]
    assert parse_direct_request("Schedule a meeting soon") is None


def test_direct_request_default_title():
    request = parse_direct_request("schedule meeting on 01/04/2025 at 9:30am")
    assert request.title == "Meeting"
    assert request.participants == []


@pytest.mark.parametrize(
    "text, expected",
    [
        ("5 pm", (17, 0)),
        ("5:30 PM", (17, 30)),
        ("17:45", (17, 45)),
        ("12 am", (0, 0)),
        ("12 pm", (12, 0)),
        ("noon", (12, 0)),
        ("midnight", (0, 0)),
        (None, (9, 0)),
    ],
)
def test_parse_time(text, expected):
    assert parse_time(text) == expected


def test_parse_time_rejects_out_of_range_values():
    with pytest.raises(SchedulingError):
        parse_time("25:00")


def test_parse_date_numeric_orders():
    assert parse_date("31-03-2025") == date(2025, 3, 31)
    assert parse_date("03/31/2025", day_first=False) == date(2025, 3, 31)
    assert parse_date("2025-03-31") == date(2025, 3, 31)
    with pytest.raises(SchedulingError):
        parse_date("31-02-2025")


def test_parse_date_relative_words():
    assert parse_date("tomorrow", now=NOW) == date(2025, 3, 31)


def test_resolve_meeting_times():
    start, end = resolve_meeting_times("31-03-2025", "5 pm", duration_minutes=30, now=NOW)
    assert start == datetime(2025, 3, 31, 17, 0)
    assert end == datetime(2025, 3, 31, 17, 30)


def test_missing_date_means_tomorrow():
    start, _ = resolve_meeting_times(None, None, now=NOW, default_hour=11)
    assert start == datetime(2025, 3, 31, 11, 0)


def test_build_event_keeps_only_valid_attendees():
    request = MeetingRequest(title="Sync", participants=["a@example.com", "Bob"])
    event = build_event(request, datetime(2025, 3, 31, 17), datetime(2025, 3, 31, 18), timezone="Asia/Tokyo")
    assert event["summary"] == "Sync"
    assert event["start"] == {"dateTime": "2025-03-31T17:00:00", "timeZone": "Asia/Tokyo"}
    assert event["attendees"] == [{"email": "a@example.com"}]


def test_build_event_rejects_empty_interval():
    moment = datetime(2025, 3, 31, 17)
    with pytest.raises(SchedulingError):
        build_event(MeetingRequest(), moment, moment)


def test_parse_scheduling_response():
    reply = (
        'Sure! {"isSchedulingRequest": true, "eventDetails": {"title": "Sync", '
        '"startDate": "04/01/2025", "startTime": "10:00 AM", "duration": "45 minutes", '
        '"attendees": "a@x.com, b@y.org"}}'
    )
    request = parse_scheduling_response(reply)
    assert request.title == "Sync"
    assert request.date == "04/01/2025"
    assert request.time == "10:00 AM"
    assert request.duration_minutes == 45
    assert request.participants == ["a@x.com", "b@y.org"]


def test_parse_scheduling_response_without_request():
    assert parse_scheduling_response('{"isSchedulingRequest": false}') is None
    assert parse_scheduling_response("no json here") is None


def test_parse_scheduling_response_defaults():
    reply = '{"isSchedulingRequest": true, "eventDetails": {"startDate": "not specified", "duration": "soon"}}'
    request = parse_scheduling_response(reply)
    assert request.title == "Meeting"
    assert request.date is None
    assert request.duration_minutes == 30
