"""End-to-end orchestration for the capture assistant."""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Dict, List, Optional

from .charts import ChartData, build_chart_data, suggest_chart_for_labels, suggest_chart_type
from .cleanup import cleanup_captured_text
from .config import AssistantConfig
from .llm import ChatCompletionClient, ChatCompletionError, build_chat_messages, check_scheduling, suggest_queries
from .models import CaptureAnalysis, MeetingDetails, MeetingRequest
from .ocr import TextRecognizer, extract_text
from .scheduling import (
    SchedulingError,
    build_event,
    detect_meeting,
    has_scheduling_intent,
    is_confirmation,
    is_reschedule,
    mentions_date_or_time,
    parse_direct_request,
    resolve_meeting_times,
)
from .screen_capture import ScreenCapturer
from .session import STARTER_QUERIES, ChatSession, SessionStore
from .sql_parser import analyze_query, extract_sql_query
from .table_parser import parse_table_data
from .triggers import DEFAULT_RULES, Notice, RuleEngine

logger = logging.getLogger(__name__)

# Receives a Google Calendar event body; the calendar REST call lives outside.
EventSink = Callable[[Dict[str, Any]], Any]

_SQL_HINT = re.compile(r"SELECT|FROM|WHERE|JOIN|GROUP BY|ORDER BY|INSERT|UPDATE|DELETE", re.IGNORECASE)
_TABLE_HINT = re.compile(
    r"table|database|sql|rows?|records?|results?|id|name|score|data|values?", re.IGNORECASE
)
_EMAIL_WORDS = re.compile(
    r"would like to schedule|meeting|collaboration|availability|email|message", re.IGNORECASE
)

CONNECT_CALENDAR_REPLY = (
    "I'd like to help you schedule that, but you need to connect to Google Calendar first. "
    "Would you like to connect now?"
)
RESCHEDULE_REQUEST = "I'd like to reschedule this meeting. Can we find another time?"
RESCHEDULE_REPLY = "Of course! What date and time would work better for you?"


class CaptureAssistant:
    """Coordinates capture analysis, chat and calendar scheduling."""

    def __init__(
        self,
        config: AssistantConfig | None = None,
        *,
        session: ChatSession | None = None,
        llm: ChatCompletionClient | None = None,
        capturer: ScreenCapturer | None = None,
        recognizer: TextRecognizer | None = None,
        event_sink: EventSink | None = None,
        rule_engine: RuleEngine | None = None,
    ) -> None:
        self.config = config or AssistantConfig.from_env()
        self.session = session or ChatSession(SessionStore(self.config.session_db))
        self.llm = llm or ChatCompletionClient(self.config)
        self.capturer = capturer
        self.recognizer = recognizer
        self.event_sink = event_sink
        self.rule_engine = rule_engine or RuleEngine(DEFAULT_RULES)
        self.analysis: Optional[CaptureAnalysis] = None
        self.last_image: Any = None
        self.notices: List[Notice] = []
        self.pending_meeting: Optional[MeetingDetails] = None
        self.session.load()

    @property
    def calendar_connected(self) -> bool:
        return self.event_sink is not None

    # ------------------------------------------------------------------
    # Capture handling
    # ------------------------------------------------------------------

    def analyze_text(self, raw_text: str) -> CaptureAnalysis:
        """Analyse recognised screen text and keep it as chat context."""

        cleaned = cleanup_captured_text(raw_text)
        sql_query = extract_sql_query(raw_text)
        table = parse_table_data(raw_text)
        has_table = table is not None and (
            sql_query is not None
            or len(table) >= 2
            or bool(_SQL_HINT.search(cleaned.text))
            or bool(_TABLE_HINT.search(cleaned.text))
        )
        analysis = CaptureAnalysis(
            raw_text=raw_text,
            cleaned_text=cleaned.text,
            email=cleaned.email,
            sql_query=sql_query,
            query_analysis=analyze_query(sql_query),
            table=table,
            meeting=detect_meeting(cleaned.text),
            has_table=has_table,
        )
        logger.debug(
            "Capture analysed: query=%s rows=%d meeting=%s",
            sql_query is not None,
            len(table) if table else 0,
            analysis.meeting is not None,
        )
        self.analysis = analysis
        self.pending_meeting = analysis.meeting
        self.notices = self.rule_engine.evaluate(analysis)
        return analysis

    def capture(self) -> CaptureAnalysis:
        """Grab the screen, run OCR and analyse the recognised text."""

        if self.capturer is None:
            self.capturer = ScreenCapturer()
        image = self.capturer.grab()
        self.last_image = image
        text = extract_text(image, self.recognizer) if image is not None else ""
        return self.analyze_text(text.strip())

    def visualize(self, chart_type: str | None = None) -> Optional[ChartData]:
        if self.analysis is None or self.analysis.table is None:
            return None
        table = self.analysis.table
        query = self.analysis.sql_query
        if chart_type is None and query:
            chart_type = suggest_chart_type(query, self.analysis.query_analysis)
        elif chart_type is None:
            first_column = table.headers[0] if table.headers else ""
            chart_type = suggest_chart_for_labels([str(row.get(first_column, "")) for row in table])
        return build_chart_data(table, chart_type=chart_type, query=query)

    def suggestions(self) -> List[str]:
        """Follow-up questions for the current capture, or the starter prompts."""

        if self.analysis is None or self.analysis.is_empty:
            return list(STARTER_QUERIES)
        is_email = self.analysis.email is not None or bool(_EMAIL_WORDS.search(self.analysis.cleaned_text))
        return suggest_queries(self.llm, self.analysis.cleaned_text, is_email=is_email)

    # ------------------------------------------------------------------
    # Chat handling
    # ------------------------------------------------------------------

    def send(self, message: str) -> List[str]:
        """Handle one user message and return the assistant replies."""

        text = message.strip()
        if not text:
            return []
        if self.pending_meeting is not None and is_confirmation(text):
            replies = [self._confirm_meeting(self.pending_meeting)]
        elif self.pending_meeting is not None and is_reschedule(text):
            replies = [self._reschedule_meeting()]
        else:
            self.session.add_user(text)
            replies = self._answer(text)
        self.session.save()
        return replies

    def _answer(self, text: str) -> List[str]:
        direct = parse_direct_request(text)
        if direct is not None:
            _, outcome = self._schedule(direct, day_first=True)
            return [self._reply(outcome)]
        if has_scheduling_intent(text) or mentions_date_or_time(text):
            request = check_scheduling(self.llm, text)
            if request is not None:
                _, outcome = self._schedule(request, day_first=False)
                return [self._reply(outcome), self._chat()]
        return [self._chat()]

    def _chat(self) -> str:
        analysis = self.analysis
        messages = build_chat_messages(
            self.session.messages,
            captured_text=analysis.cleaned_text if analysis else "",
            email=analysis.email if analysis else None,
            calendar_connected=self.calendar_connected,
        )
        try:
            reply = self.llm.complete(messages)
        except ChatCompletionError as exc:
            logger.error("Error sending message to API: %s", exc)
            reply = f"I'm sorry, but I encountered an error: {exc}"
        return self._reply(reply)

    def _reply(self, text: str) -> str:
        self.session.add_assistant(text)
        return text

    # ------------------------------------------------------------------
    # Meetings
    # ------------------------------------------------------------------

    def _schedule(self, request: MeetingRequest, *, day_first: bool) -> tuple[bool, str]:
        if self.event_sink is None:
            return False, CONNECT_CALENDAR_REPLY
        duration = request.duration_minutes or self.config.meeting_minutes
        try:
            start, end = resolve_meeting_times(
                request.date,
                request.time,
                duration_minutes=duration,
                default_hour=self.config.default_hour,
                day_first=day_first,
            )
            self.event_sink(build_event(request, start, end, timezone=self.config.timezone))
        except SchedulingError as exc:
            return False, f"Sorry, I couldn't create the event. Error: {exc}. Please try again."
        except Exception as exc:  # pragma: no cover - runtime safeguard
            logger.exception("Error creating calendar event: %s", exc)
            return False, (
                f"Sorry, I couldn't create the event. Error: {exc}. "
                "Please try again or check your calendar permissions."
            )
        subject = f'"{request.title}"' if request.title != "Meeting" else "your meeting"
        return True, f"I've scheduled {subject} for {start:%Y-%m-%d %H:%M} (duration: {duration} minutes)"

    def _confirm_meeting(self, details: MeetingDetails) -> str:
        when = (f" on {details.date}" if details.date else "") + (f" at {details.time}" if details.time else "")
        self.session.add_user(f"I confirm the meeting{when}.")
        self.pending_meeting = None
        if self.event_sink is None:
            return self._reply(f"Great! I've confirmed your meeting{when}.")
        scheduled, outcome = self._schedule(MeetingRequest(date=details.date, time=details.time), day_first=True)
        if not scheduled:
            return self._reply(outcome)
        return self._reply(f"Great! I've confirmed your meeting{when}. It's been added to your calendar.")

    def _reschedule_meeting(self) -> str:
        self.session.add_user(RESCHEDULE_REQUEST)
        self.pending_meeting = None
        return self._reply(RESCHEDULE_REPLY)

    def clear(self) -> None:
        self.session.clear()
        self.analysis = None
        self.notices = []
        self.pending_meeting = None

    def close(self) -> None:
        self.session.store.close()
