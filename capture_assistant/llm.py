"""Chat completion client for the hosted, OpenAI-compatible model."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from openai import OpenAI, OpenAIError

from .config import AssistantConfig
from .models import ChatMessage, EmailData, MeetingRequest
from .scheduling import parse_scheduling_response

logger = logging.getLogger(__name__)

Message = Dict[str, str]

SYSTEM_PROMPT = (
    "You are a helpful AI assistant. Provide clear and concise responses. If the user wants to "
    "schedule an event or meeting, recognize this intent and tell them to rephrase with specific "
    "date, time, and title details."
)
CALENDAR_PROMPT = (
    "The user has connected their Google Calendar. If they ask about scheduling events or meetings, "
    "you can help them create events by acknowledging their request and asking for specific details "
    "if needed."
)
SCHEDULING_CHECK_PROMPT = """
Determine if the user is trying to schedule a meeting or calendar event.
If they are, return ONLY the following JSON:
{
  "isSchedulingRequest": true,
  "eventDetails": {
    "title": "extracted title or meeting purpose",
    "startDate": "extracted date (MM/DD/YYYY format)",
    "startTime": "extracted time (HH:MM AM/PM format)",
    "duration": "extracted duration in minutes or 30 by default",
    "attendees": "extracted attendees/participants (comma separated)"
  }
}

If they are NOT trying to schedule anything, return ONLY:
{
  "isSchedulingRequest": false
}
"""
EMAIL_QUESTIONS_PROMPT = (
    "Generate 3-4 practical questions about this email. Focus on actions like replying, "
    "summarizing, or analyzing its content. Return only the questions, one per line."
)
CAPTURE_QUESTIONS_PROMPT = (
    "Generate 3-4 short, specific questions about the captured content. Focus on practical "
    "actions. Return only the questions, one per line."
)


class ChatCompletionError(RuntimeError):
    """Raised when the chat model cannot produce a reply."""


def _email_context(email: EmailData) -> str:
    return (
        "The user previously captured an email from their screen. Here are the details:\n"
        f"From: {email.sender}\n"
        f"To: {email.recipient}\n"
        f"Subject: {email.subject}\n"
        f"Date: {email.date}\n"
        f"Body: {email.body}\n"
        "\n"
        "For drafting a reply, analyzing the email, or anything related to this email content, "
        "use the above information."
    )


def build_chat_messages(
    history: Iterable[ChatMessage],
    *,
    captured_text: str = "",
    email: Optional[EmailData] = None,
    calendar_connected: bool = False,
) -> List[Message]:
    """Assemble the request messages: instructions, screen context, then history."""

    messages: List[Message] = [{"role": "system", "content": SYSTEM_PROMPT}]
    if email is not None:
        messages.append({"role": "system", "content": _email_context(email)})
    elif captured_text:
        messages.append(
            {
                "role": "system",
                "content": (
                    "The user previously captured the following text from their screen. If they ask "
                    'about "captured text", "screenshot", or anything related to the screen content, '
                    f"use this information: {captured_text}"
                ),
            }
        )
    if calendar_connected:
        messages.append({"role": "system", "content": CALENDAR_PROMPT})
    for message in history:
        messages.append({"role": message.role, "content": message.text})
    return messages


class ChatCompletionClient:
    """Thin wrapper around the OpenAI SDK pointed at the configured endpoint."""

    def __init__(self, config: AssistantConfig, client: Any = None) -> None:
        self.config = config
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            if not self.config.api_key:
                raise ChatCompletionError(
                    "Chat API key is not configured. Set CAPTURE_ASSISTANT_API_KEY or GROQ_API_KEY."
                )
            self._client = OpenAI(
                api_key=self.config.api_key,
                base_url=self.config.base_url,
                max_retries=self.config.max_retries,
            )
        return self._client

    def complete(
        self,
        messages: List[Message],
        *,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        client = self._get_client()
        try:
            response = client.chat.completions.create(
                model=self.config.model,
                messages=messages,
                temperature=self.config.temperature if temperature is None else temperature,
                max_tokens=max_tokens or self.config.max_tokens,
            )
        except OpenAIError as exc:
            raise ChatCompletionError(f"API request failed: {exc}") from exc
        choices = getattr(response, "choices", None) or []
        if not choices:
            raise ChatCompletionError("No response from AI")
        content = choices[0].message.content
        if not content:
            raise ChatCompletionError("No response from AI")
        return content


def suggest_queries(client: ChatCompletionClient, text: str, *, is_email: bool = False) -> List[str]:
    """Ask the model for follow-up questions about a capture; empty on failure."""

    messages = [
        {"role": "system", "content": EMAIL_QUESTIONS_PROMPT if is_email else CAPTURE_QUESTIONS_PROMPT},
        {
            "role": "user",
            "content": f"I've captured this content from my screen. What questions might I want to ask about it?\n\n{text}",
        },
    ]
    try:
        reply = client.complete(messages, temperature=0.7, max_tokens=256)
    except ChatCompletionError as exc:
        logger.warning("Failed to generate suggested queries: %s", exc)
        return []
    return [line.strip() for line in reply.split("\n") if line.strip()]


def check_scheduling(client: ChatCompletionClient, message: str) -> Optional[MeetingRequest]:
    """Let the model decide whether ``message`` asks for a calendar event."""

    messages = [
        {"role": "system", "content": SCHEDULING_CHECK_PROMPT},
        {"role": "user", "content": message},
    ]
    try:
        reply = client.complete(messages, temperature=0.2)
    except ChatCompletionError as exc:
        logger.warning("Scheduling check failed: %s", exc)
        return None
    return parse_scheduling_response(reply)
