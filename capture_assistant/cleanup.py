"""Normalise raw OCR text before it is analysed or sent to the model."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

from .models import EmailData

logger = logging.getLogger(__name__)

_EMAIL_HINT = re.compile(
    r"inbox|compose|subject|to:|from:|cc:|bcc:|sent|draft|gmail|outlook|mail|"
    r"would like to schedule|meeting|collaboration|availability",
    re.IGNORECASE,
)
_FROM = re.compile(r"(?:From|Sender):\s*([^\n]+)", re.IGNORECASE)
_TO = re.compile(r"To:\s*([^\n]+)", re.IGNORECASE)
_SUBJECT = re.compile(r"Subject:\s*([^\n]+)", re.IGNORECASE)
_DATE_PATTERNS = (
    re.compile(r"Date:\s*([^\n]+)", re.IGNORECASE),
    re.compile(
        r"(\d{1,2}\s+(?:January|February|March|April|May|June|July|August|September|"
        r"October|November|December)\s+\d{4})",
        re.IGNORECASE,
    ),
    re.compile(r"(\d{1,2}/\d{1,2}/\d{4})"),
)
_HEADER_LINES = (
    re.compile(r"^.*Subject:.*$", re.MULTILINE),
    re.compile(r"^.*Date:.*$", re.MULTILINE),
    re.compile(r"^.*To:.*$", re.MULTILINE),
    re.compile(r"^.*From:.*$", re.MULTILINE),
)
_SPECIAL_CHARS = re.compile(r"[^a-zA-Z0-9\s.,]")

MIN_LINE_LENGTH = 5
MAX_SPECIAL_RATIO = 0.3


@dataclass(slots=True)
class CleanedCapture:
    text: str
    email: Optional[EmailData] = None


def looks_like_email(text: str) -> bool:
    return bool(_EMAIL_HINT.search(text))


def _first_group(pattern: re.Pattern[str], text: str) -> Optional[str]:
    match = pattern.search(text)
    return match.group(1).strip() if match else None


def parse_email(text: str) -> EmailData:
    """Pull sender, recipient, subject, date and body out of an email capture."""

    date = None
    for pattern in _DATE_PATTERNS:
        date = _first_group(pattern, text)
        if date:
            break

    body = text
    for pattern in _HEADER_LINES:
        match = pattern.search(text)
        if match:
            candidate = text[match.end() :].strip()
            if len(candidate) < len(body):
                body = candidate

    email = EmailData(body=body.strip())
    email.sender = _first_group(_FROM, text) or email.sender
    email.recipient = _first_group(_TO, text) or email.recipient
    email.subject = _first_group(_SUBJECT, text) or email.subject
    email.date = date or email.date
    return email


def render_email(email: EmailData) -> str:
    return (
        "EMAIL CONTENT:\n"
        f"From: {email.sender}\n"
        f"To: {email.recipient}\n"
        f"Subject: {email.subject}\n"
        f"Date: {email.date}\n"
        "\n"
        f"{email.body}"
    )


def _is_readable(line: str) -> bool:
    if len(line.strip()) <= MIN_LINE_LENGTH:
        return False
    return len(_SPECIAL_CHARS.findall(line)) / len(line) < MAX_SPECIAL_RATIO


def cleanup_captured_text(text: Optional[str]) -> CleanedCapture:
    """Structure email captures and drop OCR noise lines from everything else."""

    if not text:
        return CleanedCapture(text="")
    if looks_like_email(text):
        email = parse_email(text)
        logger.debug("Capture looks like an email from %s", email.sender)
        return CleanedCapture(text=render_email(email), email=email)
    lines = [line for line in text.split("\n") if _is_readable(line)]
    return CleanedCapture(text="\n".join(lines))
