"""SQLite-backed chat history with an explicit load/save session object."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import closing
from datetime import datetime
from pathlib import Path
from typing import Iterable, List

from .models import ChatMessage
from .utils import generate_id

logger = logging.getLogger(__name__)

GREETING = (
    "Welcome! I'm your AI assistant. I can help you with various tasks like solving SQL queries "
    "and scheduling meetings."
)
STARTER_QUERIES = [
    "Connect to Google Calendar",
    "Schedule a meeting with Jane tomorrow at 3pm",
    "Capture my screen",
    "What can you help me with?",
]


class SessionStore:
    """Persist chat messages in insertion order."""

    def __init__(self, db_path: str | Path = ":memory:") -> None:
        self.db_path = str(db_path)
        self.conn = sqlite3.connect(self.db_path)
        self.conn.row_factory = sqlite3.Row
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        with closing(self.conn.cursor()) as cur:
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS messages (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    message_id TEXT NOT NULL UNIQUE,
                    sender TEXT NOT NULL,
                    text TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
                """
            )
            self.conn.commit()

    def append(self, message: ChatMessage) -> None:
        with closing(self.conn.cursor()) as cur:
            cur.execute(
                """
                INSERT INTO messages (message_id, sender, text, created_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(message_id) DO NOTHING
                """,
                (message.message_id, message.sender, message.text, message.created_at.isoformat()),
            )
            self.conn.commit()

    def extend(self, messages: Iterable[ChatMessage]) -> None:
        for message in messages:
            self.append(message)

    def load(self) -> List[ChatMessage]:
        with closing(self.conn.cursor()) as cur:
            cur.execute("SELECT * FROM messages ORDER BY seq")
            rows = cur.fetchall()
        return [self._row_to_message(row) for row in rows]

    def clear(self) -> None:
        with closing(self.conn.cursor()) as cur:
            cur.execute("DELETE FROM messages")
            self.conn.commit()

    @staticmethod
    def _row_to_message(row: sqlite3.Row) -> ChatMessage:
        return ChatMessage(
            message_id=row["message_id"],
            sender=row["sender"],
            text=row["text"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def close(self) -> None:
        self.conn.close()


class ChatSession:
    """In-memory conversation that only touches the store on load and save."""

    def __init__(self, store: SessionStore) -> None:
        self.store = store
        self.messages: List[ChatMessage] = []

    def load(self) -> List[ChatMessage]:
        self.messages = self.store.load()
        if not self.messages:
            self.add_assistant(GREETING)
            self.save()
        logger.debug("Loaded %d chat messages", len(self.messages))
        return self.messages

    def save(self) -> None:
        self.store.extend(self.messages)

    def add_user(self, text: str) -> ChatMessage:
        return self._add("user", text)

    def add_assistant(self, text: str) -> ChatMessage:
        return self._add("ai", text)

    def _add(self, sender: str, text: str) -> ChatMessage:
        message = ChatMessage(message_id=generate_id("msg"), sender=sender, text=text)
        self.messages.append(message)
        return message

    def clear(self) -> None:
        self.store.clear()
        self.messages = []
        self.add_assistant(GREETING)
        self.save()
