"""A conversation with the companion, in insertion order."""

from __future__ import annotations

import logging
import time
from typing import Any, Optional

from nesha.companion import Companion
from nesha.models import ChatMessage, Language, Role

log = logging.getLogger(__name__)

NOT_INITIALIZED = "System Error: AI not initialized."


class Conversation:
    """Owns the message list and the underlying chat session.

    The session is created lazily on first send. ``clear()`` starts a fresh
    session; a reply still in flight for the old one is dropped when it
    arrives.
    """

    def __init__(self, companion: Companion, language: Language | str = Language.AMHARIC) -> None:
        self.companion = companion
        self.language = Language(language)
        self._messages: list[ChatMessage] = []
        self._session: Any = None
        self._generation = 0
        self._last_ts = 0

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        return tuple(self._messages)

    def _timestamp(self) -> int:
        # strictly increasing even when two messages land in the same millisecond
        self._last_ts = max(int(time.time() * 1000), self._last_ts + 1)
        return self._last_ts

    def _append(self, role: Role, text: str, is_error: bool = False) -> ChatMessage:
        message = ChatMessage(role=role, text=text, timestamp=self._timestamp(), is_error=is_error)
        self._messages = [*self._messages, message]
        return message

    async def send(self, text: str) -> Optional[ChatMessage]:
        """Send a user message and return the reply that was appended, if any."""
        if not text.strip():
            return None
        self._append(Role.USER, text)

        if self._session is None:
            self._session = self.companion.create_conversation()
        if self._session is None:
            return self._append(Role.MODEL, NOT_INITIALIZED, is_error=True)

        generation = self._generation
        reply = await self.companion.send_message(self._session, text, self.language)
        if generation != self._generation:
            log.debug("Dropping reply for a cleared conversation")
            return None
        return self._append(Role.MODEL, reply)

    def clear(self) -> None:
        """Forget all messages and start a new session."""
        self._generation += 1
        self._messages = []
        self._session = self.companion.create_conversation()
