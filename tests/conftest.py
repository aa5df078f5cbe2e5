"""Shared fixtures: an in-process stand-in for the Gemini async client."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace
from typing import Any, Optional

import pytest


class FakeModels:
    def __init__(self, text: Optional[str] = None, error: Optional[Exception] = None, delay: float = 0.0) -> None:
        self.text = text
        self.error = error
        self.delay = delay
        self.calls: list[dict[str, Any]] = []

    async def generate_content(self, *, model: str, contents: Any, config: Any = None) -> Any:
        self.calls.append({"model": model, "contents": contents, "config": config})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(text=self.text)


class FakeChat:
    def __init__(self, reply: Optional[str] = "", error: Optional[Exception] = None) -> None:
        self.reply = reply
        self.error = error
        self.sent: list[str] = []
        self.gate: Optional[asyncio.Event] = None

    async def send_message(self, message: str) -> Any:
        self.sent.append(message)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return SimpleNamespace(text=self.reply)


class FakeChats:
    def __init__(self, reply: Optional[str] = "", error: Optional[Exception] = None) -> None:
        self.reply = reply
        self.error = error
        self.created: list[FakeChat] = []

    def create(self, *, model: str, config: Any = None) -> FakeChat:
        chat = FakeChat(self.reply, self.error)
        self.created.append(chat)
        return chat


class FakeClient:
    def __init__(self, models: Optional[FakeModels] = None, chats: Optional[FakeChats] = None) -> None:
        self.aio = SimpleNamespace(models=models or FakeModels(), chats=chats or FakeChats())


@pytest.fixture()
def make_client():
    """Build a fake client: ``make_client(text=..., reply=..., error=..., delay=...)``."""

    def _make(
        text: Optional[str] = None,
        reply: Optional[str] = "",
        error: Optional[Exception] = None,
        delay: float = 0.0,
    ) -> FakeClient:
        return FakeClient(FakeModels(text, error, delay), FakeChats(reply, error))

    return _make


@pytest.fixture(autouse=True)
def _no_api_key(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    """Keep tests offline and away from the real config file."""
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("API_KEY", raising=False)
    monkeypatch.setattr("nesha.config._CONFIG_DIR", tmp_path / "config")
    monkeypatch.setattr("nesha.config._CONFIG_FILE", tmp_path / "config" / "config.json")
    monkeypatch.setattr("nesha.config._DB_DIR", tmp_path / "data")
