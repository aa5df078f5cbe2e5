"""Nesha, the AI companion, backed by Google Gemini (google-genai SDK).

Every call is a single attempt bounded by the configured timeout. Failures
of any kind (no credential, network, timeout, malformed payload) turn into
a fixed localised fallback instead of an exception.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Optional

from google import genai
from google.genai import types
from pydantic import ValidationError

from nesha.config import get_api_key, load_config
from nesha.models import AppConfig, HabitSuggestion, Language

log = logging.getLogger(__name__)

MAX_SUGGESTIONS = 3

SYSTEM_INSTRUCTION = """
You are 'Nesha' (ነሻ), a wise, spiritual, and calm Ethiopian daily companion.
Your purpose is to provide advice, guidance, and habit motivation.
Tone: Respectful, humble, calm, and spiritually grounded.
Values: Align with Ethiopian Orthodox Tewahedo Church teachings when moral/spiritual questions arise. Encourage patience (tigist), humility (tihitina), prayer (tselot), and good deeds.
Avoid: Extremism, political controversy, or judgment.
Language: Respond primarily in Amharic unless the user asks in English. If the user input is in English, you can reply in English but maintain the Ethiopian cultural flavor.
Formatting: Keep responses concise and readable on a small screen.
"""

ANALYZER_INSTRUCTION = (
    "You are a spiritual habit coach. Analyze the user's struggle and suggest "
    "3 concrete habits. Output MUST be a JSON array."
)

_ADVICE_PROMPTS: dict[Language, str] = {
    Language.AMHARIC: (
        "Give me a short, powerful piece of life wisdom or spiritual advice in Amharic. "
        "Max 2 sentences."
    ),
    Language.ENGLISH: (
        "Give me a short, powerful piece of life wisdom or spiritual advice in English, "
        "rooted in Ethiopian values. Max 2 sentences."
    ),
}

ADVICE_OFFLINE: dict[Language, str] = {
    Language.AMHARIC: "የዛሬ ምክር: ትዕግስት የጥበብ መጀመሪያ ነው። (AI አልተገናኘም)",
    Language.ENGLISH: "Daily Wisdom: Patience is the beginning of wisdom. (AI Offline)",
}

ADVICE_ERROR: dict[Language, str] = {
    Language.AMHARIC: "ምክር ማምጣት አልተቻለም።",
    Language.ENGLISH: "Could not fetch advice.",
}

CHAT_ERROR: dict[Language, str] = {
    Language.AMHARIC: "ይቅርታ፣ አሁን መልስ መስጠት አልችልም። (Error)",
    Language.ENGLISH: "Sorry, I cannot answer right now. (Error)",
}

_SUGGESTION_SCHEMA: dict[str, Any] = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "title": {"type": "STRING", "description": "Short title of the habit (max 4 words)"},
            "advice": {"type": "STRING", "description": "Why this helps (1 sentence)"},
            "frequency": {"type": "STRING", "enum": ["daily", "weekly"]},
        },
        "required": ["title", "advice", "frequency"],
    },
}


def parse_suggestions(payload: Optional[str]) -> list[HabitSuggestion]:
    """Validate an analyzer payload, dropping items that do not fit the schema."""
    if not payload:
        return []
    try:
        data = json.loads(payload)
    except json.JSONDecodeError:
        log.warning("Analyzer returned non-JSON payload")
        return []
    if not isinstance(data, list):
        log.warning("Analyzer returned %s instead of a list", type(data).__name__)
        return []

    suggestions: list[HabitSuggestion] = []
    for item in data:
        try:
            suggestions.append(HabitSuggestion.model_validate(item))
        except ValidationError:
            log.debug("Dropping invalid suggestion: %r", item)
        if len(suggestions) == MAX_SUGGESTIONS:
            break
    return suggestions


class Companion:
    """Thin async wrapper over a Gemini client.

    ``client`` is None when no credential is configured; every method then
    returns its fallback without touching the network.
    """

    def __init__(self, client: Any = None, model: str = "gemini-2.5-flash", timeout: float = 20.0) -> None:
        self.client = client
        self.model = model
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: Optional[AppConfig] = None) -> Companion:
        config = config or load_config()
        api_key = get_api_key(config)
        if api_key is None:
            log.info("Gemini API key missing; companion is offline")
            return cls(None, model=config.model, timeout=config.request_timeout)
        return cls(genai.Client(api_key=api_key), model=config.model, timeout=config.request_timeout)

    @property
    def available(self) -> bool:
        return self.client is not None

    async def _generate(self, prompt: str, config: types.GenerateContentConfig) -> Any:
        return await asyncio.wait_for(
            self.client.aio.models.generate_content(model=self.model, contents=prompt, config=config),
            timeout=self.timeout,
        )

    async def get_daily_advice(self, language: Language | str) -> str:
        """A short aphorism, or a localised fallback."""
        language = Language(language)
        if not self.available:
            return ADVICE_OFFLINE[language]
        try:
            response = await self._generate(
                _ADVICE_PROMPTS[language],
                types.GenerateContentConfig(system_instruction=SYSTEM_INSTRUCTION, temperature=0.7),
            )
            text = (response.text or "").strip()
        except Exception as exc:
            log.warning("Daily advice request failed: %s", exc)
            return ADVICE_ERROR[language]
        return text or ADVICE_ERROR[language]

    def create_conversation(self) -> Any:
        """Start a chat session, or return None when the companion is offline."""
        if not self.available:
            return None
        try:
            return self.client.aio.chats.create(
                model=self.model,
                config=types.GenerateContentConfig(system_instruction=SYSTEM_INSTRUCTION),
            )
        except Exception as exc:
            log.warning("Could not start chat session: %s", exc)
            return None

    async def send_message(self, session: Any, text: str, language: Language | str = Language.AMHARIC) -> str:
        """Send ``text`` on ``session`` and return the reply text."""
        language = Language(language)
        try:
            response = await asyncio.wait_for(session.send_message(text), timeout=self.timeout)
            reply = response.text or ""
        except Exception as exc:
            log.warning("Chat request failed: %s", exc)
            return CHAT_ERROR[language]
        return reply

    async def analyze(self, text: str, language: Language | str = Language.AMHARIC) -> list[HabitSuggestion]:
        """Suggest up to three habits for a described struggle."""
        language = Language(language)
        if not self.available or not text.strip():
            return []
        reply_in = "Amharic" if language is Language.AMHARIC else "English"
        prompt = (
            f'The user wants to overcome: "{text.strip()}". Provide 3 distinct, spiritual, '
            f"and practical habits/actions to help them, written in {reply_in}. Return in JSON."
        )
        try:
            response = await self._generate(
                prompt,
                types.GenerateContentConfig(
                    system_instruction=ANALYZER_INSTRUCTION,
                    response_mime_type="application/json",
                    response_schema=_SUGGESTION_SCHEMA,
                ),
            )
            payload = response.text
        except Exception as exc:
            log.warning("Analyzer request failed: %s", exc)
            return []
        return parse_suggestions(payload)
