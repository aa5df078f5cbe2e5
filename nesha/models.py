"""Pydantic models — single source of truth for all data types."""

from __future__ import annotations

import enum
import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def new_id() -> str:
    """Return a fresh opaque record id."""
    return uuid.uuid4().hex


class Language(str, enum.Enum):
    """Supported UI languages."""

    AMHARIC = "am"
    ENGLISH = "en"


class Frequency(str, enum.Enum):
    """How often a habit is meant to be done."""

    DAILY = "daily"
    WEEKLY = "weekly"


class Priority(str, enum.Enum):
    """Task priority, lowest first."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class HabitCategory(str, enum.Enum):
    SPIRITUAL = "spiritual"
    HEALTH = "health"
    WORK = "work"
    PERSONAL = "personal"


class Role(str, enum.Enum):
    """Author of a chat message."""

    USER = "user"
    MODEL = "model"


class TaskSortKey(str, enum.Enum):
    """Secondary sort key for the task list (creation = no secondary key)."""

    CREATION = "creation"
    PRIORITY = "priority"
    DUE_DATE = "due_date"


class Habit(BaseModel):
    """A recurring habit with its completion history."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    title: str = Field(min_length=1)
    description: str = ""
    frequency: Frequency = Frequency.DAILY
    streak: int = Field(default=0, ge=0)
    completed_dates: list[date] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now)
    category: Optional[HabitCategory] = None

    @field_validator("completed_dates")
    @classmethod
    def _unique_dates(cls, value: list[date]) -> list[date]:
        return list(dict.fromkeys(value))

    def is_done_on(self, day: date) -> bool:
        return day in self.completed_dates


class Task(BaseModel):
    """A one-off to-do item."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    title: str = Field(min_length=1)
    due_date: Optional[date] = None
    priority: Priority = Priority.MEDIUM
    completed: bool = False
    reminder: Optional[bool] = None
    created_at: datetime = Field(default_factory=datetime.now)

    def is_overdue(self, today: Optional[date] = None) -> bool:
        """Incomplete and due before ``today``. Derived, never stored."""
        if self.completed or self.due_date is None:
            return False
        return self.due_date < (today or date.today())


class Note(BaseModel):
    """A free-text note."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    content: str = ""
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
    tags: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _updated_not_before_created(self) -> Note:
        if self.updated_at < self.created_at:
            raise ValueError("updated_at must not be earlier than created_at")
        return self


class ChatMessage(BaseModel):
    """One message in a companion conversation."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    role: Role
    text: str
    timestamp: int = Field(ge=0)  # epoch milliseconds
    is_error: bool = False


class AppSettings(BaseModel):
    """User-facing settings (persisted under the ``settings`` key)."""

    model_config = ConfigDict(frozen=True)

    language: Language = Language.AMHARIC
    dark_mode: bool = False
    name: Optional[str] = None


class ConfessionState(BaseModel):
    """Scheduled and most recent confession dates. Independent of each other."""

    model_config = ConfigDict(frozen=True)

    confession_date: Optional[date] = None
    last_confession_date: Optional[date] = None


class EthiopianDate(BaseModel):
    """A date in the Ethiopian calendar. ``month`` is 0-based (12 = Pagume)."""

    model_config = ConfigDict(frozen=True)

    year: int
    month: int = Field(ge=0, le=12)
    date: int = Field(ge=1, le=30)
    day_name: str
    month_name: str


class HabitSuggestion(BaseModel):
    """A habit proposed by the companion's analyzer."""

    model_config = ConfigDict(frozen=True)

    title: str = Field(min_length=1)
    advice: str
    frequency: Frequency


class AppConfig(BaseModel):
    """Application configuration (persisted to ~/.config/nesha/config.json)."""

    db_path: Optional[str] = None  # None = use default (~/.local/share/nesha/)
    model: str = "gemini-2.5-flash"
    api_key: Optional[str] = None  # GEMINI_API_KEY / API_KEY take precedence
    request_timeout: float = Field(default=20.0, ge=1.0, le=120.0)
