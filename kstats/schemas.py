"""Pydantic models for the channel statistics record."""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field


class FloatEntry(BaseModel):
    name: str
    value: float


class TotalEntry(BaseModel):
    """Word total for one sender group.

    ``previous`` names the entry ranked just above this one (empty for the
    first) so the template can show the gap between them.
    """
    name: str
    value: int
    previous: str = ""


class UserData(BaseModel):
    name: str
    lines: int
    words: int
    words_per_line: float
    last_seen: Optional[datetime] = None


class ReferenceData(BaseModel):
    name: str
    count: int
    last_used: str


class ChannelData(BaseModel):
    """All derived statistics for one channel at one point in time."""

    id: int
    name: str
    lines: int = 0
    words: int = 0
    words_per_line: float = 0.0
    characters_per_line: float = 0.0
    hour_usage: List[float] = Field(default_factory=list)
    users: List[UserData] = Field(default_factory=list)
    questions: List[FloatEntry] = Field(default_factory=list)
    exclamations: List[FloatEntry] = Field(default_factory=list)
    caps: List[FloatEntry] = Field(default_factory=list)
    emoji_happy: List[FloatEntry] = Field(default_factory=list)
    emoji_sad: List[FloatEntry] = Field(default_factory=list)
    longest_lines: List[FloatEntry] = Field(default_factory=list)
    shortest_lines: List[FloatEntry] = Field(default_factory=list)
    total_words: List[TotalEntry] = Field(default_factory=list)
    average_words: List[FloatEntry] = Field(default_factory=list)
    references: List[ReferenceData] = Field(default_factory=list)
