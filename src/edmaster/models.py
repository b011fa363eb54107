import math
from enum import Enum, IntEnum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Sound(str, Enum):
    """The three pronunciations of the -ed suffix."""

    T = "t"
    D = "d"
    ID = "id"

    @classmethod
    def parse(cls, value: str) -> "Sound":
        """Accepts 't', '/d/', 'ɪd', 'ID' and the keyboard shortcut 'i'."""
        key = value.strip().strip("/").lower().replace("ɪ", "i")
        if key == "i":
            key = "id"
        return cls(key)

    @property
    def ipa(self) -> str:
        return "/ɪd/" if self is Sound.ID else f"/{self.value}/"


class Mode(str, Enum):
    IDLE = "Idle"
    LOADING = "Loading"
    IN_QUIZ = "InQuiz"
    RESULTS = "Results"
    LEARNING = "Learning"


class DifficultyLevel(IntEnum):
    """CEFR scale, least to most advanced."""

    A1 = 0
    A2 = 1
    B1 = 2
    B2 = 3
    C1 = 4
    C2 = 5

    @property
    def label(self) -> str:
        return self.name

    @classmethod
    def from_label(cls, label: str) -> "DifficultyLevel":
        return cls[label.strip().upper()]


class WordItem(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    word: str = Field(min_length=1)
    expected_sound: Sound = Field(alias="sound")
    rule: str = ""
    example_sentence: str = Field("", alias="exampleSentence")

    @field_validator("word")
    @classmethod
    def _strip_word(cls, v: str) -> str:
        return v.strip()

    @field_validator("expected_sound", mode="before")
    @classmethod
    def _parse_sound(cls, v):
        if isinstance(v, str):
            return Sound.parse(v)
        return v


class AnswerRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    word: str
    user_choice: Sound
    is_correct: bool


class RuleCategory(BaseModel):
    category: str
    description: str
    examples: List[str]


class SessionState(BaseModel):
    """Snapshot of one quiz session. Every transition produces a new instance."""

    model_config = ConfigDict(frozen=True)

    mode: Mode = Mode.IDLE
    items: Tuple[WordItem, ...] = ()
    current_index: int = Field(0, ge=0)
    score: int = Field(0, ge=0)
    history: Tuple[AnswerRecord, ...] = ()
    total_questions: int = Field(0, ge=0)

    @model_validator(mode="after")
    def _check_progress(self) -> "SessionState":
        if self.current_index > self.total_questions:
            raise ValueError("current_index is past total_questions")
        if len(self.history) != self.current_index:
            raise ValueError("history length must equal current_index")
        if self.score > len(self.history):
            raise ValueError("score exceeds number of answers")
        return self

    @classmethod
    def fresh(cls, items) -> "SessionState":
        items = tuple(items)
        return cls(mode=Mode.IN_QUIZ, items=items, total_questions=len(items))

    @property
    def is_finished(self) -> bool:
        return self.current_index == self.total_questions

    @property
    def current_item(self) -> Optional[WordItem]:
        if self.current_index < len(self.items):
            return self.items[self.current_index]
        return None

    @property
    def percentage(self) -> int:
        if not self.total_questions:
            return 0
        # Half-up, so 12.5% shows as 13%
        return int(math.floor(self.score / self.total_questions * 100 + 0.5))


class Feedback(BaseModel):
    """What the quiz screen shows between a choice and the next word."""

    word: str
    choice: Sound
    expected_sound: Sound
    is_correct: bool
    rule: str
    example_sentence: str
