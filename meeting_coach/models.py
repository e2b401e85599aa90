"""Data models for Meeting Coach."""

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Optional


UNKNOWN_SPEAKER = "Unknown"


def new_id(length: int = 9) -> str:
    return uuid.uuid4().hex[:length]


class ConnectionStatus(str, Enum):
    DISCONNECTED = "DISCONNECTED"
    CONNECTING = "CONNECTING"
    CONNECTED = "CONNECTED"
    ERROR = "ERROR"


class MeetingPhase(str, Enum):
    """Briefing is the pre-meeting goal setting; meeting is live coaching."""
    BRIEFING = "briefing"
    MEETING = "meeting"


class AdviceCategory(str, Enum):
    NEGOTIATION = "negotiation"
    TONE = "tone"
    ARGUMENT = "argument"
    EMOTION = "emotion"


# Categories whose observation describes how someone sounds
NOTE_CATEGORIES = ("tone", "emotion")


@dataclass
class ConversationTurn:
    """One committed unit of buffered transcript."""
    speaker: str
    text: str
    timestamp: float = field(default_factory=time.time)

    def to_dict(self):
        return {
            "speaker": self.speaker,
            "text": self.text,
            "timestamp": self.timestamp,
        }


@dataclass
class Participant:
    """A voice on the roster. The first one created is always the coached user."""
    id: str
    name: str
    is_user: bool = False
    status: Literal["speaking", "idle"] = "idle"
    last_note: Optional[str] = None  # last tone/emotion observed

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "is_user": self.is_user,
            "status": self.status,
            "last_note": self.last_note,
        }


@dataclass
class Advice:
    """A coaching message shown to the user."""
    timestamp: str  # elapsed session time, MM:SS
    category: AdviceCategory
    observation: str
    suggestion: str
    speaker: str
    id: str = field(default_factory=new_id)

    def to_dict(self):
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "category": self.category.value,
            "observation": self.observation,
            "suggestion": self.suggestion,
            "speaker": self.speaker,
        }


@dataclass
class InterestPoint:
    """A meeting goal or key constraint tracked by the perception agent."""
    text: str
    kind: Literal["goal", "context", "tactic"] = "goal"
    id: str = field(default_factory=new_id)

    def to_dict(self):
        return {
            "id": self.id,
            "text": self.text,
            "kind": self.kind,
        }


def format_elapsed(seconds: float) -> str:
    """Format elapsed seconds as MM:SS."""
    elapsed = max(0, int(seconds))
    return f"{elapsed // 60:02d}:{elapsed % 60:02d}"
