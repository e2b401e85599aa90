from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import time

from meeting_coach.models import Advice, ConnectionStatus, InterestPoint, MeetingPhase, Participant
from meeting_coach.turns import TurnBuffer


@dataclass
class SessionState:
    """Everything one coaching session knows. Reset on every start."""
    status: ConnectionStatus = ConnectionStatus.DISCONNECTED
    phase: MeetingPhase = MeetingPhase.BRIEFING
    language: str = "en"
    generation: int = 0
    started_at: float = 0.0
    buffer: TurnBuffer = field(default_factory=TurnBuffer)
    participants: List[Participant] = field(default_factory=list)
    advices: List[Advice] = field(default_factory=list)
    interest_points: List[InterestPoint] = field(default_factory=list)
    last_transcript: str = ""
    coach_thinking: bool = False
    level: float = 0.0
    last_error: str = ""
    version: int = 0

    def touch(self) -> None:
        self.version += 1

    def reset(self, language: str, min_turn_chars: int) -> None:
        self.phase = MeetingPhase.BRIEFING
        self.language = language
        self.started_at = time.time()
        self.buffer = TurnBuffer(min_chars=min_turn_chars)
        self.participants = []
        self.advices = []
        self.interest_points = []
        self.last_transcript = ""
        self.coach_thinking = False
        self.level = 0.0
        self.last_error = ""
        self.touch()

    def snapshot(self, recent_turns: Optional[int] = 20) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "phase": self.phase.value,
            "language": self.language,
            "participants": [p.to_dict() for p in self.participants],
            "advices": [a.to_dict() for a in self.advices],
            "interest_points": [p.to_dict() for p in self.interest_points],
            "turns": [t.to_dict() for t in self.buffer.recent(recent_turns or len(self.buffer.turns))],
            "last_transcript": self.last_transcript,
            "coach_thinking": self.coach_thinking,
            "level": self.level,
            "last_error": self.last_error,
            "version": self.version,
        }
