"""Accumulates streamed transcript fragments into conversation turns."""

import logging
import time
from typing import Callable, List, Optional

from meeting_coach.models import ConversationTurn, UNKNOWN_SPEAKER

logger = logging.getLogger(__name__)


class TurnBuffer:
    """Buffers transcript text until the perception channel signals a turn end.

    Short commits (filler like "uh", "ok") are dropped as noise.
    """

    def __init__(self, min_chars: int = 5, clock: Callable[[], float] = time.time):
        self.min_chars = min_chars
        self._clock = clock
        self._pending: List[str] = []
        self.turns: List[ConversationTurn] = []

    @property
    def pending_text(self) -> str:
        return "".join(self._pending)

    def append(self, fragment: str) -> None:
        if fragment:
            self._pending.append(fragment)

    def complete_turn(self) -> Optional[ConversationTurn]:
        """Commit the buffered text as a turn if it is long enough.

        The buffer is cleared either way. Returns the new turn, or None
        when the text was discarded.
        """
        text = self.pending_text.strip()
        self._pending.clear()

        if len(text) <= self.min_chars:
            return None

        turn = ConversationTurn(speaker=UNKNOWN_SPEAKER, text=text, timestamp=self._clock())
        self.turns.append(turn)
        logger.debug("[TURN] committed %d chars", len(text))
        return turn

    def patch_last_speaker(self, speaker: str) -> bool:
        """Attribute the most recent turn to speaker if it is still unattributed."""
        if not self.turns or not speaker:
            return False
        last = self.turns[-1]
        if last.speaker != UNKNOWN_SPEAKER:
            return False
        last.speaker = speaker
        return True

    def recent(self, n: int) -> List[ConversationTurn]:
        if n <= 0:
            return []
        return self.turns[-n:]

    def reset(self) -> None:
        self._pending.clear()
        self.turns.clear()
