from __future__ import annotations

import logging
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional

from meeting_coach.config import Config
from meeting_coach.models import ConversationTurn
from meeting_coach.prompt import build_coach_context
from meeting_coach.providers import gemini as gemini_provider
from meeting_coach.providers import ollama as ollama_provider

logger = logging.getLogger(__name__)

ProviderFn = Callable[..., Awaitable[Dict[str, Any]]]

# Provider registry
PROVIDERS: Dict[str, ProviderFn] = {
    "gemini": gemini_provider.generate,
    "ollama": ollama_provider.generate,
}


class CoachThrottle:
    """
    Gate for reasoning calls: at most one accepted request per cooldown,
    and none until there is at least one turn to talk about.
    """

    def __init__(
        self,
        cooldown_s: float = 5.0,
        context_turns: int = 5,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.cooldown_s = float(cooldown_s)
        self.context_turns = int(context_turns)
        self._clock = clock
        self._last_accepted: Optional[float] = None

    def try_acquire(self, turns: List[ConversationTurn]) -> Optional[str]:
        """
        Returns the context block for a reasoning call when the request is
        accepted, or None when it is a no-op.
        """
        if not turns:
            return None
        now = self._clock()
        if self._last_accepted is not None and (now - self._last_accepted) < self.cooldown_s:
            return None
        self._last_accepted = now
        return build_coach_context(turns[-self.context_turns:])

    def reset(self) -> None:
        self._last_accepted = None


def _get_provider_name() -> str:
    return (Config.COACH_PROVIDER or "gemini").strip().lower()


async def request_advice(context: str, lang: str = "en", provider_name: Optional[str] = None) -> Dict[str, Any]:
    """
    Async reasoning call.

    Returns the normalized coach output:
      {category, observation, suggestion, detected_speakers, speaker}
    """
    name = (provider_name or _get_provider_name()).strip().lower()
    provider = PROVIDERS.get(name)
    if provider is None:
        raise RuntimeError(
            f"Unknown provider '{name}'. Valid: {', '.join(PROVIDERS.keys())}"
        )

    logger.debug("[COACH] %s request, %d chars of context", name, len(context))
    return await provider(context, lang=lang)
