"""
Shared test fixtures for the meeting coach.

Provides:
- FakeChannel: scripted perception channel (bypasses the Live API)
- FakeMicrophone: microphone that emits blocks on demand (bypasses PortAudio)
- FakeAdvisor: reasoning endpoint with canned replies (bypasses Gemini/Ollama)
- FakeClock for the coach throttle
"""

import asyncio
from typing import Any, Dict, List, Optional

import pytest

from meeting_coach.coach import CoachThrottle
from meeting_coach.models import ConversationTurn
from meeting_coach.perception import PerceptionChannel
from meeting_coach.session import SessionController

_CLOSE = object()


async def settle(rounds: int = 20):
    """Let scheduled tasks and callbacks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeChannel(PerceptionChannel):
    def __init__(self, connect_error: Optional[Exception] = None, gate: Optional[asyncio.Event] = None):
        self.connect_error = connect_error
        self.gate = gate
        self.instruction: Optional[str] = None
        self.tools: Optional[List[Dict[str, Any]]] = None
        self.connected = False
        self.closed = False
        self.audio: List[bytes] = []
        self.acks: List[tuple] = []
        self.audio_error: Optional[Exception] = None
        self._queue: asyncio.Queue = asyncio.Queue()

    async def connect(self, system_instruction, tools):
        if self.gate is not None:
            await self.gate.wait()
        if self.connect_error is not None:
            raise self.connect_error
        self.instruction = system_instruction
        self.tools = tools
        self.connected = True

    async def send_audio(self, pcm):
        if self.audio_error is not None:
            error, self.audio_error = self.audio_error, None
            raise error
        self.audio.append(pcm)

    async def send_tool_response(self, call_id, name, response):
        self.acks.append((call_id, name, response))

    async def events(self):
        while True:
            item = await self._queue.get()
            if item is _CLOSE:
                return
            if isinstance(item, Exception):
                raise item
            yield item

    async def close(self):
        self.closed = True

    def push(self, *events):
        for event in events:
            self._queue.put_nowait(event)

    def server_close(self):
        self._queue.put_nowait(_CLOSE)

    def server_error(self, error: Exception):
        self._queue.put_nowait(error)


class FakeMicrophone:
    def __init__(self, open_error: Optional[Exception] = None, start_error: Optional[Exception] = None):
        self.open_error = open_error
        self.start_error = start_error
        self.opened = False
        self.closed = False
        self.handler = None

    def open(self):
        if self.open_error is not None:
            raise self.open_error
        self.opened = True

    def start(self, handler):
        if self.start_error is not None:
            raise self.start_error
        self.handler = handler

    def emit(self, pcm: bytes, rms: float = 0.1):
        if self.handler is not None:
            self.handler(pcm, rms)

    def close(self):
        self.handler = None
        self.closed = True


class FakeAdvisor:
    """Records calls; replies with queued results (dicts or exceptions)."""

    def __init__(self):
        self.calls: List[tuple] = []
        self.replies: List[Any] = []
        self.gate: Optional[asyncio.Event] = None

    def reply(self, **overrides):
        result = {
            "category": "negotiation",
            "observation": "They anchored high.",
            "suggestion": "Ask about the budget.",
            "detected_speakers": [],
            "speaker": "Coach",
        }
        result.update(overrides)
        self.replies.append(result)

    async def __call__(self, context: str, lang: str):
        self.calls.append((context, lang))
        if self.gate is not None:
            await self.gate.wait()
        result = self.replies.pop(0) if self.replies else {
            "category": "tone",
            "observation": "Calm exchange.",
            "suggestion": "Keep going.",
            "detected_speakers": [],
        }
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def advisor() -> FakeAdvisor:
    return FakeAdvisor()


@pytest.fixture
def channels() -> List[FakeChannel]:
    """Every channel the controller created, in order."""
    return []


@pytest.fixture
def microphones() -> List[FakeMicrophone]:
    return []


@pytest.fixture
def controller(clock, advisor, channels, microphones) -> SessionController:
    def channel_factory():
        channel = FakeChannel()
        channels.append(channel)
        return channel

    def microphone_factory(device):
        mic = FakeMicrophone()
        microphones.append(mic)
        return mic

    return SessionController(
        channel_factory=channel_factory,
        microphone_factory=microphone_factory,
        advisor=advisor,
        throttle=CoachThrottle(cooldown_s=5.0, context_turns=5, clock=clock),
        min_turn_chars=5,
    )


@pytest.fixture
def sample_turns() -> List[ConversationTurn]:
    return [
        ConversationTurn(speaker="User", text="We need delivery by March.", timestamp=1.0),
        ConversationTurn(speaker="Interlocutor 1", text="March is tight for us.", timestamp=2.0),
        ConversationTurn(speaker="User", text="What would make it possible?", timestamp=3.0),
        ConversationTurn(speaker="Interlocutor 1", text="A bigger deposit, maybe.", timestamp=4.0),
        ConversationTurn(speaker="User", text="How big are we talking?", timestamp=5.0),
        ConversationTurn(speaker="Interlocutor 1", text="Thirty percent upfront.", timestamp=6.0),
    ]
