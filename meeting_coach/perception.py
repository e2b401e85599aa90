"""Perception channel abstraction (live transcription + speaker/goal tool calls)."""

import logging
from abc import ABC, abstractmethod
from contextlib import AsyncExitStack
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Optional, Union

from google import genai
from google.genai import types

logger = logging.getLogger(__name__)


@dataclass
class TranscriptFragment:
    text: str


@dataclass
class TurnComplete:
    pass


@dataclass
class ToolInvocation:
    id: str
    name: str
    args: Dict[str, Any] = field(default_factory=dict)


PerceptionEvent = Union[TranscriptFragment, TurnComplete, ToolInvocation]


class PerceptionChannel(ABC):
    """Abstract interface for the fast, bidirectional perception endpoint."""

    @abstractmethod
    async def connect(self, system_instruction: str, tools: List[Dict[str, Any]]):
        """Open the channel. Returns once the endpoint confirms the session is open."""
        pass

    @abstractmethod
    async def send_audio(self, pcm: bytes):
        """Send one block of mono PCM16 audio."""
        pass

    @abstractmethod
    async def send_tool_response(self, call_id: str, name: str, response: Dict[str, Any]):
        """Acknowledge a tool invocation."""
        pass

    @abstractmethod
    def events(self) -> AsyncIterator[PerceptionEvent]:
        """Inbound events, in arrival order. Ends when the channel closes."""
        pass

    @abstractmethod
    async def close(self):
        """Close the channel and release the connection."""
        pass


def events_from_message(message: Any) -> List[PerceptionEvent]:
    """Translate one Live API server message into perception events."""
    out: List[PerceptionEvent] = []

    content = getattr(message, "server_content", None)
    if content is not None:
        transcription = getattr(content, "input_transcription", None)
        text = getattr(transcription, "text", None) if transcription is not None else None
        if text:
            out.append(TranscriptFragment(text=text))
        if getattr(content, "turn_complete", False):
            out.append(TurnComplete())

    tool_call = getattr(message, "tool_call", None)
    if tool_call is not None:
        for fc in getattr(tool_call, "function_calls", None) or []:
            out.append(ToolInvocation(id=fc.id or "", name=fc.name or "", args=dict(fc.args or {})))

    return out


class GeminiLiveChannel(PerceptionChannel):
    """Gemini Live API perception channel (google-genai)."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None, sample_rate: Optional[int] = None):
        from meeting_coach.config import Config

        self.api_key = api_key or Config.GEMINI_API_KEY
        self.model = model or Config.PERCEPTION_MODEL
        self.sample_rate = int(sample_rate or Config.AUDIO_SAMPLE_RATE)
        self._stack: Optional[AsyncExitStack] = None
        self._session = None
        self._closed = False

    async def connect(self, system_instruction: str, tools: List[Dict[str, Any]]):
        if not self.api_key:
            raise RuntimeError("GEMINI_API_KEY is required for the perception channel. Set it in your .env file.")

        client = genai.Client(api_key=self.api_key)
        config = types.LiveConnectConfig(
            response_modalities=[types.Modality.AUDIO],
            system_instruction=system_instruction,
            tools=[types.Tool(function_declarations=[types.FunctionDeclaration.model_validate(t) for t in tools])],
            input_audio_transcription=types.AudioTranscriptionConfig(),
        )

        stack = AsyncExitStack()
        try:
            self._session = await stack.enter_async_context(
                client.aio.live.connect(model=self.model, config=config)
            )
        except BaseException:
            await stack.aclose()
            raise
        self._stack = stack
        self._closed = False
        logger.info("[PERCEPTION] connected to %s", self.model)

    async def send_audio(self, pcm: bytes):
        if self._session is None or self._closed:
            return
        await self._session.send_realtime_input(
            audio=types.Blob(data=pcm, mime_type=f"audio/pcm;rate={self.sample_rate}")
        )

    async def send_tool_response(self, call_id: str, name: str, response: Dict[str, Any]):
        if self._session is None or self._closed:
            return
        await self._session.send_tool_response(
            function_responses=[types.FunctionResponse(id=call_id, name=name, response=response)]
        )

    async def events(self) -> AsyncIterator[PerceptionEvent]:
        if self._session is None:
            return
        while not self._closed:
            # receive() stops after each model turn; an empty pass means the socket closed
            received = False
            async for message in self._session.receive():
                received = True
                for event in events_from_message(message):
                    yield event
            if not received:
                logger.info("[PERCEPTION] channel closed by server")
                break

    async def close(self):
        self._closed = True
        stack, self._stack = self._stack, None
        self._session = None
        if stack is not None:
            await stack.aclose()
            logger.info("[PERCEPTION] closed")
