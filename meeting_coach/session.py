"""Session controller: microphone -> perception channel -> turns/roster -> coach.

One controller owns every handle of the active session (microphone,
perception channel, event pump, in-flight coach calls). Each start bumps
``state.generation``; work started for an older generation is ignored when
it finishes, so a slow reasoning reply can never leak into the next session.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional, Set, Union

from meeting_coach.audio import MicrophoneCapture
from meeting_coach.coach import CoachThrottle, request_advice
from meeting_coach.config import Config
from meeting_coach.localization import get_supported_languages, get_translations
from meeting_coach.models import (
    Advice,
    AdviceCategory,
    ConnectionStatus,
    InterestPoint,
    MeetingPhase,
    format_elapsed,
)
from meeting_coach.participants import reconcile, reconcile_detected
from meeting_coach.perception import (
    GeminiLiveChannel,
    PerceptionChannel,
    PerceptionEvent,
    ToolInvocation,
    TranscriptFragment,
    TurnComplete,
)
from meeting_coach.prompt import perception_instruction
from meeting_coach.schema import (
    COACH_SPEAKER,
    InterestPointsArgs,
    SpeakerActivityArgs,
    parse_tool_args,
)
from meeting_coach.state import SessionState
from meeting_coach.tools import PERCEPTION_TOOLS, TOOL_ACKS

logger = logging.getLogger(__name__)

Advisor = Callable[[str, str], Awaitable[Dict[str, Any]]]
Device = Optional[Union[int, str]]


def _default_microphone(device: Device) -> MicrophoneCapture:
    return MicrophoneCapture(
        device=device if device is not None else Config.audio_device(),
        sample_rate=Config.AUDIO_SAMPLE_RATE,
        blocksize=Config.AUDIO_BLOCKSIZE,
    )


def _log_dropped_frame(fut) -> None:
    if fut.cancelled():
        return
    exc = fut.exception()
    if exc is not None:
        logger.debug("[AUDIO] dropped frame: %s", exc)


class SessionController:
    def __init__(
        self,
        channel_factory: Callable[[], PerceptionChannel] = GeminiLiveChannel,
        microphone_factory: Callable[[Device], Any] = _default_microphone,
        advisor: Advisor = request_advice,
        throttle: Optional[CoachThrottle] = None,
        min_turn_chars: Optional[int] = None,
    ):
        self.state = SessionState()
        self.throttle = throttle or CoachThrottle(
            cooldown_s=Config.COACH_COOLDOWN_SECONDS,
            context_turns=Config.COACH_CONTEXT_TURNS,
        )
        self._channel_factory = channel_factory
        self._microphone_factory = microphone_factory
        self._advisor = advisor
        self._min_turn_chars = Config.MIN_TURN_CHARS if min_turn_chars is None else min_turn_chars

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._channel: Optional[PerceptionChannel] = None
        self._mic = None
        self._pump_task: Optional[asyncio.Task] = None
        self._coach_tasks: Set[asyncio.Task] = set()
        self._coach_pending = 0
        self._active_generation: Optional[int] = None

    # ---- lifecycle ----

    def snapshot(self) -> Dict[str, Any]:
        return self.state.snapshot()

    async def start(self, language: Optional[str] = None, device: Device = None) -> Dict[str, Any]:
        """Acquire the microphone, open the perception channel and start streaming."""
        if self.state.status in (ConnectionStatus.CONNECTING, ConnectionStatus.CONNECTED):
            return self.snapshot()

        lang = (language or Config.DEFAULT_LANGUAGE).lower()
        if lang not in get_supported_languages():
            raise ValueError(f"Unsupported language '{lang}'. Supported: {', '.join(get_supported_languages())}")

        self._loop = asyncio.get_running_loop()
        self.state.generation += 1
        generation = self.state.generation
        self.state.reset(lang, self._min_turn_chars)
        self.throttle.reset()
        self._coach_pending = 0
        self.state.status = ConnectionStatus.CONNECTING
        self._add_coach_message(get_translations(lang)["welcome_message"])
        logger.info("[SESSION] starting generation=%d lang=%s", generation, lang)

        mic = channel = None
        try:
            mic = self._microphone_factory(device)
            mic.open()
            self._mic = mic

            channel = self._channel_factory()
            self._channel = channel
            await channel.connect(perception_instruction(lang), PERCEPTION_TOOLS)

            if not self._is_connecting(generation):
                # stopped (and maybe restarted) while connecting
                await self._discard(mic, channel)
                return self.snapshot()

            self._active_generation = generation
            self.state.status = ConnectionStatus.CONNECTED
            self.state.touch()
            mic.start(self._on_audio_block)
        except Exception as e:
            logger.error("[SESSION] start failed: %s", e)
            if generation != self.state.generation or self.state.status == ConnectionStatus.DISCONNECTED:
                # stopped while connecting; the controller's handles may belong to a newer session
                await self._discard(mic, channel)
                return self.snapshot()
            await self._release()
            self.state.status = ConnectionStatus.ERROR
            self.state.last_error = str(e) or type(e).__name__
            self.state.touch()
            return self.snapshot()

        self._pump_task = asyncio.create_task(self._pump_events(channel, generation))
        logger.info("[SESSION] connected generation=%d", generation)
        return self.snapshot()

    async def stop(self) -> Dict[str, Any]:
        """Close the channel and release the microphone. Coach calls in flight are ignored."""
        if self.state.status == ConnectionStatus.DISCONNECTED and self._channel is None and self._mic is None:
            return self.snapshot()
        await self._release()
        self._mark_disconnected("")
        logger.info("[SESSION] stopped generation=%d", self.state.generation)
        return self.snapshot()

    def advance_phase(self) -> bool:
        """Briefing -> meeting. Explicit user action only; no-op outside a live briefing."""
        if self.state.status != ConnectionStatus.CONNECTED or self.state.phase != MeetingPhase.BRIEFING:
            return False
        self.state.phase = MeetingPhase.MEETING
        self._add_coach_message(get_translations(self.state.language)["ready_message"])
        logger.info("[SESSION] phase -> meeting")
        return True

    def _is_current(self, generation: int) -> bool:
        return self._active_generation is not None and self._active_generation == generation

    def _is_connecting(self, generation: int) -> bool:
        return generation == self.state.generation and self.state.status == ConnectionStatus.CONNECTING

    def _mark_disconnected(self, error: str) -> None:
        self.state.status = ConnectionStatus.DISCONNECTED
        self.state.last_transcript = ""
        self.state.level = 0.0
        self.state.coach_thinking = False
        self._coach_pending = 0
        if error:
            self.state.last_error = error
        self.state.touch()

    async def _release(self) -> None:
        mic, self._mic = self._mic, None
        channel, self._channel = self._channel, None
        pump, self._pump_task = self._pump_task, None
        self._active_generation = None

        if pump is not None and pump is not asyncio.current_task():
            pump.cancel()
            await asyncio.wait([pump])

        await self._discard(mic, channel)

    async def _discard(self, mic, channel: Optional[PerceptionChannel]) -> None:
        """Close handles directly, without touching the controller's own."""
        if mic is not None:
            try:
                mic.close()
            except Exception as e:
                logger.warning("[AUDIO] error releasing microphone: %s", e)

        if channel is not None:
            await self._close_quietly(channel)

    async def _close_quietly(self, channel: PerceptionChannel) -> None:
        try:
            await channel.close()
        except Exception as e:
            logger.warning("[PERCEPTION] error closing channel: %s", e)

    # ---- perception events ----

    async def _pump_events(self, channel: PerceptionChannel, generation: int) -> None:
        try:
            async for event in channel.events():
                if not self._is_current(generation):
                    break
                await self._handle_event(channel, event, generation)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("[SESSION] perception channel error: %s", e)
            error = str(e) or type(e).__name__
        else:
            logger.info("[SESSION] perception channel closed")
            error = ""

        if self._is_current(generation):
            await self._release()
            self._mark_disconnected(error)

    async def _handle_event(self, channel: PerceptionChannel, event: PerceptionEvent, generation: int) -> None:
        if isinstance(event, TranscriptFragment):
            self.state.buffer.append(event.text)
            self.state.last_transcript = self.state.buffer.pending_text.strip() or event.text
            self.state.touch()
        elif isinstance(event, TurnComplete):
            turn = self.state.buffer.complete_turn()
            if turn is not None:
                self.state.touch()
                self._maybe_request_advice(generation)
        elif isinstance(event, ToolInvocation):
            await self._handle_tool_call(channel, event)

    async def _handle_tool_call(self, channel: PerceptionChannel, call: ToolInvocation) -> None:
        try:
            args = parse_tool_args(call.name, call.args)
        except ValueError as e:
            logger.warning("[SESSION] rejected tool call %s (%s): %s", call.name, call.id, e)
            response = {"acknowledged": False, "error": str(e)}
        else:
            if isinstance(args, SpeakerActivityArgs):
                self._on_speaker_activity(args)
            elif isinstance(args, InterestPointsArgs):
                self._on_interest_points(args)
            response = TOOL_ACKS[call.name]

        try:
            await channel.send_tool_response(call.id, call.name, response)
        except Exception as e:
            logger.warning("[PERCEPTION] failed to acknowledge %s (%s): %s", call.name, call.id, e)

    def _on_speaker_activity(self, args: SpeakerActivityArgs) -> None:
        category = "emotion" if args.emotion else "context"
        speaker = reconcile(
            self.state.participants, args.speaker, category, args.emotion, self.state.language
        )
        self.state.buffer.patch_last_speaker(speaker.name)
        self.state.touch()

    def _on_interest_points(self, args: InterestPointsArgs) -> None:
        self.state.interest_points = [InterestPoint(text=p.text, kind=p.kind) for p in args.normalized()]
        self.state.touch()

    # ---- audio ----

    def _on_audio_block(self, pcm: bytes, rms: float) -> None:
        """Runs on the PortAudio thread. Fire-and-forget; a lost frame never stops the stream."""
        loop, channel, generation = self._loop, self._channel, self._active_generation
        if loop is None or channel is None or generation is None:
            return
        try:
            fut = asyncio.run_coroutine_threadsafe(self._send_frame(channel, pcm, rms, generation), loop)
        except RuntimeError:
            # loop closed
            return
        fut.add_done_callback(_log_dropped_frame)

    async def _send_frame(self, channel: PerceptionChannel, pcm: bytes, rms: float, generation: int) -> None:
        if not self._is_current(generation):
            return
        self.state.level = rms
        await channel.send_audio(pcm)

    # ---- coach ----

    def _maybe_request_advice(self, generation: int) -> None:
        context = self.throttle.try_acquire(self.state.buffer.turns)
        if context is None:
            return
        self._coach_pending += 1
        self.state.coach_thinking = True
        self.state.touch()
        task = asyncio.create_task(self._run_coach(context, generation, self.state.language))
        self._coach_tasks.add(task)
        task.add_done_callback(self._coach_tasks.discard)

    async def _run_coach(self, context: str, generation: int, lang: str) -> None:
        try:
            result = await self._advisor(context, lang)
        except Exception as e:
            logger.warning("[COACH] reasoning call failed: %s", e)
            result = None

        if not self._is_current(generation):
            logger.info("[COACH] discarding reply for finished session %d", generation)
            return

        self._coach_pending = max(0, self._coach_pending - 1)
        self.state.coach_thinking = self._coach_pending > 0
        if result is not None:
            self._apply_coach_result(result)
        self.state.touch()

    def _apply_coach_result(self, result: Dict[str, Any]) -> None:
        try:
            category = AdviceCategory(result.get("category"))
        except ValueError:
            category = AdviceCategory.NEGOTIATION
        self.state.advices.append(Advice(
            timestamp=self._elapsed(),
            category=category,
            observation=str(result.get("observation", "")),
            suggestion=str(result.get("suggestion", "")),
            speaker=str(result.get("speaker") or COACH_SPEAKER),
        ))
        reconcile_detected(self.state.participants, result.get("detected_speakers") or [], self.state.language)

    def _add_coach_message(self, text: str) -> None:
        self.state.advices.append(Advice(
            timestamp=self._elapsed(),
            category=AdviceCategory.NEGOTIATION,
            observation="System",
            suggestion=text,
            speaker=COACH_SPEAKER,
        ))
        self.state.touch()

    def _elapsed(self) -> str:
        return format_elapsed(time.time() - self.state.started_at)
