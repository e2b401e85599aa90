from __future__ import annotations
from typing import Iterable, List

from meeting_coach.localization import get_translations
from meeting_coach.models import ConversationTurn


def build_coach_context(turns: Iterable[ConversationTurn]) -> str:
    """
    Render turns as speaker-prefixed lines (most recent last).
    This block is the reasoning agent's only view of the meeting.
    """
    lines: List[str] = []
    for t in turns:
        text = (t.text or "").strip().replace("\n", " ")
        if not text:
            continue
        lines.append(f"{t.speaker}: {text}")
    return "\n".join(lines)


def perception_instruction(lang: str) -> str:
    """Perception agent: fast transcription, speaker changes, goal tracking. No advice."""
    lang_name = get_translations(lang)["language_name"]
    return f"""You are the PERCEPTION ENGINE for a professional meeting.

YOUR CORE MISSION: ACOUSTIC SPEAKER SEPARATION.
Distinguish speakers by voice texture, pitch and tone.

INSTRUCTIONS:
1. LISTEN continuously.
2. When the voice changes, call 'identify_speaker_activity' IMMEDIATELY.
   Do not wait for a full sentence if the speaker has clearly changed.
3. SPEAKER LABELS:
   - MAIN USER: the person running the app. Label as "User" (or the {lang_name} equivalent).
   - KNOWN NAMES: if a name is mentioned, use it.
   - UNKNOWN VOICES: "Interlocutor 1", "Interlocutor 2", ... one label per distinct voice.
     Never group different voices under one label.
4. When goals, numbers or key constraints are mentioned, call 'update_meeting_interest_points'
   with the full, current list. Tag each point as a goal (what the user wants),
   context (a fact, number or constraint) or tactic (how to get there).

All labels and notes MUST be in {lang_name}.

CONSTRAINTS:
- DO NOT provide advice.
- DO NOT generate audio. Remain silent.
"""


def coach_instruction(lang: str) -> str:
    """Reasoning agent: deeper analysis of the last few turns, one piece of advice."""
    lang_name = get_translations(lang)["language_name"]
    return f"""You are an expert NEGOTIATION COACH.

INPUT: a transcript of the last few turns of a meeting, one "speaker: text" line per turn.

TASK:
1. Analyze the hidden dynamics and emotional states.
2. List who is present in the conversation (detected_speakers).
3. Give ONE concise, high-impact piece of advice.

OUTPUT: JSON only, with keys
- category: "negotiation" | "tone" | "argument" | "emotion"
- observation: brief context (in {lang_name})
- suggestion: at most 15 words, imperative, starts with a verb (in {lang_name})
- detected_speakers: array of speaker labels
- speaker: "Coach"
"""


def coach_prompt(context: str, lang: str) -> str:
    """Single-string prompt for providers without a system role."""
    return f"""{coach_instruction(lang)}
TRANSCRIPT (most recent last):
{context if context else "[No transcript yet]"}

Output JSON only. No markdown. No extra keys.
"""
