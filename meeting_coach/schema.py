from __future__ import annotations
from typing import Any, Dict, List, Literal, Optional, Union
import json

from pydantic import BaseModel, Field, ValidationError, field_validator

from meeting_coach.models import AdviceCategory

DEFAULT_CATEGORY = AdviceCategory.NEGOTIATION.value
COACH_SPEAKER = "Coach"


def try_parse_json(text: str) -> Dict[str, Any]:
    """
    Best-effort JSON extraction (handles occasional extra text or code fences around JSON).
    """
    if text is None:
        raise ValueError("Empty response")
    s = text.strip()
    if not s:
        raise ValueError("Empty response")

    # direct JSON
    if s.startswith("{") and s.endswith("}"):
        return json.loads(s)

    # try to extract first {...last}
    start = s.find("{")
    end = s.rfind("}")
    if start != -1 and end != -1 and end > start:
        return json.loads(s[start:end+1])

    raise ValueError(f"No JSON object in response: {s[:200]}")


def normalize_coach_output(obj: Dict[str, Any], provider: str) -> Dict[str, Any]:
    """
    Ensure a stable schema so the session never depends on provider-specific formatting.
    Raises ValueError when there is no advice to show.
    """
    if not isinstance(obj, dict):
        raise ValueError(f"{provider} response is not a JSON object")

    out: Dict[str, Any] = {}
    category = str(obj.get("category", "")).strip().lower()
    valid = {c.value for c in AdviceCategory}
    out["category"] = category if category in valid else DEFAULT_CATEGORY
    out["observation"] = str(obj.get("observation", "") or "").strip()
    out["suggestion"] = str(obj.get("suggestion", "") or "").strip()
    if not out["suggestion"]:
        raise ValueError(f"{provider} response has no suggestion")

    speakers = obj.get("detected_speakers", [])
    if isinstance(speakers, str):
        speakers = [speakers]
    if not isinstance(speakers, list):
        speakers = []
    out["detected_speakers"] = [str(x).strip() for x in speakers if x is not None and str(x).strip()]
    out["speaker"] = str(obj.get("speaker", "") or "").strip() or COACH_SPEAKER
    return out


# ---- perception tool arguments ----

class SpeakerActivityArgs(BaseModel):
    speaker: str = Field(min_length=1)
    emotion: Optional[str] = None

    @field_validator("speaker")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("speaker is blank")
        return v.strip()


class InterestPointArg(BaseModel):
    text: str = Field(min_length=1)
    kind: Literal["goal", "context", "tactic"] = "goal"


class InterestPointsArgs(BaseModel):
    # bare strings are accepted as goals
    points: List[Union[str, InterestPointArg]]

    def normalized(self) -> List[InterestPointArg]:
        out = []
        for p in self.points:
            if isinstance(p, str):
                if p.strip():
                    out.append(InterestPointArg(text=p.strip()))
            elif p.text.strip():
                out.append(InterestPointArg(text=p.text.strip(), kind=p.kind))
        return out


TOOL_ARG_MODELS = {
    "identify_speaker_activity": SpeakerActivityArgs,
    "update_meeting_interest_points": InterestPointsArgs,
}


def parse_tool_args(name: str, args: Any) -> BaseModel:
    """Validate a tool call's arguments. Raises ValueError for unknown tools or bad args."""
    model = TOOL_ARG_MODELS.get(name)
    if model is None:
        raise ValueError(f"Unknown tool '{name}'")
    try:
        return model.model_validate(args or {})
    except ValidationError as e:
        raise ValueError(f"Invalid arguments for '{name}': {e.error_count()} error(s)") from e
