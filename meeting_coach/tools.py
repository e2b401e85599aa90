"""Declarative tool and response schemas sent to the two agents."""

from meeting_coach.models import AdviceCategory

IDENTIFY_SPEAKER_TOOL = {
    "name": "identify_speaker_activity",
    "description": "Report who is speaking right now, as soon as the voice changes.",
    "parameters": {
        "type": "OBJECT",
        "properties": {
            "speaker": {
                "type": "STRING",
                "description": 'Speaker label: "User", a known name, or "Interlocutor N".',
            },
            "emotion": {
                "type": "STRING",
                "description": "Short note on the speaker's tone or emotion.",
            },
        },
        "required": ["speaker"],
    },
}

INTEREST_POINTS_TOOL = {
    "name": "update_meeting_interest_points",
    "description": "Replace the list of meeting goals, numbers and key constraints.",
    "parameters": {
        "type": "OBJECT",
        "properties": {
            "points": {
                "type": "ARRAY",
                "items": {
                    "type": "OBJECT",
                    "properties": {
                        "text": {"type": "STRING", "description": "The point, in a few words."},
                        "kind": {
                            "type": "STRING",
                            "enum": ["goal", "context", "tactic"],
                            "description": "goal: what the user wants; context: a fact or constraint; "
                                           "tactic: how to get there.",
                        },
                    },
                    "required": ["text", "kind"],
                },
                "description": "Key points or goals extracted from the conversation.",
            },
        },
        "required": ["points"],
    },
}

PERCEPTION_TOOLS = [IDENTIFY_SPEAKER_TOOL, INTEREST_POINTS_TOOL]

TOOL_ACKS = {
    IDENTIFY_SPEAKER_TOOL["name"]: {"acknowledged": True},
    INTEREST_POINTS_TOOL["name"]: {"updated": True},
}

# Gemini responseSchema (OpenAPI subset)
COACH_RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "category": {
            "type": "STRING",
            "enum": [c.value for c in AdviceCategory],
        },
        "observation": {"type": "STRING"},
        "suggestion": {"type": "STRING"},
        "detected_speakers": {
            "type": "ARRAY",
            "items": {"type": "STRING"},
        },
        "speaker": {"type": "STRING"},
    },
    "required": ["category", "observation", "suggestion", "detected_speakers"],
}

# Same contract as JSON Schema, for providers that take one (ollama "format")
COACH_RESPONSE_JSON_SCHEMA = {
    "type": "object",
    "properties": {
        "category": {"type": "string", "enum": [c.value for c in AdviceCategory]},
        "observation": {"type": "string"},
        "suggestion": {"type": "string"},
        "detected_speakers": {"type": "array", "items": {"type": "string"}},
        "speaker": {"type": "string"},
    },
    "required": ["category", "observation", "suggestion", "detected_speakers"],
}
