from __future__ import annotations
import httpx
from typing import Any, Dict

from meeting_coach.config import Config
from meeting_coach.schema import try_parse_json, normalize_coach_output
from meeting_coach.prompt import coach_instruction
from meeting_coach.tools import COACH_RESPONSE_SCHEMA


async def generate(context: str, *, lang: str = "en") -> Dict[str, Any]:
    """
    Reasoning call through the Gemini Developer API generateContent endpoint,
    constrained to the coach response schema.
    """
    api_key = (Config.GEMINI_API_KEY or "").strip()
    if not api_key:
        raise RuntimeError("GEMINI_API_KEY is not set. Add it to .env to enable the Gemini coach.")

    base_url = Config.GEMINI_BASE_URL.rstrip("/")
    model = Config.GEMINI_MODEL.strip()

    # Gemini REST: POST /v1beta/models/{model}:generateContent
    url = f"{base_url}/v1beta/models/{model}:generateContent"

    body = {
        "systemInstruction": {"parts": [{"text": coach_instruction(lang)}]},
        "contents": [
            {"role": "user", "parts": [{"text": context}]}
        ],
        "generationConfig": {
            "responseMimeType": "application/json",
            "responseSchema": COACH_RESPONSE_SCHEMA,
        },
    }

    headers = {
        "Content-Type": "application/json",
        "x-goog-api-key": api_key,
    }

    async with httpx.AsyncClient(timeout=Config.COACH_TIMEOUT_SECONDS) as client:
        r = await client.post(url, json=body, headers=headers)
        r.raise_for_status()
        data = r.json()

    # Extract text
    candidates = data.get("candidates") or []
    if not candidates:
        raise ValueError(f"Gemini returned no candidates: {str(data)[:200]}")
    parts = ((candidates[0].get("content") or {}).get("parts") or [])
    text = "".join([p.get("text", "") for p in parts if isinstance(p, dict)])

    parsed = try_parse_json(text)
    return normalize_coach_output(parsed, provider="gemini")
