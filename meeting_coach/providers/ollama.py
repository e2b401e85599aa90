from __future__ import annotations
import httpx
from typing import Any, Dict

from meeting_coach.config import Config
from meeting_coach.schema import try_parse_json, normalize_coach_output
from meeting_coach.prompt import coach_prompt
from meeting_coach.tools import COACH_RESPONSE_JSON_SCHEMA


async def generate(context: str, *, lang: str = "en") -> Dict[str, Any]:
    base_url = Config.OLLAMA_URL.rstrip("/")
    model = Config.OLLAMA_MODEL

    payload = {
        "model": model,
        "messages": [{"role": "user", "content": coach_prompt(context, lang)}],
        "stream": False,
        # structured output; small local models still need the prompt to say it
        "format": COACH_RESPONSE_JSON_SCHEMA,
        "options": {
            "temperature": 0.2,
            "top_p": 0.9,
        },
    }

    async with httpx.AsyncClient(timeout=Config.COACH_TIMEOUT_SECONDS) as client:
        r = await client.post(f"{base_url}/api/chat", json=payload)
        r.raise_for_status()
        data = r.json()

    content = (data.get("message") or {}).get("content", "") or ""
    parsed = try_parse_json(content)
    return normalize_coach_output(parsed, provider="ollama")
