"""Configuration management for API keys and settings."""

import os
from typing import Optional
from pathlib import Path

from dotenv import load_dotenv

# config.py is in meeting_coach/, .env is in project root
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(env_path)


def _float_env(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


class Config:
    """Application configuration from environment variables."""

    # Gemini API key (required for both the perception channel and the gemini coach)
    GEMINI_API_KEY: Optional[str] = os.getenv("GEMINI_API_KEY")

    # Perception endpoint (Live API)
    PERCEPTION_MODEL: str = os.getenv(
        "PERCEPTION_MODEL", "gemini-2.5-flash-native-audio-preview-12-2025"
    )

    # Reasoning endpoint
    COACH_PROVIDER: str = os.getenv("COACH_PROVIDER", "gemini")  # "gemini" or "ollama"
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
    GEMINI_BASE_URL: str = os.getenv("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com")
    OLLAMA_URL: str = os.getenv("OLLAMA_URL", "http://127.0.0.1:11434")
    OLLAMA_MODEL: str = os.getenv("OLLAMA_MODEL", "gemma3:4b")
    COACH_TIMEOUT_SECONDS: float = _float_env("COACH_TIMEOUT_SECONDS", 90.0)

    # Coach throttle and turn buffering
    COACH_COOLDOWN_SECONDS: float = _float_env("COACH_COOLDOWN_SECONDS", 5.0)
    COACH_CONTEXT_TURNS: int = _int_env("COACH_CONTEXT_TURNS", 5)
    MIN_TURN_CHARS: int = _int_env("MIN_TURN_CHARS", 5)

    # Microphone capture
    AUDIO_SAMPLE_RATE: int = _int_env("AUDIO_SAMPLE_RATE", 16000)
    AUDIO_BLOCKSIZE: int = _int_env("AUDIO_BLOCKSIZE", 4096)
    AUDIO_DEVICE: Optional[str] = os.getenv("AUDIO_DEVICE") or None

    DEFAULT_LANGUAGE: str = os.getenv("DEFAULT_LANGUAGE", "en")

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    HOST: str = os.getenv("HOST", "127.0.0.1")
    PORT: int = _int_env("PORT", 8010)

    @classmethod
    def validate(cls) -> list[str]:
        """Validate configuration and return list of missing required settings."""
        missing = []

        if not cls.GEMINI_API_KEY:
            missing.append("GEMINI_API_KEY (required for the live perception channel)")

        if cls.COACH_PROVIDER not in ("gemini", "ollama"):
            missing.append(f"COACH_PROVIDER must be 'gemini' or 'ollama', got '{cls.COACH_PROVIDER}'")

        return missing

    @classmethod
    def audio_device(cls):
        """Return AUDIO_DEVICE as an index when numeric, else the name (or None)."""
        dev = cls.AUDIO_DEVICE
        if dev is None:
            return None
        return int(dev) if dev.isdigit() else dev
