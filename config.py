import os
import logging

APP_TITLE = "OdontoAI Pro"
APP_ICON = "🦷"

# OpenAI
OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY", "")
TEXT_MODEL = os.environ.get("ODONTOAI_TEXT_MODEL", "gpt-4o-mini")
REASONING_MODEL = os.environ.get("ODONTOAI_REASONING_MODEL", "gpt-4o")
VISION_MODEL = os.environ.get("ODONTOAI_VISION_MODEL", "gpt-4o")
TRANSCRIPTION_MODEL = os.environ.get("ODONTOAI_TRANSCRIPTION_MODEL", "whisper-1")
TTS_MODEL = os.environ.get("ODONTOAI_TTS_MODEL", "tts-1")
TTS_VOICE = os.environ.get("ODONTOAI_TTS_VOICE", "alloy")
LANGUAGE = os.environ.get("ODONTOAI_LANGUAGE", "pt")

LOG_LEVEL = os.environ.get("ODONTOAI_LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

PIN_LENGTH = 4


def get_api_key(state):
    """Key typed on the settings page wins over the environment."""
    key = (state.get("openai_api_key") or "").strip()
    return key or OPENAI_API_KEY


def setup_logging(level=None):
    logging.basicConfig(level=(level or LOG_LEVEL).upper(), format=LOG_FORMAT)
