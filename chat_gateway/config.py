"""Configuration management for the chat gateway."""

import os
from typing import Dict, List, Optional

from dotenv import load_dotenv

load_dotenv()


# English display names for the language codes the engine may support
LANGUAGE_DISPLAY_NAMES: Dict[str, str] = {
    "en": "English",
    "fr": "French",
    "de": "German",
    "it": "Italian",
    "es": "Spanish",
    "pt": "Portuguese",
    "ja": "Japanese",
    "ko": "Korean",
    "zh": "Chinese",
    "nl": "Dutch",
    "sv": "Swedish",
    "da": "Danish",
    "nb": "Norwegian",
    "tr": "Turkish",
    "vi": "Vietnamese",
}


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings:
    """Application settings."""

    # Server
    PORT: int = int(os.getenv("PORT", "11535"))
    HOST: str = os.getenv("HOST", "0.0.0.0")
    SERVER_VERSION: str = os.getenv("SERVER_VERSION", "1.0.0")

    # Model identity as seen by OpenAI clients
    MODEL_NAME: str = os.getenv("MODEL_NAME", "AFM-on-device")
    MODEL_OWNER: str = os.getenv("MODEL_OWNER", "AFM-on-device-openai")

    # Local engine
    ENGINE_BASE_URL: str = os.getenv("ENGINE_BASE_URL", "http://127.0.0.1:11434")
    ENGINE_MODEL: str = os.getenv("ENGINE_MODEL", "llama3.2")
    MAX_TIMEOUT: int = int(os.getenv("MAX_TIMEOUT", "600000"))  # milliseconds

    # Language gate
    SUPPORTED_LANGUAGES: List[str] = _split_csv(
        os.getenv("SUPPORTED_LANGUAGES", "en,fr,de,it,es,pt,ja,ko,zh")
    )
    LANGUAGE_MIN_CONFIDENCE: float = float(os.getenv("LANGUAGE_MIN_CONFIDENCE", "0.9"))
    LANGUAGE_MIN_LENGTH: int = int(os.getenv("LANGUAGE_MIN_LENGTH", "12"))

    # Vision
    OCR_LANG: str = os.getenv("OCR_LANG", "eng")
    OCR_CONFIG: str = os.getenv("OCR_CONFIG", "--oem 1 --psm 3")
    VISION_CLASSIFIER_MODEL: Optional[str] = os.getenv("VISION_CLASSIFIER_MODEL") or None
    VISION_MIN_CONFIDENCE: float = float(os.getenv("VISION_MIN_CONFIDENCE", "0.1"))
    VISION_ANALYSIS_DEFAULT: bool = os.getenv("VISION_ANALYSIS_DEFAULT", "true").lower() == "true"

    # Request limits
    MAX_REQUEST_BYTES: int = int(os.getenv("MAX_REQUEST_BYTES", str(50 * 1024 * 1024)))

    # Logging
    DEBUG_MODE: bool = os.getenv("DEBUG_MODE", "false").lower() == "true"
    LOG_TO_FILE: bool = os.getenv("LOG_TO_FILE", "false").lower() == "true"
    LOG_DIR: str = os.getenv("LOG_DIR", "logs")
    LOG_FILE: str = os.getenv("LOG_FILE", "gateway.log")
    DEBUG_LOG_PAYLOADS: bool = os.getenv("DEBUG_LOG_PAYLOADS", "false").lower() == "true"
    DEBUG_LOG_MAX_LENGTH: int = int(os.getenv("DEBUG_LOG_MAX_LENGTH", "2000"))

    @property
    def engine_timeout(self) -> float:
        """Engine HTTP timeout in seconds."""
        return self.MAX_TIMEOUT / 1000

    def supported_language_names(self) -> List[str]:
        """Display names of the supported languages, sorted."""
        return sorted(
            LANGUAGE_DISPLAY_NAMES.get(code, code) for code in self.SUPPORTED_LANGUAGES
        )


settings = Settings()
