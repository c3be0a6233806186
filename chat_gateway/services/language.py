"""Language detection and the supported-language gate."""

import asyncio
import logging
import threading
from typing import Iterable, List, Optional, Sequence

from langdetect import DetectorFactory, LangDetectException, detect_langs, detector_factory

from ..config import settings
from ..errors import InvalidRequestError
from ..models.openai import Message

logger = logging.getLogger(__name__)

# langdetect is randomized unless seeded
DetectorFactory.seed = 0

# langdetect loads its profiles into a global factory on first use
_profiles_lock = threading.Lock()

# langdetect codes that differ from the engine's language codes
CODE_ALIASES = {
    "zh-cn": "zh",
    "zh-tw": "zh",
    "no": "nb",
}


def load_language_profiles() -> None:
    """Load langdetect's language profiles once, before any detection runs."""
    with _profiles_lock:
        if detector_factory._factory is None:
            detector_factory.init_factory()
            logger.debug("Loaded language detection profiles")


def normalize_language_code(code: str) -> str:
    code = code.lower()
    return CODE_ALIASES.get(code, code.split("-")[0])


def unsupported_language_message(language: Optional[str] = None) -> str:
    """Error message listing the supported languages and codes."""
    names = ", ".join(settings.supported_language_names())
    codes = ", ".join(settings.SUPPORTED_LANGUAGES)
    detected = f"Unsupported language '{language}' detected." if language else "Unsupported language detected."
    return (
        f"{detected} Supported languages: {names} (codes: {codes}). "
        "Please use English or another supported language."
    )


class LanguageDetector:
    """Dominant-language detection. Returns None when unsure."""

    def __init__(
        self,
        min_confidence: Optional[float] = None,
        min_length: Optional[int] = None,
    ):
        self.min_confidence = (
            settings.LANGUAGE_MIN_CONFIDENCE if min_confidence is None else min_confidence
        )
        self.min_length = settings.LANGUAGE_MIN_LENGTH if min_length is None else min_length
        load_language_profiles()

    def detect(self, text: str) -> Optional[str]:
        stripped = text.strip()
        if len(stripped) < self.min_length:
            return None

        load_language_profiles()
        try:
            candidates = detect_langs(stripped)
        except LangDetectException:
            return None

        if not candidates or candidates[0].prob < self.min_confidence:
            return None

        language = normalize_language_code(candidates[0].lang)
        logger.debug(f"Detected language: {language} for text: {stripped[:50]!r}")
        return language


class LanguageGate:
    """Rejects text whose detected language the engine does not support."""

    def __init__(self, detector: LanguageDetector, supported: Optional[Iterable[str]] = None):
        self.detector = detector
        self.supported = set(supported if supported is not None else settings.SUPPORTED_LANGUAGES)

    async def validate_text(self, text: str) -> None:
        """Raise InvalidRequestError if `text` is in an unsupported language."""
        if not text.strip():
            return

        language = await asyncio.to_thread(self.detector.detect, text)
        if language is None:
            # Ambiguous or mixed content is allowed through
            return

        if language not in self.supported:
            logger.info(f"Rejected prompt in unsupported language '{language}'")
            raise InvalidRequestError(
                unsupported_language_message(language), code="unsupported_language"
            )

    async def validate_messages(self, messages: Sequence[Message]) -> None:
        """Validate every non-empty message; the first failure in message order wins."""
        results: List[Optional[BaseException]] = await asyncio.gather(
            *(self.validate_text(message.content) for message in messages),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
