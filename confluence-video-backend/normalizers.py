"""
Helpers that turn user-facing duration, language and voice labels into the
values the video vendor expects.
"""

import math
import re
from typing import Optional

from config import (
    DEFAULT_LANGUAGE,
    DEFAULT_VOICE,
    DURATION_BUFFER,
    MIN_VIDEO_MINUTES,
    WORDS_PER_MINUTE,
)

DURATION_LABELS = {
    "30 sec": 0.5,
    "1 min": 1.0,
    "2 min": 2.0,
    "3 min": 3.0,
    "4 min": 4.0,
    "5 min": 5.0,
}

_MINUTES_RE = re.compile(r"^(\d+(?:\.\d+)?)\s*(?:min|mins|minute|minutes)$")
_SECONDS_RE = re.compile(r"^(\d+(?:\.\d+)?)\s*(?:sec|secs|second|seconds)$")

LANGUAGES = [
    "english", "hindi", "spanish", "french", "german", "italian", "portuguese",
    "russian", "japanese", "korean", "chinese", "mandarin", "arabic", "dutch",
    "polish", "turkish", "swedish", "danish", "norwegian", "finnish", "greek",
    "czech", "hungarian", "romanian", "thai", "vietnamese", "indonesian",
    "malay", "tamil", "telugu", "bengali", "marathi", "gujarati", "kannada",
    "malayalam", "punjabi", "urdu",
]

LANGUAGE_CODES = {
    "en": "english", "hi": "hindi", "es": "spanish", "fr": "french",
    "de": "german", "it": "italian", "pt": "portuguese", "ru": "russian",
    "ja": "japanese", "ko": "korean", "zh": "chinese", "ar": "arabic",
    "nl": "dutch", "pl": "polish", "tr": "turkish", "sv": "swedish",
    "da": "danish", "no": "norwegian", "nb": "norwegian", "fi": "finnish",
    "el": "greek", "cs": "czech", "hu": "hungarian", "ro": "romanian",
    "th": "thai", "vi": "vietnamese", "id": "indonesian", "ms": "malay",
    "ta": "tamil", "te": "telugu", "bn": "bengali", "mr": "marathi",
    "gu": "gujarati", "kn": "kannada", "ml": "malayalam", "pa": "punjabi",
    "ur": "urdu",
}


def _positive(value: float) -> Optional[float]:
    if math.isfinite(value) and value > 0:
        return float(value)
    return None


def parse_duration_to_minutes(value) -> Optional[float]:
    """
    Convert a duration given as a number, numeric string, a UI label
    ("30 sec", "2 min") or free text ("90 seconds", "1.5 minutes") to minutes.
    Returns None when the input cannot be understood.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        return _positive(float(value))

    if not isinstance(value, str):
        return None

    text = value.strip().lower()
    if not text:
        return None

    if text in DURATION_LABELS:
        return DURATION_LABELS[text]

    try:
        return _positive(float(text))
    except ValueError:
        pass

    match = _MINUTES_RE.match(text)
    if match:
        return _positive(float(match.group(1)))

    match = _SECONDS_RE.match(text)
    if match:
        return _positive(float(match.group(1)) / 60)

    return None


def normalize_language(label: Optional[str]) -> str:
    """Map "English", "en" or "english" to the vendor keyword "english"."""
    text = (label or "").strip().lower()
    if not text:
        return DEFAULT_LANGUAGE
    if text in LANGUAGES:
        return text
    if text in LANGUAGE_CODES:
        return LANGUAGE_CODES[text]
    # Unknown languages are passed through as-is
    return text


def normalize_voice(label: Optional[str]) -> str:
    text = (label or "").strip().lower()
    if not text:
        return DEFAULT_VOICE
    return re.sub(r"\s+", "-", text)


def round_up_to_half(minutes: float) -> float:
    # round() first so float noise like 6.0000000001 does not bump a whole step
    return math.ceil(round(minutes * 2, 6)) / 2


def estimate_duration_minutes(text: Optional[str]) -> float:
    """Estimate how long a narration of `text` takes, never below the vendor minimum."""
    words = len((text or "").split())
    minutes = words / WORDS_PER_MINUTE * DURATION_BUFFER
    return max(round_up_to_half(minutes), MIN_VIDEO_MINUTES)


def compute_target_duration(text: Optional[str], requested=None) -> float:
    """
    Pick the duration sent to the vendor: the larger of the word-count
    estimate and the user's choice, rounded up to 0.5 minutes and at least
    MIN_VIDEO_MINUTES.
    """
    estimated = estimate_duration_minutes(text)
    selected = parse_duration_to_minutes(requested) or 0
    combined = max(estimated, selected)
    return max(round_up_to_half(combined), MIN_VIDEO_MINUTES)


def format_duration(minutes: float) -> str:
    """3.0 -> "3", 2.5 -> "2.5"."""
    return f"{minutes:g}"
