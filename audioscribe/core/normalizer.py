# audioscribe/core/normalizer.py

"""
Speech normalizer: spell out punctuation so a dictation listener hears it.
"""

from __future__ import annotations

import re

# Order matters: replacements run top to bottom.
PUNCTUATION_WORDS = {
    ".": " full stop ",
    ",": " comma ",
    "?": " question mark ",
    "!": " exclamation mark ",
    "-": " dash ",
    ":": " colon ",
    ";": " semicolon ",
    "(": " open bracket ",
    ")": " close bracket ",
}

_PATTERNS = [(re.compile(re.escape(symbol)), word) for symbol, word in PUNCTUATION_WORDS.items()]


def normalize(unit: str) -> str:
    """Return the speakable form of a dictation unit."""
    spoken = unit
    for pattern, word in _PATTERNS:
        spoken = pattern.sub(word, spoken)
    return spoken
