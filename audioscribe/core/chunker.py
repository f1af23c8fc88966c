# audioscribe/core/chunker.py

"""
Chunker: split source text into short dictation units.

Sentences are found on runs of terminal punctuation (. ! ?), the run stays
attached to its sentence, and every sentence is cut into groups of at most
three words.
"""

from __future__ import annotations

import re
from typing import List

_TERMINAL_SPLIT = re.compile(r"([.!?]+)")
_TERMINAL_CHAR = re.compile(r"[.!?]")

WORDS_PER_UNIT = 3


def _sentences(text: str) -> List[str]:
    tokens = [t for t in _TERMINAL_SPLIT.split(text) if t.strip()]

    sentences: List[str] = []
    i = 0
    while i < len(tokens):
        sentence = tokens[i]
        if i + 1 < len(tokens) and _TERMINAL_CHAR.search(tokens[i + 1]):
            sentence += tokens[i + 1]
            i += 2
        else:
            i += 1
        sentences.append(sentence)
    return sentences


def chunk(text: str) -> List[str]:
    """
    Turn text into an ordered list of dictation units.

    Each unit is one to three space-joined words from a single sentence.
    Empty or whitespace-only text gives an empty list.
    """
    if not text:
        return []

    units: List[str] = []
    for sentence in _sentences(text):
        words = [w for w in sentence.split() if w]
        for j in range(0, len(words), WORDS_PER_UNIT):
            units.append(" ".join(words[j:j + WORDS_PER_UNIT]))
    return units
