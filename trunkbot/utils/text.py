"""
Transcript text helpers shared by rule matching and address extraction.
"""

import re
from typing import List, Sequence, Tuple

# Word tokens: runs of letters, digits, hyphen and underscore ("10-15", "auto-ped")
WORD_PATTERN = re.compile(r"[a-zA-Z0-9_-]+")

# Sentence boundaries used when a transcriber returns no segments
SENTENCE_SPLIT = ". "


def tokenize(text: str) -> List[str]:
    """Lowercase ``text`` and split it into word tokens."""
    return WORD_PATTERN.findall(text.lower())


def contains_sequence(tokens: Sequence[str], phrase: Tuple[str, ...]) -> bool:
    """Return True when ``phrase`` occurs as a contiguous window of ``tokens``."""
    size = len(phrase)
    if size == 0 or size > len(tokens):
        return False

    first = phrase[0]
    for start in range(len(tokens) - size + 1):
        if tokens[start] == first and tuple(tokens[start:start + size]) == phrase:
            return True
    return False
