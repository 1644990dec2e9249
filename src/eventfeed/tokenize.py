from __future__ import annotations

import re

STOP_WORDS = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
        "of", "with", "by", "from", "as", "is", "was", "are", "were", "been",
        "be", "have", "has", "had", "do", "does", "did", "will", "would",
        "could", "should", "may", "might", "must", "shall", "can", "need",
        "it", "its", "this", "that", "these", "those", "i", "you", "he",
        "she", "we", "they", "what", "which", "who", "whom", "how", "when",
        "where", "why", "all", "each", "every", "both", "few", "more", "most",
        "other", "some", "such", "no", "not", "only", "same", "so", "than",
        "too", "very", "just", "also", "now", "new", "says", "said", "after",
    }
)
MIN_TOKEN_LENGTH = 3

_NON_TOKEN_CHARS = re.compile(r"[^a-z0-9\s]")


def tokenize(text: str) -> set[str]:
    """Normalize a headline into the set of words used for similarity."""
    cleaned = _NON_TOKEN_CHARS.sub(" ", text.lower())
    return {
        token
        for token in cleaned.split()
        if len(token) >= MIN_TOKEN_LENGTH and token not in STOP_WORDS
    }
