from __future__ import annotations
# Text normalization + stopword tokenizer shared by the loader (headers) and the scorer

import re
from typing import List

_NON_WORD_RE = re.compile(r"[^\w\s]|_")
_SPACE_RE = re.compile(r"\s+")

# Function words and first/second-person pronouns; they match every resource
STOPWORDS = frozenset({
    "the", "and", "or", "but", "if", "to", "of", "in", "on", "for", "with",
    "is", "are", "was", "were", "be", "been", "being", "a", "an", "about",
    "from", "by", "at", "as", "this", "that", "these", "those", "it", "its",
    "i", "me", "my", "mine", "myself", "you", "your", "yours", "yourself",
    "we", "us", "our", "ours", "they", "them", "their",
    "am", "do", "does", "did", "have", "has", "had", "can", "could", "would",
    "should", "will", "not", "just", "so", "than", "then", "there", "what",
    "any", "some", "into", "out", "get",
})


def normalize(text: str) -> str:
    """Lowercase, punctuation -> space, collapse whitespace, trim."""
    t = str(text or "").lower()
    t = _NON_WORD_RE.sub(" ", t)
    return _SPACE_RE.sub(" ", t).strip()


def tokenize(text: str) -> List[str]:
    return [w for w in normalize(text).split(" ") if len(w) > 2 and w not in STOPWORDS]


def normalize_header(cell: str) -> str:
    """'Best For' / 'best-for ' -> 'best_for'."""
    return _SPACE_RE.sub("_", normalize(cell))
