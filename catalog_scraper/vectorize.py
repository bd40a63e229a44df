"""
Vectorization
=============
Bag-of-words vectors and cosine similarity.

- Tokens: lower-cased, everything outside ``[a-z0-9\\s]`` removed, split on
  whitespace, empty tokens dropped
- Vocabulary: distinct tokens in first-seen order
- Vector: raw count of each vocabulary term (not normalized, no IDF)
- Cosine: ``dot(a, b) / (|a| * |b|)``; NaN when either vector is all zeros
"""

from __future__ import annotations

import re
from collections import Counter
from typing import Any, Dict, Iterable, List, Sequence

import numpy as np

_NON_ALNUM_RE = re.compile(r'[^a-z0-9\s]')


def tokenize(text: str) -> List[str]:
    if not text:
        return []
    return [token for token in _NON_ALNUM_RE.sub('', text.lower()).split() if token]


def build_vocabulary(texts: Iterable[str]) -> List[str]:
    """Distinct tokens across ``texts``, in insertion order."""
    vocabulary: Dict[str, None] = {}
    for text in texts:
        for token in tokenize(text):
            vocabulary.setdefault(token, None)
    return list(vocabulary)


def vectorize(text: str, vocabulary: Sequence[str]) -> List[int]:
    """Per-term counts of ``text`` over ``vocabulary``.

    Example:
        vectorize("Router router switch", ["router", "switch"]) -> [2, 1]
    """
    counts = Counter(tokenize(text))
    return [counts.get(term, 0) for term in vocabulary]


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity; NaN if either vector has zero magnitude.

    Raises:
        ValueError: vectors of different lengths
    """
    va = np.asarray(a, dtype=float)
    vb = np.asarray(b, dtype=float)
    if va.shape != vb.shape:
        raise ValueError(f"Vector dimensions differ: {va.shape[0]} vs {vb.shape[0]}")
    with np.errstate(divide='ignore', invalid='ignore'):
        return float(np.dot(va, vb) / (np.linalg.norm(va) * np.linalg.norm(vb)))


def flatten_and_concatenate(record: Dict[str, Any]) -> str:
    """Render a nested record as ``dotted.path: value`` pairs joined by spaces.

    ``None`` and blank strings are skipped; list positions become path parts.
    """
    parts: List[str] = []

    def _walk(value: Any, path: List[str]) -> None:
        if isinstance(value, dict):
            for key, child in value.items():
                _walk(child, path + [str(key)])
        elif isinstance(value, (list, tuple)):
            for index, child in enumerate(value):
                _walk(child, path + [str(index)])
        elif value is None or (isinstance(value, str) and not value.strip()):
            return
        else:
            parts.append(f"{'.'.join(path)}: {value}")

    _walk(record, [])
    return " ".join(parts)
