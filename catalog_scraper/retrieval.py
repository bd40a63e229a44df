"""
Retrieval
=========
Answers a question from the indexed catalog.

1. Embed the question with the same embedder used at indexing time
2. Score every stored entry by cosine similarity
3. Drop entries that cannot be compared (NaN score, different dimension)
4. Keep the top-k, concatenate their text, hand it to the generator
"""

from __future__ import annotations

import logging
import math
from typing import List, Tuple

from .embeddings import Embedder, Generator
from .repository import Repository, VectorEntry
from .vectorize import cosine_similarity

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a product assistant for a networking hardware catalog. "
    "Answer the user's question using only the product information in the "
    "provided context. If the context does not contain the answer, say so."
)


class Retriever:
    """Top-k cosine retrieval plus grounded generation."""

    def __init__(
        self,
        repository: Repository,
        embedder: Embedder,
        generator: Generator,
        top_k: int = 3,
    ):
        self.repository = repository
        self.embedder = embedder
        self.generator = generator
        self.top_k = top_k

    def rank(self, question: str) -> List[Tuple[float, VectorEntry]]:
        """Entries most similar to ``question``, best first."""
        query = self.embedder.embed(question)
        scored: List[Tuple[float, VectorEntry]] = []
        mismatched = 0
        no_match = 0

        for entry in self.repository.find():
            if len(entry.vector) != len(query):
                mismatched += 1
                continue
            score = cosine_similarity(query, entry.vector)
            if math.isnan(score):
                no_match += 1
                continue
            scored.append((score, entry))

        if mismatched:
            logger.warning(
                f"[RETRIEVAL] Skipped {mismatched} entries with a vector size other than "
                f"{len(query)}; re-sync the repository with the current embedder"
            )
        logger.debug(f"[RETRIEVAL] scored={len(scored)} zero_vectors={no_match}")

        scored.sort(key=lambda pair: pair[0], reverse=True)
        return scored[:self.top_k]

    def build_context(self, ranked: List[Tuple[float, VectorEntry]]) -> str:
        return "\n\n".join(entry.content for _, entry in ranked if entry.content)

    def answer(self, question: str) -> str:
        ranked = self.rank(question)
        if not ranked:
            logger.warning(f"[RETRIEVAL] No comparable entries for: {question!r}")
        else:
            logger.info(
                "[RETRIEVAL] Top matches: "
                + ", ".join(f"{entry.url} ({score:.3f})" for score, entry in ranked)
            )
        context = self.build_context(ranked)
        user_prompt = f"Context:\n{context}\n\nQuestion: {question}"
        return self.generator.complete(SYSTEM_PROMPT, user_prompt)
