"""
Embedding & Generation Services
===============================
Text -> vector and prompt -> text, behind two small abstract contracts.

The same ``Embedder`` must embed both the stored documents and the
incoming questions, otherwise the vectors live in different spaces and
cosine similarity means nothing. Two backends are provided:

- ``OpenAIEmbedder``     hosted embeddings (fixed dimension, e.g. 1536)
- ``BagOfWordsEmbedder`` raw term counts over one corpus-wide vocabulary,
                         persisted next to the repository so queries are
                         vectorized over the exact same terms
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from openai import OpenAI, OpenAIError

from .errors import ConfigurationError, MalformedPersistedState, ServiceError
from .vectorize import build_vocabulary, vectorize

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Embedders
# ---------------------------------------------------------------------------

class Embedder(ABC):
    """Text -> fixed-length vector."""

    @property
    @abstractmethod
    def dimension(self) -> int:
        ...

    @abstractmethod
    def embed(self, text: str) -> List[float]:
        ...


class BagOfWordsEmbedder(Embedder):
    """Raw term counts over a fixed vocabulary."""

    def __init__(self, vocabulary: Sequence[str]):
        self.vocabulary = list(vocabulary)

    @classmethod
    def from_texts(cls, texts: Iterable[str]) -> "BagOfWordsEmbedder":
        """Fit one vocabulary over a whole corpus."""
        return cls(build_vocabulary(texts))

    @classmethod
    def load(cls, path: Union[str, Path]) -> "BagOfWordsEmbedder":
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(
                f"Vocabulary file {path} not found; sync the store to the repository first"
            )
        try:
            vocabulary = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise MalformedPersistedState(f"Cannot read vocabulary: {exc}", path=str(path)) from exc
        if not isinstance(vocabulary, list):
            raise MalformedPersistedState("Vocabulary file does not hold a JSON array", path=str(path))
        return cls(vocabulary)

    def save(self, path: Union[str, Path]) -> str:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.vocabulary, f, ensure_ascii=False)
        return str(path.absolute())

    @property
    def dimension(self) -> int:
        return len(self.vocabulary)

    def embed(self, text: str) -> List[float]:
        return [float(count) for count in vectorize(text, self.vocabulary)]


class OpenAIEmbedder(Embedder):
    """OpenAI embeddings API."""

    DIMENSIONS = {
        "text-embedding-3-small": 1536,
        "text-embedding-3-large": 3072,
        "text-embedding-ada-002": 1536,
    }

    def __init__(
        self,
        model_name: str = "text-embedding-3-small",
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = 60.0,
    ):
        self.model_name = model_name
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self._client = None

    def _get_client(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI(api_key=self.api_key, base_url=self.base_url, timeout=self.timeout)
        return self._client

    @property
    def dimension(self) -> int:
        return self.DIMENSIONS.get(self.model_name, 1536)

    def embed(self, text: str) -> List[float]:
        try:
            response = self._get_client().embeddings.create(model=self.model_name, input=text)
        except OpenAIError as exc:
            raise ServiceError(f"Embedding failed: {exc}", service="openai-embeddings",
                               model=self.model_name) from exc
        return list(response.data[0].embedding)


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------

class Generator(ABC):
    """(system prompt, user prompt) -> text."""

    @abstractmethod
    def complete(self, system_prompt: str, user_prompt: str) -> str:
        ...


class OpenAIGenerator(Generator):
    """OpenAI chat completions."""

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        temperature: float = 0.2,
        max_tokens: int = 1024,
        timeout: float = 60.0,
    ):
        self.model = model
        self.api_key = api_key
        self.base_url = base_url
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._client = None

    def _get_client(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI(api_key=self.api_key, base_url=self.base_url, timeout=self.timeout)
        return self._client

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        try:
            response = self._get_client().chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except OpenAIError as exc:
            raise ServiceError(f"Generation failed: {exc}", service="openai-chat",
                               model=self.model) from exc
        return response.choices[0].message.content or ""


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

def build_embedder(config, vocabulary_path: Union[str, Path, None] = None,
                   texts: Optional[Iterable[str]] = None) -> Embedder:
    """
    Embedder for the configured backend.

    Args:
        config: ``ScraperRunConfig``
        vocabulary_path: Persisted vocabulary (bag-of-words backend)
        texts: Corpus to fit a fresh vocabulary on; when omitted the
               persisted vocabulary is loaded
    """
    if config.embedding_backend == "bow":
        if texts is not None:
            return BagOfWordsEmbedder.from_texts(texts)
        return BagOfWordsEmbedder.load(vocabulary_path)

    config.require_openai()
    return OpenAIEmbedder(
        model_name=config.embedding_model,
        api_key=config.openai_api_key,
        base_url=config.openai_base_url,
    )


def build_generator(config) -> Generator:
    config.require_openai()
    return OpenAIGenerator(
        model=config.generation_model,
        api_key=config.openai_api_key,
        base_url=config.openai_base_url,
    )
