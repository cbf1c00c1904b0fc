"""Provider-agnostic access to the generative text and embedding models."""

from __future__ import annotations

import hashlib
import logging
import math
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Callable, List, TypeVar

from langchain_core.messages import HumanMessage

from anzen.errors import LLMError, LLMTimeoutError
from anzen.settings import Settings, get_settings

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


def _message_text(response: Any) -> str:
    content = getattr(response, "content", response)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts: List[str] = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type") == "text":
                parts.append(str(part.get("text", "")))
        return "".join(parts)
    return str(content or "")


class LLMGateway:
    """Execute generation and embedding calls using the configured provider.

    Every call is bounded by ``settings.llm.timeout_seconds``. Failures are
    raised as :class:`~anzen.errors.LLMError` so callers decide whether to
    degrade or abort.
    """

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        chat_client: Any | None = None,
        embedding_client: Any | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.provider = (self.settings.llm.provider or "vertex_ai").lower()
        self.timeout = max(float(self.settings.llm.timeout_seconds), 1.0)
        self._chat = chat_client if chat_client is not None else self._build_chat_client()
        self._embeddings = embedding_client if embedding_client is not None else self._build_embedding_client()

    def _build_chat_client(self):
        llm = self.settings.llm
        if self.provider == "mock":
            return None
        if self.provider == "ollama":
            from langchain_ollama import ChatOllama

            return ChatOllama(
                model=llm.chat_model,
                base_url=llm.ollama_base_url,
                temperature=llm.temperature,
                client_kwargs={"timeout": self.timeout},
            )
        if self.provider == "vertex_ai":
            from langchain_google_vertexai import ChatVertexAI

            return ChatVertexAI(
                model_name=llm.chat_model,
                project=llm.vertex_ai_project,
                location=llm.vertex_ai_location,
                temperature=llm.temperature,
                max_retries=llm.max_retries,
            )
        raise LLMError(f"Unsupported LLM provider '{self.provider}'")

    def _build_embedding_client(self):
        llm = self.settings.llm
        if self.provider == "mock":
            return None
        if self.provider == "ollama":
            from langchain_ollama import OllamaEmbeddings

            return OllamaEmbeddings(
                model=llm.embedding_model,
                base_url=llm.ollama_base_url,
                client_kwargs={"timeout": self.timeout},
            )
        if self.provider == "vertex_ai":
            from langchain_google_vertexai import VertexAIEmbeddings

            return VertexAIEmbeddings(
                model_name=llm.embedding_model,
                project=llm.vertex_ai_project,
                location=llm.vertex_ai_location,
                max_retries=llm.max_retries,
            )
        raise LLMError(f"Unsupported LLM provider '{self.provider}'")

    @property
    def chat_model(self) -> str:
        return self.settings.llm.chat_model

    def generate(self, prompt: str) -> str:
        """Return the model's text response to ``prompt``."""

        if self._chat is None:
            return ""
        response = self._bounded(lambda: self._chat.invoke([HumanMessage(content=prompt)]), label="generate")
        return _message_text(response).strip()

    def embed(self, text: str) -> List[float]:
        """Return the embedding vector for ``text``."""

        if self._embeddings is None:
            return _mock_embedding(text, self.settings.llm.embedding_dim)
        vector = self._bounded(lambda: self._embeddings.embed_query(text), label="embed")
        if not vector:
            raise LLMError("Embedding backend returned an empty vector")
        return [float(value) for value in vector]

    def _bounded(self, call: Callable[[], T], *, label: str) -> T:
        # One worker per call so a stuck request never delays the next one.
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="anzen-llm")
        future = executor.submit(call)
        try:
            return future.result(timeout=self.timeout)
        except FutureTimeoutError as exc:
            raise LLMTimeoutError(f"{label} call exceeded {self.timeout:.0f}s") from exc
        except LLMError:
            raise
        except Exception as exc:
            LOGGER.warning("%s call failed via provider %s: %s", label, self.provider, exc)
            raise LLMError(f"{label} call failed: {exc}") from exc
        finally:
            executor.shutdown(wait=False)


def _mock_embedding(text: str, dimension: int) -> List[float]:
    """Deterministic unit vector derived from the text, for offline runs."""

    values: List[float] = []
    counter = 0
    while len(values) < dimension:
        digest = hashlib.sha256(f"{counter}:{text}".encode("utf-8")).digest()
        values.extend((byte / 127.5) - 1.0 for byte in digest)
        counter += 1
    values = values[:dimension]
    norm = math.sqrt(sum(value * value for value in values)) or 1.0
    return [value / norm for value in values]


__all__ = ["LLMGateway"]
