"""Tests for the provider-agnostic model gateway."""

from __future__ import annotations

import math
import threading

import pytest
from langchain_core.messages import AIMessage

from anzen.errors import LLMError, LLMTimeoutError
from anzen.llm.gateway import LLMGateway


class _StubChat:
    def __init__(self, content) -> None:
        self.content = content
        self.messages = None

    def invoke(self, messages):
        self.messages = messages
        return AIMessage(content=self.content)


class _StubEmbeddings:
    def __init__(self, vector) -> None:
        self.vector = vector

    def embed_query(self, text):
        return self.vector


def test_mock_provider_is_deterministic_and_sized(settings):
    gateway = LLMGateway(settings=settings)

    first = gateway.embed("脚立作業")
    second = gateway.embed("脚立作業")

    assert first == second
    assert len(first) == settings.embedding_dim
    assert math.isclose(math.fsum(value * value for value in first), 1.0)
    assert gateway.generate("anything") == ""


def test_generate_joins_content_parts(settings):
    chat = _StubChat([{"type": "text", "text": " 1. 墜落"}, {"type": "text", "text": "\n2. 感電 "}])
    gateway = LLMGateway(settings=settings, chat_client=chat, embedding_client=_StubEmbeddings([1.0]))

    assert gateway.generate("prompt") == "1. 墜落\n2. 感電"
    assert chat.messages[0].content == "prompt"


def test_backend_exceptions_become_llm_errors(settings):
    class _Broken:
        def invoke(self, messages):
            raise RuntimeError("503 unavailable")

    gateway = LLMGateway(settings=settings, chat_client=_Broken(), embedding_client=_StubEmbeddings([]))

    with pytest.raises(LLMError):
        gateway.generate("prompt")
    with pytest.raises(LLMError):
        gateway.embed("text")


def test_calls_exceeding_the_timeout_raise(settings):
    release = threading.Event()

    class _Slow:
        def invoke(self, messages):
            release.wait(5)
            return AIMessage(content="late")

    slow_settings = settings.model_copy(update={"llm": settings.llm.model_copy(update={"timeout_seconds": 1.0})})
    gateway = LLMGateway(settings=slow_settings, chat_client=_Slow(), embedding_client=_StubEmbeddings([1.0]))

    try:
        with pytest.raises(LLMTimeoutError):
            gateway.generate("prompt")
        gateway._chat = _StubChat("fast")
        assert gateway.generate("prompt") == "fast"
    finally:
        release.set()


def test_ollama_clients_carry_timeout(settings):
    llm = settings.llm.model_copy(update={"provider": "ollama", "timeout_seconds": 7.0})
    gateway = LLMGateway(settings=settings.model_copy(update={"llm": llm}))

    assert gateway._chat.client_kwargs == {"timeout": 7.0}
    assert gateway._embeddings.client_kwargs == {"timeout": 7.0}
