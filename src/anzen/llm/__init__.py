"""Generative text and embedding capabilities behind a single gateway."""

from .gateway import LLMGateway

__all__ = ["LLMGateway"]
