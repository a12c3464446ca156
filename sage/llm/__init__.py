"""Chat-completions client for Sage's external-model collaborators."""

from sage.llm.client import LLMClient, LLMResponse, get_llm_client

__all__ = [
    "LLMClient",
    "LLMResponse",
    "get_llm_client",
]
