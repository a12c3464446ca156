"""OpenAI-compatible HTTP client for Sage."""

import json
import logging
from typing import Any, Optional

import httpx
from pydantic import BaseModel

from sage.core.config import LLMSettings, get_settings
from sage.core.exceptions import ClassificationFailure

logger = logging.getLogger(__name__)


class LLMResponse(BaseModel):
    """LLM response."""

    content: str
    model: str
    usage: dict[str, Any] = {}
    finish_reason: Optional[str] = None


class LLMClient:
    """Async HTTP client for a chat-completions endpoint."""

    def __init__(self, settings: Optional[LLMSettings] = None):
        self.settings = settings or get_settings().llm
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def enabled(self) -> bool:
        return self.settings.enabled

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.settings.base_url,
                timeout=httpx.Timeout(self.settings.timeout, connect=10.0),
                headers={"Authorization": f"Bearer {self.settings.api_key}"},
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def complete(
        self,
        messages: list[dict[str, str]],
        temperature: float = 0.1,
        max_tokens: int = 1500,
        json_mode: bool = True,
    ) -> LLMResponse:
        """
        Send a completion request.

        Raises:
            ClassificationFailure: missing key, HTTP error, or transport error
        """
        if not self.enabled:
            raise ClassificationFailure("LLMClient", "no API key configured")

        client = await self._get_client()
        payload: dict[str, Any] = {
            "model": self.settings.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        try:
            response = await client.post("/chat/completions", json=payload)
            response.raise_for_status()
            data = response.json()

            return LLMResponse(
                content=data["choices"][0]["message"]["content"] or "",
                model=data.get("model", self.settings.model),
                usage=data.get("usage") or {},
                finish_reason=data["choices"][0].get("finish_reason"),
            )

        except httpx.HTTPStatusError as e:
            raise ClassificationFailure(
                "LLMClient",
                f"HTTP {e.response.status_code}",
                context={"endpoint": "/chat/completions"},
            ) from e

        except httpx.RequestError as e:
            raise ClassificationFailure(
                "LLMClient",
                f"Request failed: {e}",
                context={"base_url": self.settings.base_url},
            ) from e

        except (KeyError, IndexError, ValueError) as e:
            raise ClassificationFailure("LLMClient", f"Malformed response: {e}") from e

    async def complete_json(
        self,
        system: str,
        user: str,
        temperature: float = 0.1,
        max_tokens: int = 1500,
    ) -> dict[str, Any]:
        """Run a system+user prompt and parse the reply as a JSON object."""
        response = await self.complete(
            [{"role": "system", "content": system}, {"role": "user", "content": user}],
            temperature=temperature,
            max_tokens=max_tokens,
        )
        return parse_json_object(response.content)


def parse_json_object(text: str) -> dict[str, Any]:
    """Parse the outermost {...} span of a model reply."""
    start = text.find("{")
    end = text.rfind("}")
    if start < 0 or end <= start:
        raise ClassificationFailure("LLMClient", "reply contained no JSON object")
    try:
        parsed = json.loads(text[start:end + 1])
    except json.JSONDecodeError as e:
        raise ClassificationFailure("LLMClient", f"invalid JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise ClassificationFailure("LLMClient", "reply JSON is not an object")
    return parsed


# Global client instance
_client: Optional[LLMClient] = None


def get_llm_client() -> LLMClient:
    """Get global LLM client."""
    global _client
    if _client is None:
        _client = LLMClient()
    return _client
