from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from ..config import Settings


class LLMError(RuntimeError):
    pass


class AnswerDegraded(LLMError):
    """The model replied but the reply cannot be used as an answer."""


@dataclass(frozen=True)
class ChatMessage:
    role: str
    content: str


class Completer(Protocol):
    def complete(self, system_prompt: str, user_content: str, *, max_tokens: int, temperature: float) -> str: ...


class _HttpChatClient:
    """Shared POST + error mapping for the provider clients."""

    name = "llm"

    def __init__(self, *, base_url: str, model: str, timeout_s: float = 60.0, transport: httpx.BaseTransport | None = None):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout_s = float(timeout_s)
        self.transport = transport

    def _headers(self) -> dict[str, str]:
        return {}

    def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            with httpx.Client(timeout=self.timeout_s, transport=self.transport) as client:
                r = client.post(url, json=payload, headers=self._headers())
        except httpx.HTTPError as e:
            raise LLMError(f"Failed to reach {self.name} at {self.base_url} ({e})") from e

        if r.status_code != 200:
            raise LLMError(f"{self.name} error {r.status_code}: {r.text}")
        try:
            data = r.json()
        except ValueError as e:
            raise LLMError(f"{self.name} returned non-JSON body: {r.text[:200]}") from e
        if not isinstance(data, dict):
            raise LLMError(f"Unexpected {self.name} response: {data}")
        return data


class OllamaChatClient(_HttpChatClient):
    name = "Ollama"

    def chat(self, messages: list[ChatMessage], *, options: dict[str, Any] | None = None) -> str:
        payload: dict[str, Any] = {
            "model": self.model,
            "stream": False,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
        }
        if options:
            payload["options"] = options

        data = self._post("/api/chat", payload)
        msg = data.get("message") or {}
        content = msg.get("content")
        if not isinstance(content, str):
            raise LLMError(f"Unexpected Ollama response: {data}")
        return content

    def complete(self, system_prompt: str, user_content: str, *, max_tokens: int, temperature: float) -> str:
        return self.chat(
            [ChatMessage("system", system_prompt), ChatMessage("user", user_content)],
            options={"temperature": float(temperature), "num_predict": int(max_tokens)},
        )


class OpenAIChatClient(_HttpChatClient):
    name = "OpenAI"

    def __init__(self, *, api_key: str, **kwargs: Any):
        super().__init__(**kwargs)
        self.api_key = api_key

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    def complete(self, system_prompt: str, user_content: str, *, max_tokens: int, temperature: float) -> str:
        data = self._post(
            "/chat/completions",
            {
                "model": self.model,
                "max_tokens": int(max_tokens),
                "temperature": float(temperature),
                "messages": [
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_content},
                ],
            },
        )
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise LLMError(f"Unexpected OpenAI response: {data}") from e
        if not isinstance(content, str):
            raise LLMError(f"Unexpected OpenAI response: {data}")
        return content


class AnthropicClient(_HttpChatClient):
    name = "Anthropic"

    def __init__(self, *, api_key: str, base_url: str = "https://api.anthropic.com", **kwargs: Any):
        super().__init__(base_url=base_url, **kwargs)
        self.api_key = api_key

    def _headers(self) -> dict[str, str]:
        return {"x-api-key": self.api_key, "anthropic-version": "2023-06-01"}

    def complete(self, system_prompt: str, user_content: str, *, max_tokens: int, temperature: float) -> str:
        data = self._post(
            "/v1/messages",
            {
                "model": self.model,
                "max_tokens": int(max_tokens),
                "temperature": float(temperature),
                "system": system_prompt,
                "messages": [{"role": "user", "content": user_content}],
            },
        )
        blocks = data.get("content")
        if not isinstance(blocks, list):
            raise LLMError(f"Unexpected Anthropic response: {data}")
        text = "".join(b.get("text", "") for b in blocks if isinstance(b, dict) and b.get("type") == "text")
        return text


def resolve_completer(settings: Settings, *, transport: httpx.BaseTransport | None = None) -> Completer | None:
    """Pick the configured provider, or None when no credential is present.

    An explicit HOMEGRAPH_LLM_PROVIDER wins; otherwise Anthropic, then OpenAI,
    then a named Ollama model.
    """
    provider = settings.llm_provider.strip().lower()
    if provider == "none":
        return None
    if not provider:
        if settings.anthropic_api_key:
            provider = "anthropic"
        elif settings.openai_api_key:
            provider = "openai"
        elif settings.ollama_model:
            provider = "ollama"
        else:
            return None

    if provider == "anthropic":
        if not settings.anthropic_api_key:
            return None
        return AnthropicClient(
            api_key=settings.anthropic_api_key,
            model=settings.anthropic_model,
            timeout_s=settings.llm_timeout_s,
            transport=transport,
        )
    if provider == "openai":
        if not settings.openai_api_key:
            return None
        return OpenAIChatClient(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            model=settings.openai_model,
            timeout_s=settings.llm_timeout_s,
            transport=transport,
        )
    if provider == "ollama":
        if not settings.ollama_model:
            return None
        return OllamaChatClient(
            base_url=settings.ollama_base_url,
            model=settings.ollama_model,
            timeout_s=settings.llm_timeout_s,
            transport=transport,
        )
    raise ValueError(f"Unknown LLM provider: {settings.llm_provider!r}")
