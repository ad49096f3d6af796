from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from google import genai
from google.genai import types
from openai import AsyncOpenAI

from trip_planner.core.config import Settings, settings

logger = logging.getLogger(__name__)

WEB_SEARCH_TOOL = "web_search"


@dataclass
class CompletionOptions:
    structured_output_schema: Optional[Dict[str, Any]] = None
    tools: List[str] = field(default_factory=list)


@dataclass
class CompletionResult:
    text: str


class CompletionClient(Protocol):
    async def complete(self, prompt: str, options: CompletionOptions) -> CompletionResult: ...


class CompletionClientFactory(Protocol):
    def __call__(self, api_key: str) -> CompletionClient: ...


class GeminiCompletionClient:
    def __init__(self, api_key: str, model: str, timeout_seconds: float):
        self.model = model
        self._client = genai.Client(
            api_key=api_key, http_options=types.HttpOptions(timeout=int(timeout_seconds * 1000))
        )

    async def complete(self, prompt: str, options: CompletionOptions) -> CompletionResult:
        config_kwargs: Dict[str, Any] = {}
        if WEB_SEARCH_TOOL in options.tools:
            config_kwargs["tools"] = [types.Tool(google_search=types.GoogleSearch())]
        if options.structured_output_schema is not None:
            config_kwargs["response_mime_type"] = "application/json"
            config_kwargs["response_schema"] = options.structured_output_schema
        logger.debug(
            "Calling Gemini: model=%s tools=%s structured=%s",
            self.model,
            options.tools,
            options.structured_output_schema is not None,
        )
        response = await self._client.aio.models.generate_content(
            model=self.model,
            contents=prompt,
            config=types.GenerateContentConfig(**config_kwargs),
        )
        return CompletionResult(text=response.text or "")


class OpenAICompletionClient:
    """
    Chat Completions backend. Web search is not available on this path, so the
    tool request is dropped and the model answers from its own knowledge.
    """

    def __init__(self, api_key: str, model: str, timeout_seconds: float):
        self.model = model
        self._client = AsyncOpenAI(api_key=api_key, timeout=timeout_seconds)

    async def complete(self, prompt: str, options: CompletionOptions) -> CompletionResult:
        kwargs: Dict[str, Any] = {}
        if options.structured_output_schema is not None:
            kwargs["response_format"] = {"type": "json_object"}
        if options.tools:
            logger.debug("OpenAI backend ignores tools: %s", options.tools)
        response = await self._client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            **kwargs,
        )
        return CompletionResult(text=response.choices[0].message.content or "")


def get_completion_client(api_key: str, config: Settings = settings) -> CompletionClient:
    """Build a client for the configured provider using the user's stored credential."""
    if config.ai_provider == "openai":
        return OpenAICompletionClient(api_key, config.openai_model, config.request_timeout_seconds)
    return GeminiCompletionClient(api_key, config.gemini_model, config.request_timeout_seconds)
