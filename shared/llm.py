import json
import logging
import random
import time
from typing import Any, Callable, Optional, cast

import httpx
from openai import APIConnectionError, APIStatusError, OpenAI, RateLimitError
from openai.types.chat import ChatCompletionMessageParam

from .config import Settings
from .errors import GenerationFailed, NoResultProduced, PaymentRequired, RateLimited

logger = logging.getLogger("llm")


def get_or_client(settings: Settings, http_client: Optional[httpx.Client] = None) -> OpenAI:
    if not settings.openrouter_api_key:
        raise GenerationFailed("OPENROUTER_API_KEY not configured")

    return OpenAI(
        api_key=settings.openrouter_api_key,
        base_url=settings.openrouter_base_url,
        timeout=settings.llm_timeout,
        max_retries=0,
        http_client=http_client,
        default_headers={
            "HTTP-Referer": settings.openrouter_site_url,
            "X-Title": settings.openrouter_app_name,
        },
    )


def call_with_backoff(fn: Callable[[], Any], max_retries: int = 5):
    base = 0.5
    for attempt in range(max_retries):
        try:
            return fn()
        except RateLimited:
            if attempt == max_retries - 1:
                raise
            time.sleep(min(15.0, base * (2 ** attempt)) + random.uniform(0, 0.25))


def build_messages(system_prompt: str, user_prompt: str) -> list[ChatCompletionMessageParam]:
    msgs = [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": user_prompt},
    ]
    return cast(list[ChatCompletionMessageParam], msgs)


class AIGateway:
    """
    Thin wrapper over an OpenAI-compatible chat completions endpoint.

    Provider failures are translated into the service error taxonomy:
    429 -> RateLimited, 402 -> PaymentRequired, anything else -> GenerationFailed.
    A structured call that comes back without a usable tool call raises
    NoResultProduced. Nothing is retried here.
    """

    def __init__(self, client: OpenAI, model: str):
        self.client = client
        self.model = model

    @classmethod
    def from_settings(cls, settings: Settings, http_client: Optional[httpx.Client] = None) -> "AIGateway":
        return cls(get_or_client(settings, http_client=http_client), settings.openrouter_model)

    def _create(self, failure_message: str, **kwargs):
        try:
            return self.client.chat.completions.create(model=self.model, **kwargs)
        except RateLimitError:
            raise RateLimited()
        except APIStatusError as e:
            if e.status_code == 402:
                raise PaymentRequired()
            logger.error("AI API error: %s %s", e.status_code, e.message)
            raise GenerationFailed(failure_message)
        except APIConnectionError as e:
            logger.error("AI API unreachable: %s", type(e).__name__)
            raise GenerationFailed(failure_message)

    def call_tool(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        tool_name: str,
        description: str,
        parameters: dict,
        failure_message: str,
    ) -> dict:
        resp = self._create(
            failure_message,
            messages=build_messages(system_prompt, user_prompt),
            tools=[{
                "type": "function",
                "function": {"name": tool_name, "description": description, "parameters": parameters},
            }],
            tool_choice={"type": "function", "function": {"name": tool_name}},
        )

        message = resp.choices[0].message if resp.choices else None
        tool_calls = message.tool_calls if message is not None else None
        if not tool_calls:
            logger.error("No tool call in AI response for %s", tool_name)
            raise NoResultProduced("No tool call in AI response")

        try:
            args = json.loads(tool_calls[0].function.arguments or "")
        except (json.JSONDecodeError, TypeError):
            raise NoResultProduced("Invalid AI response format: arguments are not JSON")
        if not isinstance(args, dict):
            raise NoResultProduced("Invalid AI response format: arguments are not an object")
        return args

    def complete(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        failure_message: str,
        temperature: Optional[float] = None,
    ) -> str:
        kwargs: dict[str, Any] = {"messages": build_messages(system_prompt, user_prompt)}
        if temperature is not None:
            kwargs["temperature"] = temperature
        resp = self._create(failure_message, **kwargs)
        if resp is not None and resp.choices:
            return (resp.choices[0].message.content or "").strip()
        return ""
