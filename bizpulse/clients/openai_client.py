"""
OpenAI content-generation client with rate limiting using aiolimiter.
"""
import asyncio
from typing import Optional

from aiolimiter import AsyncLimiter
from loguru import logger
from openai import AsyncOpenAI, OpenAIError

from bizpulse.config import CONCURRENCY, OPENAI_API_KEY, OPENAI_MODEL
from bizpulse.errors import TransientError


class OpenAIClient:
    """
    Narrow request/response wrapper around chat completions:
    ask for content matching a schema, receive text or fail.
    """

    def __init__(self, api_key: Optional[str] = None, model: str = OPENAI_MODEL,
                 max_rate: int = CONCURRENCY, client: Optional[AsyncOpenAI] = None):
        if client is None:
            api_key = api_key or OPENAI_API_KEY
            if not api_key:
                raise ValueError("OPENAI_API_KEY must be set in environment or config")
            client = AsyncOpenAI(api_key=api_key)
        self.client = client
        self.model = model
        self.rate_limiter = AsyncLimiter(max_rate=max_rate, time_period=1.0)

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        response_format: Optional[str] = "json",
        temperature: float = 0.7,
    ) -> str:
        """
        Create a chat completion and return the raw message text.

        Args:
            system_prompt: System message.
            user_prompt: User message.
            response_format: "json" to request a JSON object, None for free text.
            temperature: Sampling temperature.

        Returns:
            str: The message content ("" when the model returned nothing).

        Raises:
            TransientError: When the API call itself fails.
        """
        kwargs = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": temperature,
        }
        if response_format == "json":
            kwargs["response_format"] = {"type": "json_object"}

        async with self.rate_limiter:
            try:
                resp = await self.client.chat.completions.create(**kwargs)
            except (OpenAIError, asyncio.TimeoutError) as e:
                logger.debug(f"⚠️ OpenAI API request failed: {e}")
                raise TransientError(str(e), source="openai") from e
        if not resp.choices:
            return ""
        return resp.choices[0].message.content or ""

    async def close(self):
        """Close the underlying HTTP client."""
        await self.client.close()
