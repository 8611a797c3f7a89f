"""
Hosted Model Client

Thin wrapper around the OpenAI chat completions API in JSON mode. Every flow
goes through complete_json(), which returns the decoded JSON body or raises
ModelError for any transport, auth, timeout or parse failure.
"""

import json
import logging
import re
import time
from typing import Any, Optional

from openai import AsyncOpenAI, OpenAIError

from codegym_ai.config import Settings
from codegym_ai.errors import ModelError

logger = logging.getLogger(__name__)

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


def parse_json_reply(content: Optional[str]) -> Any:
    """
    Decode a model reply that should be JSON.

    Models sometimes wrap the object in prose or a ```json fence, so the
    outermost {...} span is tried when the whole reply does not parse.

    Raises:
        ValueError: If nothing in the reply decodes as JSON
    """
    if content is None or not content.strip():
        raise ValueError("empty reply")
    try:
        return json.loads(content)
    except json.JSONDecodeError:
        json_match = _JSON_OBJECT.search(content)
        if not json_match:
            raise ValueError("reply is not JSON")
        try:
            return json.loads(json_match.group())
        except json.JSONDecodeError as e:
            raise ValueError(f"reply is not JSON: {e}") from e


class LLMClient:
    """Async JSON-mode client for the hosted model."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        max_tokens: int = 1200,
        temperature: float = 0.4,
        timeout: float = 60.0,
        base_url: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.client = client or AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> "LLMClient":
        return cls(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            max_tokens=settings.max_tokens,
            temperature=settings.temperature,
            timeout=settings.timeout_seconds,
            base_url=settings.openai_base_url,
        )

    async def complete_json(
        self,
        flow: str,
        system: str,
        prompt: str,
        max_tokens: Optional[int] = None,
    ) -> Any:
        """
        Run one JSON-mode completion.

        Args:
            flow: Flow name, used for logging and error messages
            system: System instruction
            prompt: Rendered user prompt
            max_tokens: Override for the completion cap

        Returns:
            Decoded JSON value (usually a dict)

        Raises:
            ModelError: On any upstream or decoding failure
        """
        start_time = time.time()
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": prompt},
                ],
                response_format={"type": "json_object"},
                max_tokens=max_tokens or self.max_tokens,
                temperature=self.temperature,
            )
        except OpenAIError as e:
            logger.error(f"❌ [{flow}] Model call failed after {time.time() - start_time:.2f}s: {e}")
            raise ModelError(flow, f"model call failed: {type(e).__name__}") from e

        if not response.choices:
            raise ModelError(flow, "model returned no choices")
        content = response.choices[0].message.content

        try:
            result = parse_json_reply(content)
        except ValueError as e:
            logger.error(f"❌ [{flow}] Could not decode model reply: {e}")
            raise ModelError(flow, str(e)) from e

        logger.info(f"✅ [{flow}] Completed in {time.time() - start_time:.2f}s")
        return result
