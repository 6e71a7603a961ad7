"""
OpenAI API client (Text Generator)
"""

from typing import Optional, Dict, List
from openai import AsyncOpenAI, OpenAIError
from tracker.config.settings import settings
from tracker.config.constants import (
    OPENAI_DEFAULT_MODEL,
    OPENAI_FALLBACK_MODEL,
    OPENAI_MAX_TOKENS,
    OPENAI_TEMPERATURE,
)
from tracker.utils.error_handler import TextGenerationError
from tracker.utils.logger import logger


class OpenAIClient:
    """Client for OpenAI API"""

    def __init__(self, client: Optional[AsyncOpenAI] = None):
        """
        Initialize OpenAI client

        Args:
            client: Preconfigured AsyncOpenAI instance (built from settings when None)
        """
        self.api_key = settings.OPENAI_API_KEY
        self.client = client or AsyncOpenAI(api_key=self.api_key)
        self.model = settings.OPENAI_MODEL or OPENAI_DEFAULT_MODEL
        self.fallback_model = OPENAI_FALLBACK_MODEL
        self.logger = logger

    async def chat_completion(
        self,
        messages: List[Dict[str, str]],
        model: Optional[str] = None,
        temperature: float = OPENAI_TEMPERATURE,
        max_tokens: int = OPENAI_MAX_TOKENS,
    ) -> str:
        """
        Get chat completion from OpenAI

        Args:
            messages: List of message dictionaries with 'role' and 'content'
            model: Model to use (defaults to configured model)
            temperature: Sampling temperature
            max_tokens: Maximum tokens in response

        Returns:
            Response text

        Raises:
            TextGenerationError: If the call fails on the fallback model too
        """
        model = model or self.model

        try:
            self.logger.debug(f"Calling OpenAI API with model {model}")

            response = await self.client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )

            content = response.choices[0].message.content or ""
            self.logger.debug(f"OpenAI API response: {content[:100]}...")

            return content

        except OpenAIError as e:
            self.logger.error(f"OpenAI API error: {e}")

            # Try fallback model if main model fails
            if model != self.fallback_model:
                self.logger.warning(f"Trying fallback model {self.fallback_model}")
                return await self.chat_completion(
                    messages=messages,
                    model=self.fallback_model,
                    temperature=temperature,
                    max_tokens=max_tokens,
                )

            raise TextGenerationError(str(e)) from e

    async def generate(self, prompt: str, model: Optional[str] = None) -> str:
        """One prompt in, one text out"""
        return await self.chat_completion(
            messages=[{"role": "user", "content": prompt}],
            model=model,
        )
