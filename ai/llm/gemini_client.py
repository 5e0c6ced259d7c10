"""
Gemini client for hosted LLM inference.
Handles HTTP session management and generateContent requests.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp

from app.core.config import settings

logger = logging.getLogger(__name__)


class GeminiConnectionError(Exception):
    """Raised when the Gemini API cannot be reached."""
    pass


class GeminiResponseError(Exception):
    """Raised when the Gemini API returns an error or an unusable payload."""
    pass


SAFETY_SETTINGS = [
    {"category": "HARM_CATEGORY_HARASSMENT", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
    {"category": "HARM_CATEGORY_HATE_SPEECH", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
]


class GeminiClient:
    """Async client for the Gemini generateContent API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None
    ):
        self.api_key = api_key if api_key is not None else settings.GEMINI_API_KEY
        self.model = model or settings.GEMINI_MODEL
        self.base_url = (base_url or settings.GEMINI_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.GEMINI_TIMEOUT
        self.session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def connect(self):
        """Initialize HTTP session."""
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )

    async def close(self):
        """Close HTTP session."""
        if self.session and not self.session.closed:
            await self.session.close()

    @property
    def model_url(self) -> str:
        return f"{self.base_url}/models/{self.model}"

    async def health_check(self) -> bool:
        """Check that the configured model is reachable with the API key."""
        if not self.api_key:
            return False
        try:
            await self.connect()
            async with self.session.get(self.model_url, params={"key": self.api_key}) as response:
                return response.status == 200
        except Exception as e:
            logger.error(f"Gemini health check failed: {e}")
            return False

    async def generate_content(
        self,
        prompt: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None
    ) -> str:
        """
        Generate text for a single prompt.

        Returns:
            str: Text of the first candidate

        Raises:
            GeminiConnectionError: Network failure or client-side timeout
            GeminiResponseError: Non-200 status or a payload without candidate text
        """
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": temperature if temperature is not None else settings.GEMINI_TEMPERATURE,
                "topK": 40,
                "topP": 0.95,
                "maxOutputTokens": max_tokens or settings.GEMINI_MAX_TOKENS,
            },
            "safetySettings": SAFETY_SETTINGS,
        }

        try:
            await self.connect()
            async with self.session.post(
                f"{self.model_url}:generateContent",
                params={"key": self.api_key},
                json=payload
            ) as response:
                if response.status != 200:
                    error_text = await response.text()
                    raise GeminiResponseError(f"Generation failed: {response.status} - {error_text}")
                data = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise GeminiConnectionError(f"Connection error during generation: {e}")

        return self.extract_text(data)

    @staticmethod
    def extract_text(data: Dict[str, Any]) -> str:
        """Pull the first candidate's text out of a generateContent payload."""
        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            raise GeminiResponseError("Invalid response from Gemini API: no candidate text")

        if not isinstance(text, str) or not text.strip():
            raise GeminiResponseError("Invalid response from Gemini API: empty candidate text")
        return text
