"""
Gemini AI Provider

This module provides the AIProvider implementation for Google's Gemini
generative models: JSON summaries with tags, and single-label categories.
"""

import json
import os
import re
import logging
from typing import Any, List, Optional

import google.generativeai as genai
from dotenv import load_dotenv

from tab_ops_exceptions import ConfigurationError, QuotaExceededError
from utils.rate_limiter import ProviderRateLimiters
from .base import AIProvider, SummaryResult
from ..enrichment_exceptions import AIProviderError

# Load environment variables from a .env file
load_dotenv()

logger = logging.getLogger(__name__)

CATEGORIES: List[str] = [
    "news",
    "shopping",
    "reference",
    "social",
    "entertainment",
    "productivity",
    "technology",
    "health",
    "travel",
    "finance",
    "education",
    "other",
]

MAX_TAGS = 4

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def _is_quota_error(error: Exception) -> bool:
    message = str(error).lower()
    return "429" in message or "quota" in message or "resource exhausted" in message or "rate limit" in message


def parse_summary_response(text: str) -> SummaryResult:
    """
    Parse the model's JSON answer, tolerating ```json fences.

    Raises:
        AIProviderError: If the answer is not valid JSON or has no summary
    """
    cleaned = _FENCE_RE.sub("", text.strip()).strip()
    try:
        data: Any = json.loads(cleaned)
    except ValueError as e:
        raise AIProviderError(f"Summary response is not valid JSON: {cleaned[:100]}", transient=True) from e

    summary = str(data.get("summary", "")).strip() if isinstance(data, dict) else ""
    if not summary:
        raise AIProviderError("Summary response has no summary", transient=True)

    raw_tags = data.get("tags") or []
    tags: List[str] = []
    for tag in raw_tags if isinstance(raw_tags, list) else []:
        name = str(tag).strip().lower()
        if name and name not in tags:
            tags.append(name)
    return SummaryResult(summary=summary, tags=tags[:MAX_TAGS])


def normalize_category(text: str) -> str:
    """Map a free-form model answer onto the fixed category list."""
    answer = text.strip().lower().strip(".\"' ")
    if answer in CATEGORIES:
        return answer
    for category in CATEGORIES:
        if re.search(rf"\b{category}\b", answer):
            return category
    return "other"


class GeminiAIProvider(AIProvider):
    """
    An implementation of AIProvider that uses the Gemini API.

    Only the first `max_content_length` characters of the page content are
    sent with each prompt.
    """

    def __init__(
        self,
        model_name: str = "gemini-1.5-flash",
        api_key: Optional[str] = None,
        max_content_length: int = 4000,
        rate_limiters: Optional[ProviderRateLimiters] = None,
        model: Optional[Any] = None
    ):
        """
        Initialize the Gemini AI provider.

        Args:
            model_name: Generative model used for both prompts
            api_key: Gemini API key; falls back to the GEMINI_API_KEY variable
            max_content_length: Content characters included in prompts
            rate_limiters: Optional provider quotas; the "gemini" bucket is used
            model: Pre-built model object exposing generate_content_async
        """
        self.model_name = model_name
        self.max_content_length = max_content_length
        self._rate_limiters = rate_limiters

        if model is None:
            gemini_api_key = api_key or os.getenv("GEMINI_API_KEY")
            if not gemini_api_key:
                raise ConfigurationError("GEMINI_API_KEY not found in environment variables or provided directly.")
            genai.configure(api_key=gemini_api_key)
            model = genai.GenerativeModel(model_name)
        self._model = model

    async def summarize(self, url: str, content: str) -> SummaryResult:
        prompt = (
            "Summarize the following web page for a bookmark manager.\n"
            "Respond with JSON only, shaped as "
            '{"summary": "<30-50 words>", "tags": ["<2-4 short lowercase tags>"]}.\n\n'
            f"URL: {url}\n\nContent:\n{content[:self.max_content_length]}"
        )
        text = await self._generate(prompt)
        return parse_summary_response(text)

    async def categorize(self, url: str, content: str) -> str:
        prompt = (
            "Pick the single best category for this web page from this list: "
            f"{', '.join(CATEGORIES)}.\n"
            "Respond with the category name only.\n\n"
            f"URL: {url}\n\nContent:\n{content[:self.max_content_length]}"
        )
        text = await self._generate(prompt)
        return normalize_category(text)

    async def _generate(self, prompt: str) -> str:
        if self._rate_limiters is not None:
            await self._rate_limiters.acquire("gemini")

        try:
            response = await self._model.generate_content_async(prompt)
        except Exception as e:
            if _is_quota_error(e):
                raise QuotaExceededError(f"Gemini quota exceeded: {e}") from e
            raise AIProviderError(f"Gemini generation failed: {e}") from e

        text = getattr(response, "text", None)
        if not text:
            raise AIProviderError("Gemini returned an empty response")
        logger.debug(f"Gemini {self.model_name} answered with {len(text)} chars")
        return text
