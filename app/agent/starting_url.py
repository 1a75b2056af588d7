"""
Starting URL Selection
======================

Pick the page the browser should open before the computer-use model
takes over. A small structured-output call is made with a short timeout;
any failure falls back to a search engine.
"""

import asyncio

import openai
from openai import AsyncOpenAI
from pydantic import BaseModel, ValidationError, field_validator

from app.utils.logger import get_logger

logger = get_logger(__name__)

FALLBACK_URL = "https://www.google.com"

STARTING_URL_PROMPT = """Given the goal: "{goal}", determine the best URL to start from.
Choose from:
1. A relevant search engine (Google, Bing, etc.)
2. A direct URL if you're confident about the target website
3. Any other appropriate starting point

Return a URL that would be most effective for achieving this goal."""


class StartingUrl(BaseModel):
    """Structured answer of the starting URL model."""

    url: str
    reasoning: str

    @field_validator("url")
    @classmethod
    def require_http_url(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Not an http(s) URL: {v}")
        return v


async def select_starting_url(
    client: AsyncOpenAI,
    goal: str,
    model: str = "gpt-4o",
    timeout: float = 5.0,
    fallback_url: str = FALLBACK_URL,
) -> StartingUrl:
    """
    Ask the model for the best first URL for a goal.

    Never raises: on timeout, API error or an unusable answer the
    fallback URL is returned.

    Args:
        client: OpenAI client.
        goal: The user's goal.
        model: Chat model supporting structured outputs.
        timeout: Seconds to wait before falling back.
        fallback_url: URL used when selection fails.

    Returns:
        The chosen URL and the model's reasoning.
    """
    try:
        completion = await asyncio.wait_for(
            client.chat.completions.parse(
                model=model,
                messages=[
                    {"role": "user", "content": STARTING_URL_PROMPT.format(goal=goal)},
                ],
                response_format=StartingUrl,
            ),
            timeout=timeout,
        )
        parsed = completion.choices[0].message.parsed
    except asyncio.TimeoutError:
        logger.warning("Starting URL selection timed out, falling back", fallback_url=fallback_url)
        return StartingUrl(url=fallback_url, reasoning="Selection timed out")
    except (openai.OpenAIError, ValidationError) as e:
        logger.warning("Starting URL selection failed, falling back", error=str(e), fallback_url=fallback_url)
        return StartingUrl(url=fallback_url, reasoning="Selection failed")

    if parsed is None:
        logger.warning("Starting URL model returned no answer, falling back", fallback_url=fallback_url)
        return StartingUrl(url=fallback_url, reasoning="No answer from the model")

    logger.info("Starting URL selected", url=parsed.url, reasoning=parsed.reasoning)
    return parsed
