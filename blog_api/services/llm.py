"""OpenAI chat completion client.

Usage:
    from blog_api.services.llm import chat_completion

    response = await chat_completion("Translate this post: ...", system="...")
"""

import logging

from openai import AsyncOpenAI

from blog_api.config import get_settings

logger = logging.getLogger(__name__)


def llm_configured() -> bool:
    """True when an API key is available."""
    return bool(get_settings().openai_api_key)


def _get_client() -> AsyncOpenAI:
    """Create an async OpenAI client with a bounded request timeout."""
    settings = get_settings()
    return AsyncOpenAI(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url or None,
        timeout=settings.upstream_timeout_seconds,
        max_retries=0,
    )


async def chat_completion(
    prompt: str,
    system: str | None = None,
    model: str | None = None,
    max_tokens: int = 1000,
    temperature: float = 0.7,
) -> str:
    """Run a chat completion.

    Args:
        prompt: The user message to send.
        system: Optional system message sent before the prompt.
        model: Override the configured model.
        max_tokens: Maximum response tokens.
        temperature: Sampling temperature.

    Returns:
        The assistant's response text ("" if the model returned nothing).

    Raises:
        openai.APIError: On API errors, including timeouts.
    """
    settings = get_settings()
    client = _get_client()

    messages = []
    if system:
        messages.append({"role": "system", "content": system})
    messages.append({"role": "user", "content": prompt})

    response = await client.chat.completions.create(
        model=model or settings.translation_model,
        messages=messages,
        max_tokens=max_tokens,
        temperature=temperature,
    )

    if not response.choices:
        return ""
    return response.choices[0].message.content or ""
