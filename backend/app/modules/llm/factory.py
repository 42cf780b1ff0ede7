from __future__ import annotations

import logging
from functools import lru_cache

from app.core.config import settings

from .base import ChatCompletionProvider
from .openai_provider import OpenAIChatProvider

logger = logging.getLogger(__name__)

OPENAI_ALIASES = {"openai", "gpt", "openai_chat"}


@lru_cache(maxsize=1)
def get_chat_provider() -> ChatCompletionProvider:
    """Provider used for profile photo screening.

    Raises ``RuntimeError`` when the provider is unknown or not configured so
    callers can fall back to accepting the photo.
    """
    provider_name = (settings.LLM_PROVIDER or "openai").lower()
    if provider_name not in OPENAI_ALIASES:
        raise RuntimeError(f"Unsupported LLM provider: {provider_name}")
    provider = OpenAIChatProvider()
    logger.info("Photo screening provider ready: %s", provider.name())
    return provider
