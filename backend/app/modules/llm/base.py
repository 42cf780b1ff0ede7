from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Sequence


class ChatCompletionProvider(ABC):
    """Abstract contract for chat completion providers."""

    @abstractmethod
    def generate(
        self,
        messages: Sequence[dict[str, Any]],
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
        json_mode: bool = False,
        model: str | None = None,
    ) -> str:
        """Generate a chat completion string from message history.

        Message ``content`` may be a string or a list of parts (text and
        ``image_url``) for vision-capable models. With ``json_mode`` the
        provider is asked for a JSON object.
        """

    @abstractmethod
    def name(self) -> str:
        """Return provider identifier."""

    def health_check(self) -> bool:
        """Optional health-check hook."""
        return True
