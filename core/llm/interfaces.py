"""
LLM Provider Interface - Abstract base for reasoning service providers.

This module defines the interface the refinement stage talks to
(Mistral, OpenAI, Ollama or any OpenAI-compatible endpoint).
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional

from core.usage.pricing import TokenUsage


@dataclass
class CompletionResult:
    """Text returned by the reasoning service plus its token accounting."""
    text: str
    usage: TokenUsage
    model: str = ""
    attempts: int = 1
    # True when token counts were estimated from text length
    usage_estimated: bool = False


class LLMProvider(ABC):
    """
    Abstract Interface for reasoning service providers.
    """

    @abstractmethod
    def complete(
        self,
        messages: List[Dict[str, str]],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> CompletionResult:
        """
        Run one chat completion within an overall time budget.

        Args:
            messages: Chat messages ({"role", "content"})
            temperature: Sampling temperature, provider default when None
            max_tokens: Output cap, provider default when None
            timeout: Overall budget in seconds across all retry attempts

        Raises:
            RefinementTimeout, RefinementRateLimited or RefinementError
        """
        pass
