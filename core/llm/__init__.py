"""LLM Module - reasoning service clients and interfaces."""
from core.llm.interfaces import CompletionResult, LLMProvider
from core.llm.openai_service import OpenAIService

__all__ = ['CompletionResult', 'LLMProvider', 'OpenAIService']
