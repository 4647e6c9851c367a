"""
OpenAI Service - reasoning service client over any OpenAI-compatible API.

Defaults to the Mistral endpoint. Calls are retried with capped exponential
backoff, and every attempt is bounded by what is left of the caller's
overall time budget.
"""
from typing import Callable, Dict, Any, List, Optional
import logging
import re
import time

import openai
from openai import OpenAI
from tenacity import (
    Retrying,
    retry_if_exception,
    wait_exponential,
)
from tenacity import RetryCallState

from core.exceptions import RefinementError, RefinementRateLimited, RefinementTimeout
from core.llm.interfaces import CompletionResult, LLMProvider
from core.usage.pricing import TokenUsage, estimate_tokens

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS = (
    openai.RateLimitError,
    openai.APITimeoutError,
    openai.APIConnectionError,
    openai.InternalServerError,
)


# ---------------------------------------------------------------------------
# Retry helpers
# ---------------------------------------------------------------------------

def _is_retryable(exc: BaseException) -> bool:
    """Return True for transient errors that are worth retrying."""
    return isinstance(exc, RETRYABLE_ERRORS)


def _log_retry(retry_state: RetryCallState) -> None:
    """Log a warning before each retry sleep."""
    exc = retry_state.outcome.exception()
    wait = retry_state.next_action.sleep if retry_state.next_action else 0
    if isinstance(exc, openai.RateLimitError):
        logger.warning(
            "Rate limit hit (attempt %s). Waiting %.1fs before retry. Details: %s",
            retry_state.attempt_number, wait, exc,
        )
    else:
        logger.warning(
            "Transient API error (attempt %s). Waiting %.1fs before retry. Details: %s",
            retry_state.attempt_number, wait, exc,
        )


def _parse_reset_duration(value: str) -> float:
    """Parse a reset-timer header value like '1s', '500ms', '1m30s' into seconds."""
    total = 0.0
    for amount, unit in re.findall(r"([\d.]+)(ms|s|m|h)", value):
        a = float(amount)
        if unit == "ms":
            total += a / 1000
        elif unit == "s":
            total += a
        elif unit == "m":
            total += a * 60
        else:  # h
            total += a * 3600
    return total


def _wait_from_rate_limit_headers(exc: openai.RateLimitError) -> float:
    """Longest declared wait from retry-after / x-ratelimit-reset-* headers, 0.0 if none."""
    try:
        headers = exc.response.headers
    except AttributeError:
        return 0.0

    candidates: List[float] = []
    retry_after = headers.get("retry-after", "")
    if retry_after:
        try:
            candidates.append(float(retry_after))
        except ValueError:
            logger.debug("Ignoring non-numeric retry-after header: %s", retry_after)

    for header in ("x-ratelimit-reset-requests", "x-ratelimit-reset-tokens"):
        parsed = _parse_reset_duration(headers.get(header, ""))
        if parsed > 0:
            candidates.append(parsed)

    return max(candidates) if candidates else 0.0


class _DeadlineRetryPolicy:
    """
    Backoff and stop rules bound to one call's deadline.

    The stop rule evaluates the same wait the next sleep would use, so a
    retry that cannot start before the deadline is never attempted.
    """

    def __init__(
        self,
        deadline: float,
        clock: Callable[[], float],
        max_attempts: int,
        backoff_min: float,
        backoff_max: float,
    ):
        self.deadline = deadline
        self.clock = clock
        self.max_attempts = max_attempts
        self._exponential = wait_exponential(multiplier=backoff_min, min=backoff_min, max=backoff_max)

    def remaining(self) -> float:
        return self.deadline - self.clock()

    def wait(self, retry_state: RetryCallState) -> float:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        if isinstance(exc, openai.RateLimitError):
            declared = _wait_from_rate_limit_headers(exc)
            if declared > 0:
                return declared
        return self._exponential(retry_state)

    def stop(self, retry_state: RetryCallState) -> bool:
        if retry_state.attempt_number >= self.max_attempts:
            return True
        if self.remaining() - self.wait(retry_state) <= 0:
            logger.warning(
                f"Next retry would overrun the time budget ({max(0.0, self.remaining()):.1f}s left), "
                f"giving up after attempt {retry_state.attempt_number}"
            )
            return True
        return False


class OpenAIService(LLMProvider):
    """
    OpenAI-compatible chat completion service.

    The SDK's own retries are disabled; retries, backoff and the per-call
    time budget are handled here.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model_config: Optional[Dict[str, Any]] = None,
        retry_config: Optional[Dict[str, Any]] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        client_kwargs: Dict[str, Any] = {'max_retries': 0}
        if api_key:
            client_kwargs['api_key'] = api_key
        if base_url:
            client_kwargs['base_url'] = base_url

        self.client = OpenAI(**client_kwargs)

        self.model_config = model_config or {}
        self.model = self.model_config.get('model', 'mistral-small-latest')
        self.temperature = self.model_config.get('temperature', 0.2)
        self.max_tokens = self.model_config.get('max_tokens', 8192)

        retry_config = retry_config or {}
        self.max_attempts = retry_config.get('max_attempts', 3)
        self.default_timeout = retry_config.get('timeout_seconds', 25.0)
        self.backoff_min = retry_config.get('backoff_min_seconds', 1.0)
        self.backoff_max = retry_config.get('backoff_max_seconds', 8.0)

        self._sleep = sleep
        self._clock = clock

    def _create(self, messages: List[Dict[str, str]], temperature: float, max_tokens: int, timeout: float):
        return self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
        )

    @staticmethod
    def _usage_from_response(response, messages: List[Dict[str, str]], text: str):
        usage = getattr(response, 'usage', None)
        prompt_tokens = getattr(usage, 'prompt_tokens', None) if usage else None
        completion_tokens = getattr(usage, 'completion_tokens', None) if usage else None

        cached = 0
        details = getattr(usage, 'prompt_tokens_details', None) if usage else None
        if details is not None and isinstance(getattr(details, 'cached_tokens', None), int):
            cached = details.cached_tokens

        estimated = False
        if not isinstance(prompt_tokens, int) or not prompt_tokens:
            prompt_tokens = estimate_tokens("".join(m.get('content', '') for m in messages))
            estimated = True
        if not isinstance(completion_tokens, int) or not completion_tokens:
            completion_tokens = estimate_tokens(text)
            estimated = True

        return TokenUsage(
            input_tokens=max(0, prompt_tokens - cached),
            output_tokens=completion_tokens,
            cached_tokens=cached,
        ), estimated

    def complete(
        self,
        messages: List[Dict[str, str]],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> CompletionResult:
        budget = self.default_timeout if timeout is None else timeout
        policy = _DeadlineRetryPolicy(
            deadline=self._clock() + budget,
            clock=self._clock,
            max_attempts=self.max_attempts,
            backoff_min=self.backoff_min,
            backoff_max=self.backoff_max,
        )
        temperature = self.temperature if temperature is None else temperature
        max_tokens = self.max_tokens if max_tokens is None else max_tokens

        retrying = Retrying(
            retry=retry_if_exception(_is_retryable),
            wait=policy.wait,
            stop=policy.stop,
            before_sleep=_log_retry,
            sleep=self._sleep,
            reraise=True,
        )

        attempts = 0
        try:
            for attempt in retrying:
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    remaining = policy.remaining()
                    if remaining <= 0:
                        raise RefinementTimeout(f"Time budget of {budget:.1f}s exhausted before attempt {attempts}")
                    response = self._create(messages, temperature, max_tokens, remaining)
        except openai.RateLimitError as e:
            raise RefinementRateLimited(f"Rate limited after {attempts} attempt(s): {e}") from e
        except openai.APITimeoutError as e:
            raise RefinementTimeout(f"Timed out after {attempts} attempt(s): {e}") from e
        except (openai.APIConnectionError, openai.InternalServerError) as e:
            raise RefinementError(f"Reasoning service unavailable after {attempts} attempt(s): {e}") from e
        except openai.APIStatusError as e:
            if e.status_code == 429:
                raise RefinementRateLimited(str(e)) from e
            raise RefinementError(f"Reasoning service error {e.status_code}: {e}") from e
        except openai.APIError as e:
            raise RefinementError(f"Reasoning service error: {e}") from e

        try:
            text = response.choices[0].message.content or ""
        except (IndexError, AttributeError, TypeError) as e:
            raise RefinementError(f"Malformed completion response: {e}") from e

        usage, estimated = self._usage_from_response(response, messages, text)
        logger.info(
            f"Completion from {self.model} after {attempts} attempt(s): "
            f"{usage.input_tokens} in / {usage.output_tokens} out"
            f"{' (estimated)' if estimated else ''}"
        )
        return CompletionResult(
            text=text,
            usage=usage,
            model=self.model,
            attempts=attempts,
            usage_estimated=estimated,
        )
