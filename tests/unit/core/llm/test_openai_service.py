"""
Unit tests for the OpenAI-compatible completion client.

Tests verify:
- Token usage is read from the response, or estimated when missing
- Transient errors are retried with backoff, up to the attempt limit
- Retries never sleep past the overall time budget
- Errors map to RefinementTimeout / RefinementRateLimited / RefinementError
"""
from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
import openai
import pytest

from core.exceptions import RefinementError, RefinementRateLimited, RefinementTimeout
from core.llm.openai_service import OpenAIService, _parse_reset_duration

REQUEST = httpx.Request("POST", "https://api.mistral.ai/v1/chat/completions")
MESSAGES = [{"role": "system", "content": "sys"}, {"role": "user", "content": "hello world"}]


class FakeClock:
    """Monotonic clock advanced only by sleep() and explicit ticks."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


def _response(text='{"matches": []}', prompt_tokens=120, completion_tokens=30, cached_tokens=0):
    usage = SimpleNamespace(
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        prompt_tokens_details=SimpleNamespace(cached_tokens=cached_tokens),
    )
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=text))],
        usage=usage,
    )


def _timeout():
    return openai.APITimeoutError(request=REQUEST)


def _rate_limited(headers=None):
    response = httpx.Response(429, request=REQUEST, headers=headers or {})
    return openai.RateLimitError("Rate limit exceeded", response=response, body=None)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def service(clock):
    svc = OpenAIService(
        api_key="test-key",
        base_url="https://api.mistral.ai/v1",
        model_config={"model": "mistral-small-latest"},
        retry_config={"max_attempts": 3, "timeout_seconds": 25.0,
                      "backoff_min_seconds": 1.0, "backoff_max_seconds": 8.0},
        sleep=clock.sleep,
        clock=clock,
    )
    svc.client = MagicMock()
    return svc


class TestComplete:

    def test_returns_text_and_reported_usage(self, service):
        service.client.chat.completions.create.return_value = _response(
            text="ok", prompt_tokens=120, completion_tokens=30, cached_tokens=20,
        )

        result = service.complete(MESSAGES)

        assert result.text == "ok"
        assert result.usage.input_tokens == 100
        assert result.usage.cached_tokens == 20
        assert result.usage.output_tokens == 30
        assert result.attempts == 1
        assert not result.usage_estimated

    def test_sends_remaining_budget_as_timeout(self, service):
        service.client.chat.completions.create.return_value = _response()

        service.complete(MESSAGES, timeout=10.0)

        kwargs = service.client.chat.completions.create.call_args.kwargs
        assert kwargs["timeout"] == 10.0
        assert kwargs["model"] == "mistral-small-latest"
        assert kwargs["messages"] == MESSAGES

    def test_estimates_usage_when_missing(self, service):
        response = _response(text="abcdefgh")
        response.usage = None
        service.client.chat.completions.create.return_value = response

        result = service.complete(MESSAGES)

        assert result.usage_estimated
        # "sys" + "hello world" = 14 chars -> 4 tokens; "abcdefgh" -> 2 tokens
        assert result.usage.input_tokens == 4
        assert result.usage.output_tokens == 2


class TestRetries:

    def test_retries_transient_error_then_succeeds(self, service, clock):
        service.client.chat.completions.create.side_effect = [_timeout(), _response(text="second")]

        result = service.complete(MESSAGES)

        assert result.text == "second"
        assert result.attempts == 2
        assert clock.sleeps == [1.0]

    def test_three_timeouts_raise_refinement_timeout(self, service, clock):
        service.client.chat.completions.create.side_effect = [_timeout(), _timeout(), _timeout()]

        with pytest.raises(RefinementTimeout):
            service.complete(MESSAGES)

        assert service.client.chat.completions.create.call_count == 3
        assert clock.sleeps == [1.0, 2.0]

    def test_rate_limit_exhausted(self, service):
        service.client.chat.completions.create.side_effect = [_rate_limited() for _ in range(3)]

        with pytest.raises(RefinementRateLimited) as exc_info:
            service.complete(MESSAGES)

        assert exc_info.value.reason_code == "rate_limited"

    def test_retry_after_header_is_honoured(self, service, clock):
        service.client.chat.completions.create.side_effect = [
            _rate_limited({"retry-after": "3"}),
            _response(),
        ]

        service.complete(MESSAGES)

        assert clock.sleeps == [3.0]

    def test_retry_that_would_overrun_budget_is_skipped(self, service, clock):
        def slow_timeout(**kwargs):
            clock.now += 1.5
            raise _timeout()

        service.client.chat.completions.create.side_effect = slow_timeout

        with pytest.raises(RefinementTimeout):
            service.complete(MESSAGES, timeout=2.0)

        # 0.5s left is less than the 1s backoff: no second attempt
        assert service.client.chat.completions.create.call_count == 1
        assert clock.sleeps == []

    def test_client_errors_are_not_retried(self, service):
        response = httpx.Response(400, request=REQUEST)
        service.client.chat.completions.create.side_effect = openai.BadRequestError(
            "bad request", response=response, body=None,
        )

        with pytest.raises(RefinementError) as exc_info:
            service.complete(MESSAGES)

        assert type(exc_info.value) is RefinementError
        assert exc_info.value.reason_code == "ai_error"
        assert service.client.chat.completions.create.call_count == 1


class TestParseResetDuration:

    @pytest.mark.parametrize("value, expected", [
        ("1s", 1.0),
        ("500ms", 0.5),
        ("1m30s", 90.0),
        ("", 0.0),
    ])
    def test_parse(self, value, expected):
        assert _parse_reset_duration(value) == pytest.approx(expected)


class TestUnexpectedFailures:

    def test_response_validation_error_maps_to_refinement_error(self, service):
        response = httpx.Response(200, request=REQUEST)
        service.client.chat.completions.create.side_effect = openai.APIResponseValidationError(
            response=response, body=None,
        )

        with pytest.raises(RefinementError) as exc_info:
            service.complete(MESSAGES)

        assert exc_info.value.reason_code == "ai_error"
        assert service.client.chat.completions.create.call_count == 1

    def test_missing_choices_maps_to_refinement_error(self, service):
        response = _response()
        response.choices = None
        service.client.chat.completions.create.return_value = response

        with pytest.raises(RefinementError):
            service.complete(MESSAGES)
