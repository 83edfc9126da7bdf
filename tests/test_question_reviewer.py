# =============================================================================
# tests/test_question_reviewer.py - AI Question Reviewer Tests
# =============================================================================
# This module contains tests for:
# - with_retry backoff policy (auth errors, retry-after, exhaustion)
# - Hint JSON extraction
# - QuestionReviewer with a mocked OpenAI client
#
# Tests use mocked OpenAI responses to avoid API costs.
# =============================================================================

import asyncio
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from openai import AuthenticationError, RateLimitError

from agents.question_reviewer import QuestionReviewer, ReviewError, parse_hints, with_retry

OPENAI_URL = "https://api.openai.com/v1/chat/completions"


def api_error(cls, status: int, headers: dict | None = None):
    response = httpx.Response(status, headers=headers or {}, request=httpx.Request("POST", OPENAI_URL))
    return cls("error", response=response, body=None)


def completion(content: str, prompt_tokens: int = 100, completion_tokens: int = 50):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(prompt_tokens=prompt_tokens, completion_tokens=completion_tokens),
    )


def mock_client(*responses):
    client = MagicMock()
    client.chat.completions.create = AsyncMock(side_effect=list(responses))
    return client


QUESTION = {
    "id": "q-1",
    "question_text": "Solve 2x + 3 = 7",
    "option_a": "1",
    "option_b": "2",
    "correct_answer": "B",
}


# =============================================================================
# Retry Policy
# =============================================================================

class TestWithRetry:

    def test_returns_first_success(self):
        fn = AsyncMock(return_value="ok")
        assert asyncio.run(with_retry(fn, max_retries=3, retry_delay=1.0)) == "ok"
        assert fn.await_count == 1

    @patch("agents.question_reviewer.asyncio.sleep", new_callable=AsyncMock)
    def test_exponential_backoff(self, sleep):
        fn = AsyncMock(side_effect=[RuntimeError("boom"), RuntimeError("boom"), "ok"])
        assert asyncio.run(with_retry(fn, max_retries=3, retry_delay=1.0)) == "ok"
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]

    @patch("agents.question_reviewer.asyncio.sleep", new_callable=AsyncMock)
    def test_gives_up_after_max_retries(self, sleep):
        fn = AsyncMock(side_effect=RuntimeError("still failing"))
        with pytest.raises(RuntimeError, match="still failing"):
            asyncio.run(with_retry(fn, max_retries=2, retry_delay=0.5))
        assert fn.await_count == 3
        assert [c.args[0] for c in sleep.await_args_list] == [0.5, 1.0]

    @patch("agents.question_reviewer.asyncio.sleep", new_callable=AsyncMock)
    def test_zero_retries_raises_first_error(self, sleep):
        fn = AsyncMock(side_effect=RuntimeError("once"))
        with pytest.raises(RuntimeError, match="once"):
            asyncio.run(with_retry(fn, max_retries=0))
        assert fn.await_count == 1
        sleep.assert_not_awaited()

    @patch("agents.question_reviewer.asyncio.sleep", new_callable=AsyncMock)
    def test_auth_errors_are_not_retried(self, sleep):
        fn = AsyncMock(side_effect=api_error(AuthenticationError, 401))
        with pytest.raises(AuthenticationError):
            asyncio.run(with_retry(fn, max_retries=3))
        assert fn.await_count == 1
        sleep.assert_not_awaited()

    @patch("agents.question_reviewer.asyncio.sleep", new_callable=AsyncMock)
    def test_rate_limit_honours_retry_after(self, sleep):
        fn = AsyncMock(side_effect=[api_error(RateLimitError, 429, {"retry-after": "7"}), "ok"])
        assert asyncio.run(with_retry(fn, max_retries=3, retry_delay=1.0)) == "ok"
        sleep.assert_awaited_once_with(7.0)

    @patch("agents.question_reviewer.asyncio.sleep", new_callable=AsyncMock)
    def test_rate_limit_without_header_uses_backoff(self, sleep):
        fn = AsyncMock(side_effect=[api_error(RateLimitError, 429), "ok"])
        asyncio.run(with_retry(fn, max_retries=3, retry_delay=1.0))
        sleep.assert_awaited_once_with(1.0)


# =============================================================================
# Hint Parsing
# =============================================================================

class TestParseHints:

    def test_json_inside_prose(self):
        text = 'Here you go:\n{"hint1": "a", "hint2": "bb", "hint3": "ccc"}\nGood luck!'
        assert parse_hints(text) == {"hint1": "a", "hint2": "bb", "hint3": "ccc"}

    def test_missing_keys_become_empty(self):
        assert parse_hints('{"hint1": "only one"}') == {"hint1": "only one", "hint2": "", "hint3": ""}

    def test_no_json(self):
        with pytest.raises(ReviewError, match="No JSON found in response"):
            parse_hints("I cannot help with that.")

    def test_invalid_json(self):
        with pytest.raises(ReviewError, match="Failed to parse hints response"):
            parse_hints("{hint1: nope}")


# =============================================================================
# Reviewer
# =============================================================================

class TestQuestionReviewer:

    def test_review_combines_three_calls(self):
        hints = json.dumps({"hint1": "h1", "hint2": "h22", "hint3": "h333"})
        client = MagicMock()

        async def create(**kwargs):
            prompt = kwargs["messages"][1]["content"]
            if "hint1" in prompt:
                return completion(hints, 10, 5)
            if "explanation" in prompt.lower() and "solution" not in prompt.lower():
                return completion("Because.", 10, 5)
            return completion("Step 1: do it.", 10, 5)

        client.chat.completions.create = AsyncMock(side_effect=create)
        reviewer = QuestionReviewer(client=client, model="gpt-test", max_retries=0)

        result = asyncio.run(reviewer.review_question(QUESTION, "Mathematics"))

        assert (result.hint1, result.hint2, result.hint3) == ("h1", "h22", "h333")
        assert result.tokens_used == 45
        assert client.chat.completions.create.await_count == 3
        for call in client.chat.completions.create.await_args_list:
            assert call.kwargs["model"] == "gpt-test"

    def test_token_limits(self):
        client = mock_client(completion('{"hint1": "a", "hint2": "b", "hint3": "c"}'), completion("solution"))
        reviewer = QuestionReviewer(client=client, max_retries=0)

        asyncio.run(reviewer.generate_hints(QUESTION))
        asyncio.run(reviewer.generate_solution(QUESTION))

        calls = client.chat.completions.create.await_args_list
        assert calls[0].kwargs["max_tokens"] == 1024
        assert calls[1].kwargs["max_tokens"] == 2048

    def test_any_failure_fails_review(self):
        client = MagicMock()
        client.chat.completions.create = AsyncMock(side_effect=api_error(AuthenticationError, 401))
        reviewer = QuestionReviewer(client=client, max_retries=0)

        with pytest.raises(AuthenticationError):
            asyncio.run(reviewer.review_question(QUESTION))

    def test_requires_api_key(self, monkeypatch):
        from app.config import settings

        monkeypatch.setattr(settings, "OPENAI_API_KEY", "")
        with pytest.raises(ReviewError) as exc:
            QuestionReviewer()
        assert exc.value.code == "REVIEWER_NOT_CONFIGURED"
