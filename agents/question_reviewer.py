# =============================================================================
# agents/question_reviewer.py - AI Question Reviewer
# =============================================================================
# Generates review content for a question with the OpenAI chat API:
# 1. Three progressive hints (JSON)
# 2. A step-by-step solution
# 3. An explanation of why the answer is correct
#
# The three calls run concurrently. If any of them fails the whole review
# fails; callers store a "failed" review row in that case.
#
# Every call goes through with_retry():
# - attempts max_retries + 1 times
# - never retries authentication errors (401/403)
# - waits retry_delay * 2**attempt between attempts
# - on 429 waits the retry-after header instead, when present
#
# Usage:
#   from agents.question_reviewer import QuestionReviewer
#   reviewer = QuestionReviewer()
#   result = await reviewer.review_question(question, subject_name="Physics")
# =============================================================================

from __future__ import annotations

import asyncio
import json
import logging
import re
import time
from typing import Any, Awaitable, Callable, TypeVar

from openai import APIStatusError, AsyncOpenAI

from app.config import settings
from agents.models.review_result import GeneratedHints, ReviewResult
from agents.prompts.review_prompts import (
    SYSTEM_PROMPT,
    build_explanation_prompt,
    build_hints_prompt,
    build_solution_prompt,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

HINTS_MAX_TOKENS = 1024
TEXT_MAX_TOKENS = 2048

# Status codes that retrying can never fix
NON_RETRYABLE_STATUS = (401, 403)

JSON_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")


# =============================================================================
# Exceptions
# =============================================================================

class ReviewError(Exception):
    """
    Error while generating review content.

    Attributes:
        code: Error code for categorization
        message: Human-readable error message
        suggestion: Actionable suggestion for fixing the error
        details: Additional context for debugging
    """

    def __init__(
        self,
        message: str,
        code: str = "REVIEW_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f"\nSuggestion: {self.suggestion}"
        return result


# =============================================================================
# Retry Policy
# =============================================================================

def _status_code(error: Exception) -> int | None:
    if isinstance(error, APIStatusError):
        return error.status_code
    return getattr(error, "status_code", None) or getattr(error, "status", None)


def _retry_after_seconds(error: Exception) -> float | None:
    """Seconds from a retry-after header, if the error carries one."""
    response = getattr(error, "response", None)
    headers = getattr(response, "headers", None)
    if not headers:
        return None
    value = headers.get("retry-after")
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


async def with_retry(
    fn: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    retry_delay: float = 1.0,
) -> T:
    """
    Await fn() with exponential backoff.

    Args:
        fn: Zero-argument coroutine factory; called once per attempt
        max_retries: Retries after the first attempt
        retry_delay: Base delay in seconds

    Raises:
        The last error once attempts are exhausted, or immediately for
        401/403 responses
    """
    attempt = 0
    while True:
        try:
            return await fn()
        except Exception as e:
            status_code = _status_code(e)
            if status_code in NON_RETRYABLE_STATUS or attempt >= max_retries:
                raise

            delay = retry_delay * 2 ** attempt
            if status_code == 429:
                retry_after = _retry_after_seconds(e)
                if retry_after is not None:
                    delay = retry_after

            logger.warning(
                f"OpenAI call failed (attempt {attempt + 1}/{max_retries + 1}, "
                f"status={status_code}): {e}; retrying in {delay:.1f}s"
            )
            await asyncio.sleep(delay)
            attempt += 1


def parse_hints(text: str) -> dict[str, str]:
    """
    Pull the {hint1, hint2, hint3} object out of a model response.

    Raises:
        ReviewError: If no JSON object is present or it can't be parsed
    """
    match = JSON_OBJECT_PATTERN.search(text or "")
    if not match:
        raise ReviewError(
            "No JSON found in response",
            code="HINTS_PARSE_ERROR",
            details={"response": (text or "")[:500]},
        )
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise ReviewError(
            f"Failed to parse hints response: {e}",
            code="HINTS_PARSE_ERROR",
            details={"response": match.group(0)[:500]},
        )
    if not isinstance(data, dict):
        raise ReviewError("Failed to parse hints response: expected an object", code="HINTS_PARSE_ERROR")

    return {key: str(data.get(key) or "") for key in ("hint1", "hint2", "hint3")}


# =============================================================================
# Reviewer
# =============================================================================

class QuestionReviewer:
    """
    Produces hints, solution and explanation for one question.

    The OpenAI client's own retries are disabled; with_retry() owns the
    backoff policy.
    """

    def __init__(
        self,
        client: AsyncOpenAI | None = None,
        model: str | None = None,
        max_retries: int | None = None,
        retry_delay: float | None = None,
        temperature: float | None = None,
    ):
        if client is None:
            if not settings.OPENAI_API_KEY:
                raise ReviewError(
                    "OpenAI API key is not configured",
                    code="REVIEWER_NOT_CONFIGURED",
                    suggestion="Set OPENAI_API_KEY in the environment",
                )
            client = AsyncOpenAI(api_key=settings.OPENAI_API_KEY, max_retries=0)

        self.client = client
        self.model = model or settings.OPENAI_MODEL
        self.max_retries = settings.REVIEW_MAX_RETRIES if max_retries is None else max_retries
        self.retry_delay = settings.REVIEW_RETRY_DELAY_SECONDS if retry_delay is None else retry_delay
        self.temperature = settings.REVIEW_TEMPERATURE if temperature is None else temperature

    async def _complete(self, prompt: str, max_tokens: int) -> tuple[str, int]:
        """One chat completion with retries. Returns (text, tokens used)."""

        async def call():
            return await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=max_tokens,
                temperature=self.temperature,
            )

        response = await with_retry(call, self.max_retries, self.retry_delay)

        text = ""
        if response.choices:
            text = response.choices[0].message.content or ""
        usage = getattr(response, "usage", None)
        tokens = 0
        if usage is not None:
            tokens = (usage.prompt_tokens or 0) + (usage.completion_tokens or 0)
        return text.strip(), tokens

    async def generate_hints(
        self,
        question: dict[str, Any],
        subject_name: str | None = None,
    ) -> GeneratedHints:
        text, tokens = await self._complete(
            build_hints_prompt(question, subject_name), HINTS_MAX_TOKENS
        )
        return GeneratedHints(**parse_hints(text), tokens_used=tokens)

    async def generate_solution(
        self,
        question: dict[str, Any],
        subject_name: str | None = None,
    ) -> tuple[str, int]:
        return await self._complete(build_solution_prompt(question, subject_name), TEXT_MAX_TOKENS)

    async def generate_explanation(
        self,
        question: dict[str, Any],
        subject_name: str | None = None,
    ) -> tuple[str, int]:
        return await self._complete(build_explanation_prompt(question, subject_name), TEXT_MAX_TOKENS)

    async def review_question(
        self,
        question: dict[str, Any],
        subject_name: str | None = None,
    ) -> ReviewResult:
        """
        Run the three generation calls concurrently.

        Raises:
            Whatever the first failing call raised
        """
        started = time.monotonic()
        logger.info(f"Reviewing question {question.get('id')} with {self.model}")

        hints, (solution, solution_tokens), (explanation, explanation_tokens) = await asyncio.gather(
            self.generate_hints(question, subject_name),
            self.generate_solution(question, subject_name),
            self.generate_explanation(question, subject_name),
        )

        duration_ms = int((time.monotonic() - started) * 1000)
        tokens_used = hints.tokens_used + solution_tokens + explanation_tokens
        logger.info(
            f"Review for question {question.get('id')} done in {duration_ms}ms "
            f"({tokens_used} tokens)"
        )

        return ReviewResult(
            hint1=hints.hint1,
            hint2=hints.hint2,
            hint3=hints.hint3,
            solution=solution,
            explanation=explanation,
            tokens_used=tokens_used,
            duration_ms=duration_ms,
        )
