"""Completion client: send a prompt to the Poppy completion API with a profile's settings."""

import json
import logging
import math
import time
from typing import TYPE_CHECKING, Any

import httpx

from app.models import BotProfile
from app.models.bot_profile import DEFAULT_MAX_TOKENS, DEFAULT_MODEL, DEFAULT_TEMPERATURE

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


class CompletionServiceError(Exception):
    """Raised when the completion API cannot produce a completion (unreachable, timeout, bad response)."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)


def _temperature(value: str) -> float:
    """Profile temperature as a float; falls back to the default for blank, non-numeric or non-finite text."""
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return float(DEFAULT_TEMPERATURE)
    return parsed if math.isfinite(parsed) else float(DEFAULT_TEMPERATURE)


def build_payload(prompt: str, profile: BotProfile) -> dict[str, Any]:
    """Request body for the completion endpoint."""
    return {
        "model": profile.model or DEFAULT_MODEL,
        "prompt": prompt,
        "temperature": _temperature(profile.temperature),
        "max_tokens": profile.max_tokens or DEFAULT_MAX_TOKENS,
    }


def _extract_text(body: Any) -> str:
    try:
        text = body["choices"][0]["text"]
    except (KeyError, IndexError, TypeError) as e:
        raise CompletionServiceError(
            "Poppy API response missing choices[0].text.", cause=e
        ) from e
    if not isinstance(text, str):
        raise CompletionServiceError("Poppy API returned a non-text completion.")
    return text


async def request_completion(
    prompt: str,
    profile: BotProfile,
    settings: "Settings",
) -> str:
    """
    Send one completion request authenticated with the profile's API key.

    Raises CompletionServiceError on a missing key, connection failure,
    timeout, non-2xx status, or malformed response. No retries.
    """
    if not profile.api_key:
        raise CompletionServiceError("API key not found for this user")

    payload = build_payload(prompt, profile)
    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {profile.api_key}",
    }
    timeout = httpx.Timeout(settings.POPPY_REQUEST_TIMEOUT_SEC)
    log_extra: dict[str, float | int | str] = {
        "model": payload["model"],
        "max_tokens": payload["max_tokens"],
    }
    start = time.perf_counter()

    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.post(settings.POPPY_API_URL, json=payload, headers=headers)
    except httpx.ConnectError as e:
        log_extra["completion_latency_seconds"] = time.perf_counter() - start
        logger.info("Completion request failed", extra={**log_extra, "status": "error"})
        raise CompletionServiceError("Poppy API is unreachable.", cause=e) from e
    except httpx.TimeoutException as e:
        log_extra["completion_latency_seconds"] = time.perf_counter() - start
        logger.info("Completion request failed", extra={**log_extra, "status": "timeout"})
        raise CompletionServiceError("Poppy API request timed out.", cause=e) from e
    except httpx.HTTPError as e:
        log_extra["completion_latency_seconds"] = time.perf_counter() - start
        logger.info("Completion request failed", extra={**log_extra, "status": "error"})
        raise CompletionServiceError("Poppy API request failed.", cause=e) from e

    log_extra["completion_latency_seconds"] = time.perf_counter() - start
    log_extra["http_status"] = response.status_code

    if not response.is_success:
        logger.info("Completion request rejected", extra=log_extra)
        raise CompletionServiceError(f"Poppy API error: {response.text[:500]}")

    try:
        body = response.json()
    except json.JSONDecodeError as e:
        raise CompletionServiceError(
            "Poppy API response body is not valid JSON.", cause=e
        ) from e

    logger.info("Completion request completed", extra=log_extra)
    return _extract_text(body)
