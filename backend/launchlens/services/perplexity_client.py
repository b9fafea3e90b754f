"""
Perplexity search-backed chat client.

One request, no retries.  A missing key raises ``MissingCredentialError``;
any transport error or non-2xx status raises ``UpstreamFailure``.  Callers
decide how to degrade.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..errors import MissingCredentialError, UpstreamFailure
from .config_store import get_perplexity_key
from .http_client import get_timeout, is_auth_failure

logger = logging.getLogger(__name__)

PERPLEXITY_API_URL = "https://api.perplexity.ai/chat/completions"
PERPLEXITY_MODEL = "sonar"


def _require_key() -> str:
    key = get_perplexity_key()
    if not key:
        logger.warning("[PPLX] API key missing (perplexity-api-key / PERPLEXITY_API_KEY)")
        raise MissingCredentialError("Perplexity", "perplexity-api-key")
    return key


async def query_perplexity(
    messages: List[Dict[str, str]],
    *,
    temperature: float = 0.1,
    max_tokens: Optional[int] = None,
    top_p: Optional[float] = None,
    timeout_service: str = "perplexity",
) -> str:
    """Send one chat request to Perplexity and return the reply text."""
    api_key = _require_key()

    payload: Dict[str, Any] = {
        "model": PERPLEXITY_MODEL,
        "messages": messages,
        "temperature": temperature,
    }
    if max_tokens is not None:
        payload["max_tokens"] = max_tokens
    if top_p is not None:
        payload["top_p"] = top_p

    headers = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }

    try:
        async with httpx.AsyncClient(timeout=get_timeout(timeout_service)) as client:
            response = await client.post(PERPLEXITY_API_URL, headers=headers, json=payload)
    except httpx.TimeoutException as exc:
        logger.warning("[PPLX] Timeout: %s", exc)
        raise UpstreamFailure("Perplexity", "request timed out") from exc
    except httpx.HTTPError as exc:
        logger.warning("[PPLX] Transport error: %s", exc)
        raise UpstreamFailure("Perplexity", str(exc)) from exc

    logger.info("[PPLX] HTTP %d", response.status_code)
    if response.status_code != 200:
        if is_auth_failure(response.status_code):
            logger.error("[PPLX] Key rejected (HTTP %d)", response.status_code)
        raise UpstreamFailure(
            "Perplexity",
            response.text[:200] or response.reason_phrase,
            response.status_code,
        )

    try:
        data = response.json()
        return data["choices"][0]["message"]["content"] or ""
    except (ValueError, KeyError, IndexError, TypeError) as exc:
        raise UpstreamFailure("Perplexity", f"malformed response: {exc}") from exc
