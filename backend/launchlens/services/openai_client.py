"""Centralized OpenAI client and LLM reply normalization.

All OpenAI calls go through ``call_openai_chat()`` and every reply that is
expected to carry JSON goes through ``parse_llm_reply()``.
This ensures:
  - The API key and model are resolved from the config store.
  - A missing key raises ``MissingCredentialError`` before any network I/O.
  - Transport and API errors surface as ``UpstreamFailure``.
  - Code-fence stripping happens in exactly one place.
"""

from __future__ import annotations

import json
import logging
import re
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

from openai import AsyncOpenAI, OpenAIError

from ..errors import MissingCredentialError, UpstreamFailure
from .config_store import get_model, get_openai_key
from .http_client import Timeouts

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Reply normalization — one parse step, tagged result
# ---------------------------------------------------------------------------
_FENCE_OPEN = re.compile(r"^\s*```[a-zA-Z]*\s*\n?")
_FENCE_CLOSE = re.compile(r"\n?\s*```\s*$")
_TRAILING_COMMA = re.compile(r",\s*([}\]])")


@dataclass(frozen=True)
class LLMReply:
    """Normalized LLM reply.

    ``kind == "structured"``: *value* holds the decoded JSON object.
    ``kind == "unstructured"``: *text* holds the fence-stripped reply.
    """

    kind: Literal["structured", "unstructured"]
    text: str
    value: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_structured(self) -> bool:
        return self.kind == "structured"


def strip_code_fences(raw: str) -> str:
    """Remove one leading and one trailing markdown code fence."""
    text = raw.strip().lstrip("﻿")
    text = _FENCE_OPEN.sub("", text, count=1)
    text = _FENCE_CLOSE.sub("", text, count=1)
    return text.strip()


def parse_llm_reply(raw: Optional[str]) -> LLMReply:
    """Decode a reply that was asked to be JSON.

    Handles:
      - Markdown fences (```json ... ```)
      - Leading/trailing whitespace and BOM
      - Trailing commas before } or ]

    Anything that does not decode to a JSON object comes back as
    ``unstructured`` rather than raising.
    """
    text = strip_code_fences(raw or "")
    try:
        decoded = json.loads(text)
    except json.JSONDecodeError:
        try:
            decoded = json.loads(_TRAILING_COMMA.sub(r"\1", text))
        except json.JSONDecodeError:
            return LLMReply(kind="unstructured", text=text)
    if not isinstance(decoded, dict):
        return LLMReply(kind="unstructured", text=text)
    return LLMReply(kind="structured", text=text, value=decoded)


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------
def get_openai_client() -> AsyncOpenAI:
    """Build an OpenAI client from the configured key.

    Raises ``MissingCredentialError`` if no key is configured.
    """
    api_key = get_openai_key()
    if not api_key:
        logger.warning("[OPENAI] API key missing (openai-api-key / OPENAI_API_KEY)")
        raise MissingCredentialError("OpenAI", "openai-api-key")
    return AsyncOpenAI(api_key=api_key, timeout=Timeouts.OPENAI, max_retries=0)


async def call_openai_chat(
    *,
    messages: List[Dict[str, str]],
    model: Optional[str] = None,
    temperature: float = 0.7,
    max_tokens: int = 500,
) -> str:
    """Run one chat completion and return the reply text.

    Parameters
    ----------
    messages : list[dict]
        Role-tagged messages (system + user).
    model : str, optional
        Override model name (default: configured model).
    temperature : float
        Sampling temperature.
    max_tokens : int
        Output token limit.

    Raises
    ------
    MissingCredentialError
        No OpenAI key configured.
    UpstreamFailure
        The API call failed or returned no content.
    """
    client = get_openai_client()
    model = model or get_model()

    t0 = time.perf_counter()
    logger.info("[OPENAI] Calling %s (max_tokens=%d)", model, max_tokens)
    try:
        completion = await client.chat.completions.create(
            model=model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
        )
    except OpenAIError as exc:
        logger.error("[OPENAI] Request failed: %s", exc)
        raise UpstreamFailure("OpenAI", str(exc), getattr(exc, "status_code", None)) from exc

    duration = (time.perf_counter() - t0) * 1000
    usage = getattr(completion, "usage", None)
    if usage is not None:
        logger.info(
            "[OPENAI] Tokens used: prompt=%s, completion=%s (%.0fms)",
            usage.prompt_tokens,
            usage.completion_tokens,
            duration,
        )

    if not completion.choices:
        raise UpstreamFailure("OpenAI", "response contained no choices")
    content = (completion.choices[0].message.content or "").strip()
    if not content:
        raise UpstreamFailure("OpenAI", "empty response")
    return content
