"""Upstream client tests — Perplexity over httpx, OpenAI via the SDK.

Perplexity requests are served by ``httpx.MockTransport``; the OpenAI client
object is replaced with a mock so no SDK call leaves the process.
"""

import os
import sys

# Ensure the backend package is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from openai import OpenAIError

from launchlens.errors import MissingCredentialError, UpstreamFailure
from launchlens.services.openai_client import call_openai_chat, get_openai_client
from launchlens.services.perplexity_client import PERPLEXITY_MODEL, query_perplexity


def _serve(monkeypatch, handler):
    real_client = httpx.AsyncClient

    def factory(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(httpx, "AsyncClient", factory)


def _completion(content):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(prompt_tokens=10, completion_tokens=5),
    )


# ---------------------------------------------------------------------------
# Perplexity
# ---------------------------------------------------------------------------

class TestPerplexity:
    @pytest.mark.asyncio
    async def test_missing_key(self):
        with pytest.raises(MissingCredentialError) as exc_info:
            await query_perplexity([{"role": "user", "content": "hi"}])
        assert exc_info.value.remediation == "launchlens config set perplexity-api-key <your-key>"

    @pytest.mark.asyncio
    async def test_success(self, monkeypatch, perplexity_key):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"choices": [{"message": {"content": "Notion"}}]})

        _serve(monkeypatch, handler)
        content = await query_perplexity(
            [{"role": "user", "content": "competitors?"}], max_tokens=100, top_p=0.9
        )

        assert content == "Notion"
        assert seen["auth"] == f"Bearer {perplexity_key}"
        assert seen["body"]["model"] == PERPLEXITY_MODEL
        assert seen["body"]["max_tokens"] == 100
        assert seen["body"]["top_p"] == 0.9

    @pytest.mark.asyncio
    async def test_optional_params_omitted(self, monkeypatch, perplexity_key):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"choices": [{"message": {"content": "ok"}}]})

        _serve(monkeypatch, handler)
        await query_perplexity([{"role": "user", "content": "q"}])

        assert "max_tokens" not in seen["body"]
        assert "top_p" not in seen["body"]

    @pytest.mark.asyncio
    async def test_non_200_is_upstream_failure(self, monkeypatch, perplexity_key):
        _serve(monkeypatch, lambda request: httpx.Response(401, text="bad key"))

        with pytest.raises(UpstreamFailure) as exc_info:
            await query_perplexity([{"role": "user", "content": "q"}])
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_timeout_is_upstream_failure(self, monkeypatch, perplexity_key):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        _serve(monkeypatch, handler)
        with pytest.raises(UpstreamFailure, match="timed out"):
            await query_perplexity([{"role": "user", "content": "q"}])

    @pytest.mark.asyncio
    async def test_malformed_body_is_upstream_failure(self, monkeypatch, perplexity_key):
        _serve(monkeypatch, lambda request: httpx.Response(200, json={"unexpected": True}))

        with pytest.raises(UpstreamFailure, match="malformed"):
            await query_perplexity([{"role": "user", "content": "q"}])


# ---------------------------------------------------------------------------
# OpenAI
# ---------------------------------------------------------------------------

class TestOpenAI:
    def test_missing_key(self):
        with pytest.raises(MissingCredentialError):
            get_openai_client()

    @pytest.mark.asyncio
    async def test_reply_text_returned(self):
        client = MagicMock()
        client.chat.completions.create = AsyncMock(return_value=_completion("  YES  "))

        with patch("launchlens.services.openai_client.get_openai_client", return_value=client):
            text = await call_openai_chat(
                messages=[{"role": "user", "content": "q"}], model="gpt-4", max_tokens=50
            )

        assert text == "YES"
        kwargs = client.chat.completions.create.await_args.kwargs
        assert kwargs["model"] == "gpt-4"
        assert kwargs["max_tokens"] == 50

    @pytest.mark.asyncio
    async def test_configured_model_used_by_default(self):
        client = MagicMock()
        client.chat.completions.create = AsyncMock(return_value=_completion("ok"))

        with patch("launchlens.services.openai_client.get_openai_client", return_value=client):
            await call_openai_chat(messages=[{"role": "user", "content": "q"}])

        assert client.chat.completions.create.await_args.kwargs["model"] == "gpt-3.5-turbo"

    @pytest.mark.asyncio
    async def test_empty_reply_is_upstream_failure(self):
        client = MagicMock()
        client.chat.completions.create = AsyncMock(return_value=_completion(""))

        with patch("launchlens.services.openai_client.get_openai_client", return_value=client):
            with pytest.raises(UpstreamFailure):
                await call_openai_chat(messages=[{"role": "user", "content": "q"}])

    @pytest.mark.asyncio
    async def test_sdk_error_is_upstream_failure(self):
        client = MagicMock()
        client.chat.completions.create = AsyncMock(side_effect=OpenAIError("quota exceeded"))

        with patch("launchlens.services.openai_client.get_openai_client", return_value=client):
            with pytest.raises(UpstreamFailure, match="quota exceeded"):
                await call_openai_chat(messages=[{"role": "user", "content": "q"}])
