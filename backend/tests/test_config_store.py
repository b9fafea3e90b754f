"""Config store tests — settings persistence, encrypted keys, key resolution."""

import os
import sys

# Ensure the backend package is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import json

import httpx
import pytest

from launchlens.errors import ConfigError
from launchlens.services.config_store import (
    ConfigStore,
    get_config,
    get_openai_key,
    validate_api_key,
)


def _mock_async_client(handler):
    """Factory that injects a MockTransport into every AsyncClient created."""
    real_client = httpx.AsyncClient

    def factory(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    return factory


class TestSettings:
    def test_defaults(self, tmp_path):
        store = ConfigStore(tmp_path)
        settings = store.list()

        assert settings["model"] == "gpt-3.5-turbo"
        assert settings["maxTokens"] == 500
        assert settings["openai-api-key"] == "not set"
        assert settings["perplexity-api-key"] == "not set"

    def test_model_persisted(self, tmp_path):
        ConfigStore(tmp_path).set("model", "gpt-4")

        assert json.loads((tmp_path / "config.json").read_text())["model"] == "gpt-4"
        assert ConfigStore(tmp_path).get_model() == "gpt-4"

    def test_invalid_model_rejected(self, tmp_path):
        with pytest.raises(ConfigError):
            ConfigStore(tmp_path).set("model", "gpt-9000")

    def test_numeric_settings_coerced(self, tmp_path):
        store = ConfigStore(tmp_path)
        store.set("maxTokens", "800")
        store.set("temperature", "0.2")

        assert store.get("maxTokens") == 800
        assert store.get("temperature") == 0.2

    @pytest.mark.parametrize(
        "key,value",
        [("maxTokens", "-1"), ("maxTokens", "lots"), ("temperature", "3"), ("colour", "blue")],
    )
    def test_invalid_settings_rejected(self, tmp_path, key, value):
        with pytest.raises(ConfigError):
            ConfigStore(tmp_path).set(key, value)

    def test_corrupt_config_falls_back_to_defaults(self, tmp_path):
        (tmp_path / "config.json").write_text("{not json")
        assert ConfigStore(tmp_path).get_model() == "gpt-3.5-turbo"


class TestApiKeys:
    def test_key_encrypted_at_rest(self, tmp_path):
        ConfigStore(tmp_path).set("openai-api-key", "sk-secret-abcd1234")

        raw = (tmp_path / "keys.enc").read_bytes()
        assert b"sk-secret" not in raw

        reloaded = ConfigStore(tmp_path)
        assert reloaded.get_openai_key() == "sk-secret-abcd1234"
        assert reloaded.list()["openai-api-key"] == "***1234"

    def test_stored_key_beats_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-from-env")
        store = ConfigStore(tmp_path)
        assert store.get_openai_key() == "sk-from-env"

        store.set("openai-api-key", "sk-from-store")
        assert store.get_openai_key() == "sk-from-store"

    def test_corrupt_key_file_ignored(self, tmp_path):
        (tmp_path / "keys.enc").write_bytes(b"garbage")
        assert ConfigStore(tmp_path).get_perplexity_key() is None

    def test_module_helpers_use_launchlens_home(self, isolated_config):
        get_config().set("openai-api-key", "sk-home-9999")
        get_config.cache_clear()

        assert get_openai_key() == "sk-home-9999"
        assert (isolated_config / "keys.enc").exists()


class TestKeyValidation:
    @pytest.mark.asyncio
    async def test_openai_key_accepted(self, monkeypatch):
        def handler(request):
            assert request.headers["Authorization"] == "Bearer sk-good"
            return httpx.Response(200, json={"data": []})

        monkeypatch.setattr(httpx, "AsyncClient", _mock_async_client(handler))
        assert await validate_api_key("openai", "sk-good") is True

    @pytest.mark.asyncio
    async def test_openai_key_rejected(self, monkeypatch):
        monkeypatch.setattr(
            httpx, "AsyncClient", _mock_async_client(lambda request: httpx.Response(401))
        )
        assert await validate_api_key("openai", "sk-bad") is False

    @pytest.mark.asyncio
    async def test_perplexity_bad_request_still_valid(self, monkeypatch):
        monkeypatch.setattr(
            httpx, "AsyncClient", _mock_async_client(lambda request: httpx.Response(400))
        )
        assert await validate_api_key("perplexity", "pplx-ok") is True

    @pytest.mark.asyncio
    async def test_network_error_is_invalid(self, monkeypatch):
        def handler(request):
            raise httpx.ConnectError("offline", request=request)

        monkeypatch.setattr(httpx, "AsyncClient", _mock_async_client(handler))
        assert await validate_api_key("openai", "sk-any") is False

    @pytest.mark.asyncio
    async def test_unknown_provider(self):
        assert await validate_api_key("cohere", "key") is False
