"""Local configuration store — settings file plus encrypted API keys.

Layout (under ``$LAUNCHLENS_HOME``, default ``~/.launchlens``):
  - ``config.json``  plain settings (model, max tokens, temperature)
  - ``keys.enc``     Fernet token holding the provider API keys as JSON

Key resolution order:
  1. Key stored with ``launchlens config set``
  2. Environment variable (``OPENAI_API_KEY`` / ``PERPLEXITY_API_KEY``)

An absent key is never fatal here; callers switch to their offline path.
"""

from __future__ import annotations

import base64
import json
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import httpx
from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from ..errors import ConfigError
from .http_client import get_timeout

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    "model": "gpt-3.5-turbo",
    "maxTokens": 500,
    "temperature": 0.7,
}

AVAILABLE_MODELS: list[str] = [
    "gpt-4",
    "gpt-4-turbo-preview",
    "gpt-3.5-turbo",
    "gpt-3.5-turbo-16k",
]

# config key → (provider slot in keys.enc, environment variable)
API_KEY_SLOTS: Dict[str, tuple[str, str]] = {
    "openai-api-key": ("openai", "OPENAI_API_KEY"),
    "perplexity-api-key": ("perplexity", "PERPLEXITY_API_KEY"),
}

_PASSPHRASE = b"launchlens-local-encryption"
_OPENAI_MODELS_URL = "https://api.openai.com/v1/models"
_PERPLEXITY_URL = "https://api.perplexity.ai/chat/completions"


def _default_home() -> Path:
    override = os.getenv("LAUNCHLENS_HOME", "").strip()
    return Path(override) if override else Path.home() / ".launchlens"


CONFIG_KEYS: list[str] = [*API_KEY_SLOTS, *DEFAULT_CONFIG]


def mask_key(value: str) -> str:
    """Show only the last four characters of a secret."""
    return "***" + value[-4:]


def _coerce_setting(key: str, value: Any) -> Any:
    """Validate a plain setting and convert CLI strings to its stored type."""
    if key == "model":
        if value not in AVAILABLE_MODELS:
            raise ConfigError(
                f"Invalid model. Available models: {', '.join(AVAILABLE_MODELS)}"
            )
        return value
    try:
        if key == "maxTokens":
            tokens = int(value)
            if tokens <= 0:
                raise ValueError(value)
            return tokens
        if key == "temperature":
            temperature = float(value)
            if not 0.0 <= temperature <= 2.0:
                raise ValueError(value)
            return temperature
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid value for {key}: {value!r}") from exc
    return value


class ConfigStore:
    """Settings and API keys for one user, persisted under *home*."""

    def __init__(self, home: Optional[Path] = None) -> None:
        self.home = Path(home) if home is not None else _default_home()
        self.config_file = self.home / "config.json"
        self.keys_file = self.home / "keys.enc"
        self.home.mkdir(parents=True, exist_ok=True)
        self.config = self._load_config()
        self.api_keys = self._load_api_keys()

    # ------------------------------------------------------------------ #
    #  Persistence                                                        #
    # ------------------------------------------------------------------ #
    def _load_config(self) -> Dict[str, Any]:
        if self.config_file.exists():
            try:
                data = json.loads(self.config_file.read_text(encoding="utf-8"))
                if isinstance(data, dict):
                    return {**DEFAULT_CONFIG, **data}
                logger.warning("[CONFIG] %s is not a JSON object — using defaults", self.config_file)
            except (OSError, json.JSONDecodeError) as exc:
                logger.error("[CONFIG] Error loading config: %s", exc)
        return dict(DEFAULT_CONFIG)

    def _save_config(self) -> None:
        self.config_file.write_text(json.dumps(self.config, indent=2), encoding="utf-8")

    def _fernet(self) -> Fernet:
        # Salt is tied to the home directory so a copied keys.enc won't open elsewhere
        salt = f"{Path.home()}-launchlens-v1".encode("utf-8")
        kdf = Scrypt(salt=salt, length=32, n=2**14, r=8, p=1)
        return Fernet(base64.urlsafe_b64encode(kdf.derive(_PASSPHRASE)))

    def _load_api_keys(self) -> Dict[str, str]:
        if not self.keys_file.exists():
            return {}
        try:
            decrypted = self._fernet().decrypt(self.keys_file.read_bytes())
            keys = json.loads(decrypted.decode("utf-8"))
            return {k: v for k, v in keys.items() if isinstance(v, str) and v}
        except (InvalidToken, OSError, ValueError) as exc:
            logger.error("[CONFIG] Error loading encrypted keys: %s", exc)
            return {}

    def _save_api_keys(self) -> None:
        token = self._fernet().encrypt(json.dumps(self.api_keys).encode("utf-8"))
        self.keys_file.write_bytes(token)

    # ------------------------------------------------------------------ #
    #  Public API                                                         #
    # ------------------------------------------------------------------ #
    def get(self, key: str) -> Optional[Any]:
        """Return a setting or stored API key, ``None`` when unset."""
        if key in API_KEY_SLOTS:
            slot, _ = API_KEY_SLOTS[key]
            return self.api_keys.get(slot)
        return self.config.get(key)

    def set(self, key: str, value: str) -> None:
        """Persist a setting; API keys go to the encrypted file.

        Raises ``ConfigError`` for an unknown key or an invalid value.
        """
        if key in API_KEY_SLOTS:
            slot, _ = API_KEY_SLOTS[key]
            self.api_keys[slot] = value
            self._save_api_keys()
            return
        if key not in DEFAULT_CONFIG:
            raise ConfigError(
                f"Unknown configuration key: {key}. Available keys: {', '.join(CONFIG_KEYS)}"
            )
        self.config[key] = _coerce_setting(key, value)
        self._save_config()

    def list(self) -> Dict[str, Any]:
        """Return all settings with API keys masked."""
        settings: Dict[str, Any] = dict(self.config)
        for key, (slot, _) in API_KEY_SLOTS.items():
            stored = self.api_keys.get(slot)
            settings[key] = mask_key(stored) if stored else "not set"
        return settings

    def _resolve_key(self, config_key: str) -> Optional[str]:
        slot, env_var = API_KEY_SLOTS[config_key]
        stored = self.api_keys.get(slot)
        if stored:
            return stored
        env_value = os.getenv(env_var, "").strip()
        return env_value or None

    def get_openai_key(self) -> Optional[str]:
        return self._resolve_key("openai-api-key")

    def get_perplexity_key(self) -> Optional[str]:
        return self._resolve_key("perplexity-api-key")

    def get_model(self) -> str:
        return self.config.get("model") or DEFAULT_CONFIG["model"]


async def validate_api_key(provider: str, key: str) -> bool:
    """Ping the provider with *key*; ``True`` when the key is accepted."""
    try:
        async with httpx.AsyncClient(timeout=get_timeout("key_check")) as client:
            if provider == "openai":
                response = await client.get(
                    _OPENAI_MODELS_URL,
                    headers={"Authorization": f"Bearer {key}"},
                )
                return response.status_code == 200
            if provider == "perplexity":
                response = await client.post(
                    _PERPLEXITY_URL,
                    headers={
                        "Authorization": f"Bearer {key}",
                        "Content-Type": "application/json",
                    },
                    json={
                        "model": "sonar",
                        "messages": [{"role": "user", "content": "test"}],
                        "max_tokens": 1,
                    },
                )
                # 400 means auth worked but the tiny request was rejected
                return response.status_code in (200, 400)
    except httpx.HTTPError as exc:
        logger.warning("[CONFIG] %s key check failed: %s", provider, exc)
        return False
    return False


@lru_cache(maxsize=1)
def get_config() -> ConfigStore:
    """Process-wide configuration store (created on first use)."""
    return ConfigStore()


def get_openai_key() -> Optional[str]:
    return get_config().get_openai_key()


def get_perplexity_key() -> Optional[str]:
    return get_config().get_perplexity_key()


def get_model() -> str:
    return get_config().get_model()
