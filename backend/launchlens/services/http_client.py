"""
Async HTTP Client Configuration

Timeout presets and status-code classification for the external
LLM/search providers.  Calls are never retried: a failed request is
reported to the caller, which decides how to degrade.
"""

import httpx


# Timeout configurations (in seconds)
class Timeouts:
    """Timeout presets for external services."""
    PERPLEXITY = 30.0        # Search-backed chat completions
    PERPLEXITY_DETAIL = 45.0 # Per-competitor research (longer replies)
    OPENAI = 30.0            # Chat completions
    KEY_CHECK = 10.0         # Credential validation pings

    CONNECT = 5.0


# Auth problems: the key itself is wrong, no point asking again
AUTH_FAILURE_CODES = {401, 403}


def get_timeout(service: str) -> httpx.Timeout:
    """Get timeout configuration for a service."""
    timeouts = {
        "perplexity": Timeouts.PERPLEXITY,
        "perplexity_detail": Timeouts.PERPLEXITY_DETAIL,
        "openai": Timeouts.OPENAI,
        "key_check": Timeouts.KEY_CHECK,
    }
    seconds = timeouts.get(service.lower(), 30.0)
    return httpx.Timeout(seconds, connect=Timeouts.CONNECT)


def is_auth_failure(status_code: int) -> bool:
    """Check if an HTTP error means the credential was rejected."""
    return status_code in AUTH_FAILURE_CODES
