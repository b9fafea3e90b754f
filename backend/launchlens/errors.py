"""Exception taxonomy for the validation pipeline.

Parse failures are deliberately absent: an unparseable LLM reply is a
normal ``unstructured`` result (see ``services.openai_client``), never an
exception.
"""

from __future__ import annotations


class LaunchLensError(Exception):
    """Base class for all LaunchLens errors."""


class MissingCredentialError(LaunchLensError, EnvironmentError):
    """No API key is configured for the requested provider."""

    def __init__(self, provider: str, config_key: str) -> None:
        self.provider = provider
        self.config_key = config_key
        self.remediation = f"launchlens config set {config_key} <your-key>"
        super().__init__(
            f"{provider} API key not configured. Run: {self.remediation}"
        )


class UpstreamFailure(LaunchLensError):
    """Network error or non-2xx response from an LLM/search provider."""

    def __init__(self, provider: str, message: str, status_code: int | None = None) -> None:
        self.provider = provider
        self.status_code = status_code
        super().__init__(f"{provider} API error: {message}")


class ResearchFailure(LaunchLensError):
    """Competitor research produced no usable competitor data at all."""


class InvalidIdeaError(LaunchLensError, ValueError):
    """The idea text is missing or too short to validate."""


class ConfigError(LaunchLensError, ValueError):
    """An unknown configuration key or an invalid configuration value."""
