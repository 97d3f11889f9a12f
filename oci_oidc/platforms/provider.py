"""
oci_oidc.platforms.provider

Abstract base classes for CI platform providers.
"""

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Mapping, Optional

from ..exceptions import ConfigurationError

DEFAULT_AUDIENCE = "https://cloud.oracle.com"

# Environment variable prefixes tried, in order, after the bare input name
INPUT_PREFIXES = ("", "INPUT_", "OCI_", "OIDC_")


def resolve_input(name: str, environ: Optional[Mapping[str, str]] = None) -> str:
    """
    Resolve an input name from the supported environment variable conventions.

    Args:
        name: Input name, e.g. "oci_region"
        environ: Environment mapping to read (defaults to os.environ)

    Returns:
        str: The first non-empty value of NAME, INPUT_NAME, OCI_NAME or
             OIDC_NAME, or an empty string when none is set
    """
    env = os.environ if environ is None else environ
    key = name.upper()
    for prefix in INPUT_PREFIXES:
        value = env.get(f"{prefix}{key}")
        if value:
            return value
    return ""


@dataclass(frozen=True)
class PlatformConfig:
    """Static per-platform settings."""

    audience: str = DEFAULT_AUDIENCE
    token_env_var: Optional[str] = None


class PlatformLogger(ABC):
    """Logging capability exposed by a platform."""

    @abstractmethod
    def debug(self, message: str) -> None:
        pass

    @abstractmethod
    def info(self, message: str) -> None:
        pass

    @abstractmethod
    def warning(self, message: str) -> None:
        pass

    @abstractmethod
    def error(self, message: str) -> None:
        pass


class StandardPlatformLogger(PlatformLogger):
    """Routes platform messages to a stdlib logger, gating debug output."""

    def __init__(self, platform: "Platform", logger: Optional[logging.Logger] = None):
        self._platform = platform
        self._logger = logger or logging.getLogger("oci_oidc.platform")

    def debug(self, message: str) -> None:
        if self._platform.is_debug():
            self._logger.debug(message)

    def info(self, message: str) -> None:
        self._logger.info(message)

    def warning(self, message: str) -> None:
        self._logger.warning(message)

    def error(self, message: str) -> None:
        self._logger.error(message)


class Platform(ABC):
    """A CI environment the exchange runs in."""

    def __init__(self, config: Optional[PlatformConfig] = None):
        """
        Initialize the platform.

        Args:
            config: Static platform settings (audience, token variable)
        """
        self.config = config or PlatformConfig()
        self.failed = False
        self.failure_message: Optional[str] = None

    @abstractmethod
    def get_name(self) -> str:
        """
        Returns the platform name.

        Returns:
            str: Platform name (e.g., 'github', 'gitlab', 'local')
        """
        pass

    def get_input(self, name: str, required: bool = False) -> str:
        """
        Resolve a named input.

        Args:
            name: Input name
            required: Whether a missing value is an error

        Returns:
            str: Input value, or an empty string if not set and not required

        Raises:
            ConfigurationError: If the input is required and not supplied
        """
        value = resolve_input(name)
        if required and not value:
            raise ConfigurationError(f"Input required and not supplied: {name}")
        return value

    @abstractmethod
    def get_oidc_token(self, audience: str) -> str:
        """
        Obtain the CI job identity token for an audience.

        Args:
            audience: Audience the token should be issued for

        Returns:
            str: The raw identity token

        Raises:
            AuthenticationError: If the token cannot be obtained
        """
        pass

    @abstractmethod
    def set_output(self, name: str, value: str) -> None:
        """Publish a named output to the host environment."""
        pass

    def set_failed(self, message: str) -> None:
        """
        Mark the run as failed.

        The process is not terminated; callers unwind and the entry point
        turns the failure into a non-zero exit code.
        """
        self.failed = True
        self.failure_message = message
        self.logger.error(message)

    def mask_secret(self, value: str) -> None:
        """Ask the host to redact a value from its logs, where supported."""
        pass

    @abstractmethod
    def is_debug(self) -> bool:
        """Return True when the host requested debug output."""
        pass

    @property
    @abstractmethod
    def logger(self) -> PlatformLogger:
        pass
