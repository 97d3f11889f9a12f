"""
oci_oidc.platforms.github_provider

GitHub Actions platform provider implementation.
"""

import os
import sys
from typing import Optional, TextIO
from urllib.parse import quote

import requests

from .provider import Platform, PlatformConfig, PlatformLogger, resolve_input
from ..exceptions import AuthenticationError, ConfigurationError

OIDC_REQUEST_TIMEOUT = 30


def _escape_data(value: str) -> str:
    """Escape a workflow command message."""
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


class WorkflowCommandLogger(PlatformLogger):
    """Writes GitHub Actions workflow commands to stdout."""

    def __init__(self, stream: Optional[TextIO] = None):
        self._stream = stream

    def _write(self, line: str) -> None:
        stream = self._stream or sys.stdout
        stream.write(line + "\n")
        stream.flush()

    def debug(self, message: str) -> None:
        # The runner hides ::debug:: lines unless step debug logging is enabled
        self._write(f"::debug::{_escape_data(message)}")

    def info(self, message: str) -> None:
        self._write(message)

    def warning(self, message: str) -> None:
        self._write(f"::warning::{_escape_data(message)}")

    def error(self, message: str) -> None:
        self._write(f"::error::{_escape_data(message)}")


class GitHubPlatform(Platform):
    """GitHub Actions platform using the runner's native OIDC token API."""

    def __init__(
        self,
        config: Optional[PlatformConfig] = None,
        stream: Optional[TextIO] = None,
    ):
        """
        Initialize the GitHub Actions platform.

        Args:
            config: Static platform settings
            stream: Where workflow commands are written (defaults to stdout)
        """
        super().__init__(config)
        self._logger = WorkflowCommandLogger(stream)

    def get_name(self) -> str:
        """Return platform name."""
        return "github"

    def get_input(self, name: str, required: bool = False) -> str:
        """
        Resolve an action input.

        Actions expose inputs as INPUT_<NAME> with spaces replaced by
        underscores; the generic conventions are used as a fallback so the
        action can also be driven from plain environment variables.
        """
        value = os.environ.get(f"INPUT_{name.replace(' ', '_').upper()}", "").strip()
        if not value:
            value = resolve_input(name)
        if required and not value:
            raise ConfigurationError(f"Input required and not supplied: {name}")
        return value

    def get_oidc_token(self, audience: str) -> str:
        request_url = os.environ.get("ACTIONS_ID_TOKEN_REQUEST_URL")
        request_token = os.environ.get("ACTIONS_ID_TOKEN_REQUEST_TOKEN")
        if not request_url or not request_token:
            raise AuthenticationError(
                "Failed to get OIDC token from GitHub Actions: "
                "ACTIONS_ID_TOKEN_REQUEST_URL is not set. "
                "Ensure the workflow has 'id-token: write' permission."
            )

        if audience:
            request_url = f"{request_url}&audience={quote(audience, safe='')}"

        try:
            response = requests.get(
                request_url,
                headers={
                    "Authorization": f"Bearer {request_token}",
                    "Accept": "application/json",
                },
                timeout=OIDC_REQUEST_TIMEOUT,
            )
            response.raise_for_status()
            body = response.json()
        except (requests.RequestException, ValueError) as e:
            raise AuthenticationError(
                f"Failed to get OIDC token from GitHub Actions: {e}"
            ) from e

        token = body.get("value") if isinstance(body, dict) else None
        if not isinstance(token, str) or not token:
            raise AuthenticationError(
                "Failed to get OIDC token from GitHub Actions: response had no token value"
            )
        self.mask_secret(token)
        return token

    def set_output(self, name: str, value: str) -> None:
        output_file = os.environ.get("GITHUB_OUTPUT")
        if output_file:
            with open(output_file, "a", encoding="utf-8") as f:
                f.write(f"{name}={value}\n")
        else:
            self._logger.info(f"::set-output name={name}::{_escape_data(value)}")

    def mask_secret(self, value: str) -> None:
        self._logger.info(f"::add-mask::{_escape_data(value)}")

    def is_debug(self) -> bool:
        return os.environ.get("RUNNER_DEBUG") == "1"

    @property
    def logger(self) -> PlatformLogger:
        return self._logger
