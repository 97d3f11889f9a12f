"""
oci_oidc.platforms.local_provider

Local/manual platform provider for running the exchange outside of CI.
"""

import os
import sys
from typing import Optional

from .provider import Platform, PlatformConfig, PlatformLogger, StandardPlatformLogger
from ..exceptions import AuthenticationError


class LocalPlatform(Platform):
    """Manual runs: the identity token is passed in directly or via a file."""

    def __init__(self, config: Optional[PlatformConfig] = None):
        super().__init__(config)
        self._logger = StandardPlatformLogger(self)

    def get_name(self) -> str:
        """Return platform name."""
        return "local"

    def _read_token_file(self, token_path: str) -> str:
        """Read an identity token from file."""
        if not os.path.exists(token_path):
            raise AuthenticationError(f"OIDC token file not found at {token_path}")

        try:
            with open(token_path, "r", encoding="utf-8") as f:
                token = f.read().strip()
        except OSError as e:
            raise AuthenticationError(
                f"Failed to read OIDC token from {token_path}: {e}"
            ) from e

        if not token:
            raise AuthenticationError(f"OIDC token file {token_path} is empty")
        return token

    def get_oidc_token(self, audience: str) -> str:
        token = self.get_input("oidc_token")
        if token:
            return token.strip()

        token_path = self.get_input("oidc_token_file")
        if token_path:
            return self._read_token_file(os.path.expanduser(token_path))

        raise AuthenticationError(
            "No OIDC token configuration available. "
            "Set OIDC_TOKEN or OIDC_TOKEN_FILE."
        )

    def set_output(self, name: str, value: str) -> None:
        sys.stdout.write(f"::set-output name={name}::{value}\n")
        sys.stdout.flush()

    def is_debug(self) -> bool:
        return os.environ.get("DEBUG") == "true"

    @property
    def logger(self) -> PlatformLogger:
        return self._logger
