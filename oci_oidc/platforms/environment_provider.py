"""
oci_oidc.platforms.environment_provider

Generic CI platform provider that reads a pre-issued identity token from an
environment variable (GitLab id_tokens, Bitbucket OIDC steps, and similar).
"""

import os
import sys
from typing import Optional

from .provider import Platform, PlatformConfig, PlatformLogger, StandardPlatformLogger
from ..exceptions import AuthenticationError

DEFAULT_TOKEN_ENV_VAR = "OCI_OIDC_TOKEN"


class EnvironmentPlatform(Platform):
    """CI platform whose identity token is injected into the job environment."""

    def __init__(self, name: str, config: Optional[PlatformConfig] = None):
        """
        Initialize the environment-variable platform.

        Args:
            name: Platform name this instance was selected as
            config: Static platform settings; token_env_var names the variable
                    holding the identity token
        """
        super().__init__(config)
        self._name = name
        self._logger = StandardPlatformLogger(self)

    def get_name(self) -> str:
        """Return platform name."""
        return self._name

    def token_env_var(self) -> str:
        """Name of the variable the identity token is read from."""
        override = self.get_input("oidc_token_env_var")
        if override:
            return override
        return self.config.token_env_var or DEFAULT_TOKEN_ENV_VAR

    def get_oidc_token(self, audience: str) -> str:
        # The audience is fixed when the CI system issues the token
        env_var = self.token_env_var()
        token = os.environ.get(env_var, "").strip()
        if not token:
            raise AuthenticationError(f"{env_var} environment variable not found")
        return token

    def set_output(self, name: str, value: str) -> None:
        sys.stdout.write(f"::set-output name={name}::{value}\n")
        sys.stdout.flush()
        self._logger.info(f"Output {name}={value}")

    def is_debug(self) -> bool:
        return os.environ.get("DEBUG") == "true"

    @property
    def logger(self) -> PlatformLogger:
        return self._logger
