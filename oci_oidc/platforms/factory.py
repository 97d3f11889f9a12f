"""
oci_oidc.platforms.factory

Factory for creating platform providers.
"""

from typing import Callable, Dict, Tuple

from .provider import Platform, PlatformConfig, DEFAULT_AUDIENCE
from .github_provider import GitHubPlatform
from .environment_provider import EnvironmentPlatform, DEFAULT_TOKEN_ENV_VAR
from .local_provider import LocalPlatform
from ..exceptions import ConfigurationError

DEFAULT_PLATFORM = "github"

# name -> (constructor, static settings)
PLATFORMS: Dict[str, Tuple[Callable[[str, PlatformConfig], Platform], PlatformConfig]] = {
    "github": (
        lambda name, config: GitHubPlatform(config),
        PlatformConfig(audience=DEFAULT_AUDIENCE),
    ),
    "gitlab": (
        EnvironmentPlatform,
        PlatformConfig(audience=DEFAULT_AUDIENCE, token_env_var=DEFAULT_TOKEN_ENV_VAR),
    ),
    "bitbucket": (
        EnvironmentPlatform,
        PlatformConfig(audience=DEFAULT_AUDIENCE, token_env_var="BITBUCKET_STEP_OIDC_TOKEN"),
    ),
    "generic": (
        EnvironmentPlatform,
        PlatformConfig(audience=DEFAULT_AUDIENCE, token_env_var=DEFAULT_TOKEN_ENV_VAR),
    ),
    "local": (
        lambda name, config: LocalPlatform(config),
        PlatformConfig(audience=DEFAULT_AUDIENCE),
    ),
    "cli": (
        lambda name, config: LocalPlatform(config),
        PlatformConfig(audience=DEFAULT_AUDIENCE),
    ),
}


def get_platform(platform_name: str) -> Platform:
    """
    Get a platform provider instance by name.

    Selection is a pure lookup; no environment, network or filesystem access
    happens here.

    Args:
        platform_name: Platform identifier ("github", "gitlab", "bitbucket",
                       "generic", "local" or "cli")

    Returns:
        Platform instance

    Raises:
        ConfigurationError: If the name is empty or not a known platform
    """
    if not platform_name or not platform_name.strip():
        raise ConfigurationError(
            "Platform must be specified. "
            f"Valid options are: {', '.join(repr(p) for p in PLATFORMS)}"
        )

    name = platform_name.lower().strip()
    if name not in PLATFORMS:
        raise ConfigurationError(
            f"Invalid platform name: '{platform_name}'. "
            f"Valid options are: {', '.join(repr(p) for p in PLATFORMS)}"
        )

    constructor, config = PLATFORMS[name]
    return constructor(name, config)
