"""
oci_oidc.platforms

CI platform abstraction for oci_oidc.

This package provides a pluggable interface for reading inputs, obtaining
the job's OIDC identity token and reporting results, supporting GitHub
Actions, environment-variable based CI systems and local runs.
"""

from .provider import (
    Platform,
    PlatformConfig,
    PlatformLogger,
    StandardPlatformLogger,
    resolve_input,
)
from .github_provider import GitHubPlatform, WorkflowCommandLogger
from .environment_provider import EnvironmentPlatform
from .local_provider import LocalPlatform
from .factory import get_platform, DEFAULT_PLATFORM

__all__ = [
    # Abstract classes
    "Platform",
    "PlatformConfig",
    "PlatformLogger",
    "StandardPlatformLogger",
    "resolve_input",
    # Implementations
    "GitHubPlatform",
    "WorkflowCommandLogger",
    "EnvironmentPlatform",
    "LocalPlatform",
    # Factory function
    "get_platform",
    "DEFAULT_PLATFORM",
]
