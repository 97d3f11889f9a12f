"""
Shared fixtures for oci_oidc tests.
"""

import os

import pytest

from oci_oidc.keys import generate_key_pair
from oci_oidc.tests.helpers import FakePlatform, make_jwt

# Plain variables that resolve_input or the platforms read
ENVIRONMENT_VARIABLES = [
    "PLATFORM",
    "DEBUG",
    "RUNNER_DEBUG",
    "DOMAIN_BASE_URL",
    "RETRY_COUNT",
    "GITHUB_OUTPUT",
    "ACTIONS_ID_TOKEN_REQUEST_URL",
    "ACTIONS_ID_TOKEN_REQUEST_TOKEN",
    "BITBUCKET_STEP_OIDC_TOKEN",
    "CUSTOM_TOKEN_VAR",
    "TEST_VAR",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove every variable that could leak into input resolution."""
    for key in list(os.environ):
        if key.startswith(("INPUT_", "OCI_", "OIDC_")) or key in ENVIRONMENT_VARIABLES:
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(scope="session")
def key_pair():
    """One RSA key pair shared across tests; generation is slow."""
    return generate_key_pair()


@pytest.fixture
def subject_token():
    return make_jwt()


@pytest.fixture
def fake_platform():
    return FakePlatform()
