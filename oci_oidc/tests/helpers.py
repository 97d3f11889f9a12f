"""
Test doubles and builders shared by the oci_oidc test suite.
"""

import json
import time
from typing import Dict, List, Optional

import jwt
import requests

from oci_oidc.exceptions import ConfigurationError
from oci_oidc.platforms.provider import Platform, PlatformConfig, PlatformLogger

TOKEN_URL = "https://idcs-test.identity.oraclecloud.com/oauth2/v1/token"
SIGNING_SECRET = "unit-test-signing-secret-0123456789abcdef"


def make_jwt(claims: Optional[Dict] = None, kid: str = "test-key") -> str:
    """Signed HS256 JWT with GitHub-like claims."""
    now = int(time.time())
    payload = {
        "iss": "https://token.actions.githubusercontent.com",
        "aud": "https://cloud.oracle.com",
        "sub": "repo:example-org/example-repo:ref:refs/heads/main",
        "iat": now,
        "exp": now + 300,
    }
    payload.update(claims or {})
    return jwt.encode(payload, SIGNING_SECRET, algorithm="HS256", headers={"kid": kid})


def make_response(status_code: int = 200, body=None, url: str = TOKEN_URL) -> requests.Response:
    """Build a real requests.Response without any network access."""
    response = requests.Response()
    response.status_code = status_code
    response.url = url
    if body is None:
        response._content = b""
    elif isinstance(body, str):
        response._content = body.encode()
    else:
        response._content = json.dumps(body).encode()
    return response


class RecordingLogger(PlatformLogger):
    """Keeps every message per level."""

    def __init__(self):
        self.messages: Dict[str, List[str]] = {
            "debug": [],
            "info": [],
            "warning": [],
            "error": [],
        }

    def debug(self, message: str) -> None:
        self.messages["debug"].append(message)

    def info(self, message: str) -> None:
        self.messages["info"].append(message)

    def warning(self, message: str) -> None:
        self.messages["warning"].append(message)

    def error(self, message: str) -> None:
        self.messages["error"].append(message)

    def all_text(self) -> str:
        return "\n".join(m for level in self.messages.values() for m in level)


class FakePlatform(Platform):
    """In-memory platform for exercising components without a CI host."""

    def __init__(
        self,
        inputs: Optional[Dict[str, str]] = None,
        token: str = "header.payload.signature",
        debug: bool = False,
    ):
        super().__init__(PlatformConfig(audience="test-audience"))
        self.inputs = dict(inputs or {})
        self.token = token
        self.debug = debug
        self.outputs: Dict[str, str] = {}
        self.requested_audiences: List[str] = []
        self._logger = RecordingLogger()

    def get_name(self) -> str:
        return "fake"

    def get_input(self, name: str, required: bool = False) -> str:
        value = self.inputs.get(name, "")
        if required and not value:
            raise ConfigurationError(f"Input required and not supplied: {name}")
        return value

    def get_oidc_token(self, audience: str) -> str:
        self.requested_audiences.append(audience)
        return self.token

    def set_output(self, name: str, value: str) -> None:
        self.outputs[name] = value

    def is_debug(self) -> bool:
        return self.debug

    @property
    def logger(self) -> RecordingLogger:
        return self._logger
