"""
oci_oidc.token_exchange

Exchanges a CI identity token (JWT) for an OCI user principal session token
(UPST) at an OCI IAM identity domain.
"""

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import jwt
import requests

from .exceptions import TokenExchangeError
from .platforms.provider import Platform

logger = logging.getLogger(__name__)

GRANT_TYPE = "urn:ietf:params:oauth:grant-type:token-exchange"
REQUESTED_TOKEN_TYPE = "urn:oci:token-type:oci-upst"
SUBJECT_TOKEN_TYPE = "jwt"
TOKEN_ENDPOINT_PATH = "/oauth2/v1/token"

DEFAULT_TIMEOUT = 30
SUBJECT_CLAIM_PREVIEW = 20


@dataclass
class TokenExchangeRequest:
    """
    Inputs of a single token exchange.

    Attributes:
        token_exchange_url: Full URL of the identity domain token endpoint
        client_cred: Base64 client credential for HTTP Basic auth
        public_key: Base64 DER public key the session is bound to
        subject_token: Identity token being exchanged
        retry_count: Retries allowed after the first attempt
        current_attempt: Zero-based number of the attempt in progress
    """

    token_exchange_url: str
    client_cred: str
    public_key: str
    subject_token: str
    retry_count: int = 0
    current_attempt: int = 0

    def headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/x-www-form-urlencoded",
            "Authorization": f"Basic {self.client_cred}",
        }

    def form_data(self) -> Dict[str, str]:
        return {
            "grant_type": GRANT_TYPE,
            "requested_token_type": REQUESTED_TOKEN_TYPE,
            "public_key": self.public_key,
            "subject_token": self.subject_token,
            "subject_token_type": SUBJECT_TOKEN_TYPE,
        }


def _truncate(value: Any, length: int = SUBJECT_CLAIM_PREVIEW) -> Any:
    if isinstance(value, str) and len(value) > length:
        return f"{value[:length]}..."
    return value


def describe_subject_token(token: str) -> Dict[str, Any]:
    """
    Decode the loggable parts of an identity token without verifying it.

    Args:
        token: Compact JWT (header.payload.signature)

    Returns:
        Dict[str, Any]: issuer, key id, audience, issued-at, expiry and a
                        truncated subject

    Raises:
        ValueError: If the token is not a 3-segment JWT with JSON header and
                    payload
    """
    if token.count(".") != 2:
        raise ValueError(
            f"Subject token is not a compact JWT: expected 3 segments, got {token.count('.') + 1}"
        )

    try:
        header = jwt.get_unverified_header(token)
        # Decode without verification (the identity domain validates the token)
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError as e:
        raise ValueError(f"Subject token could not be decoded: {e}") from e

    return {
        "iss": claims.get("iss"),
        "kid": header.get("kid"),
        "aud": claims.get("aud"),
        "iat": claims.get("iat"),
        "exp": claims.get("exp"),
        "sub": _truncate(claims.get("sub")),
    }


class TokenExchangeClient:
    """Performs the JWT to UPST exchange with bounded, linear-backoff retries."""

    def __init__(
        self,
        platform: Platform,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """
        Initialize the client.

        Args:
            platform: Platform used for logging and debug detection
            session: Optional requests session (module-level requests if None)
            sleep: Called with the backoff delay in seconds between attempts
            timeout: Per-request network timeout in seconds
        """
        self.platform = platform
        self._http = session if session is not None else requests
        self._sleep = sleep
        self.timeout = timeout

    def exchange(self, request: TokenExchangeRequest) -> str:
        """
        Exchange the subject token for a UPST.

        At most ``request.retry_count + 1`` requests are made, one at a time.
        After failed attempt ``n`` the client waits ``n + 1`` seconds.

        Args:
            request: Exchange inputs; current_attempt is advanced on retry

        Returns:
            str: The session token

        Raises:
            TokenExchangeError: If every attempt failed
        """
        if self.platform.is_debug():
            self._log_request_details(request)

        while True:
            try:
                return self._attempt(request)
            except (requests.RequestException, ValueError) as e:
                attempt = request.current_attempt
                if attempt >= request.retry_count:
                    raise TokenExchangeError(
                        f"Token exchange failed after {attempt + 1} attempt(s): {e}"
                    ) from e

                delay = attempt + 1
                remaining = request.retry_count - attempt
                self.platform.logger.warning(
                    f"Token exchange attempt {attempt + 1} failed: {e}; "
                    f"retrying in {delay}s ({remaining} retries remaining)"
                )
                self._sleep(delay)
                request.current_attempt += 1

    def _attempt(self, request: TokenExchangeRequest) -> str:
        logger.debug(
            "Token exchange attempt %d of %d",
            request.current_attempt + 1,
            request.retry_count + 1,
        )
        response = self._http.post(
            request.token_exchange_url,
            data=request.form_data(),
            headers=request.headers(),
            timeout=self.timeout,
        )
        if self.platform.is_debug():
            self.platform.logger.debug(
                f"Token Exchange Response: HTTP {response.status_code}, "
                f"{len(response.content or b'')} bytes"
            )
            if not response.ok:
                self.platform.logger.debug(f"Token Exchange Error Body: {response.text}")
        response.raise_for_status()

        body = response.json()
        token = body.get("token") if isinstance(body, dict) else None
        if not isinstance(token, str) or not token:
            raise ValueError("Token exchange response did not contain a token")
        return token

    def _log_request_details(self, request: TokenExchangeRequest) -> None:
        data = request.form_data()
        data["subject_token"] = f"<{len(request.subject_token)} chars>"
        data["public_key"] = _truncate(request.public_key, 32)
        self.platform.logger.debug(
            f"Token Exchange Request Data: {json.dumps(data)} "
            f"(url={request.token_exchange_url}, retries={request.retry_count})"
        )

        try:
            details = describe_subject_token(request.subject_token)
        except ValueError as e:
            self.platform.logger.debug(f"Subject token structure check failed: {e}")
            return
        self.platform.logger.debug(f"Subject token claims: {json.dumps(details, default=str)}")
