"""
oci_oidc.main

Exchanges the CI job's OIDC token for an OCI session token and configures
an OCI CLI profile that uses it.

Inputs (resolved through the selected platform):
    platform                 github | gitlab | bitbucket | generic | local | cli
    oidc_client_identifier   Identity domain client credential ("id:secret")
    domain_base_url          Identity domain URL, e.g. https://idcs-xxx.identity.oraclecloud.com
    oci_tenancy              Tenancy OCID
    oci_region               Region identifier
    retry_count              Token exchange retries (default: 0)
    oci_home                 Directory holding .oci (default: $HOME)
    oci_profile              Profile name (default: DEFAULT)
    oci_layout               nested | flat (default: nested)
"""

import base64
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional
from urllib.parse import urlparse

import requests

from .exceptions import ConfigurationError, OciOidcError
from .keys import fingerprint, generate_key_pair, public_key_base64
from .platforms import DEFAULT_PLATFORM, Platform, get_platform, resolve_input
from .provisioner import (
    DEFAULT_PROFILE,
    CredentialPaths,
    ProfileLayout,
    provision_credentials,
    resolve_home_dir,
    validate_profile_name,
)
from .token_exchange import TOKEN_ENDPOINT_PATH, TokenExchangeClient, TokenExchangeRequest

logger = logging.getLogger(__name__)

DEFAULT_RETRY_COUNT = 0
CONFIGURED_OUTPUT = "configured"


@dataclass
class ActionInputs:
    """Validated run inputs."""

    client_identifier: str
    token_exchange_url: str
    tenancy: str
    region: str
    home_dir: Path
    profile_name: str = DEFAULT_PROFILE
    retry_count: int = DEFAULT_RETRY_COUNT
    layout: ProfileLayout = ProfileLayout.NESTED


def parse_retry_count(value: Optional[str]) -> int:
    """Parse the retry count input; empty means the default."""
    if value is None or not value.strip():
        return DEFAULT_RETRY_COUNT
    try:
        retry_count = int(value.strip())
    except ValueError as e:
        raise ConfigurationError(
            f"retry_count must be a non-negative integer, got '{value}'"
        ) from e
    if retry_count < 0:
        raise ConfigurationError(
            f"retry_count must be a non-negative integer, got '{value}'"
        )
    return retry_count


def build_token_exchange_url(domain_base_url: str) -> str:
    """Validate the identity domain URL and return its token endpoint."""
    base = domain_base_url.strip().rstrip("/")
    parsed = urlparse(base)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigurationError(
            f"domain_base_url must be an http(s) URL with a host, got '{domain_base_url}'"
        )
    if parsed.query or parsed.fragment:
        raise ConfigurationError(
            f"domain_base_url must not contain a query or fragment, got '{domain_base_url}'"
        )
    return f"{base}{TOKEN_ENDPOINT_PATH}"


def parse_layout(value: Optional[str]) -> ProfileLayout:
    if not value:
        return ProfileLayout.NESTED
    try:
        return ProfileLayout(value.strip().lower())
    except ValueError as e:
        raise ConfigurationError(
            f"oci_layout must be one of: {', '.join(option.value for option in ProfileLayout)}"
        ) from e


def read_inputs(platform: Platform) -> ActionInputs:
    """
    Gather and validate every input before any network or filesystem
    access is made. The home directory and profile name are resolved here
    so that a run which cannot write its credentials never exchanges a token.

    Raises:
        ConfigurationError: If an input is missing or malformed
    """
    client_identifier = platform.get_input("oidc_client_identifier", required=True)
    domain_base_url = platform.get_input("domain_base_url", required=True)
    tenancy = platform.get_input("oci_tenancy", required=True)
    region = platform.get_input("oci_region", required=True)

    return ActionInputs(
        client_identifier=client_identifier,
        token_exchange_url=build_token_exchange_url(domain_base_url),
        tenancy=tenancy,
        region=region,
        home_dir=resolve_home_dir(platform.get_input("oci_home") or None),
        profile_name=validate_profile_name(
            platform.get_input("oci_profile") or DEFAULT_PROFILE
        ),
        retry_count=parse_retry_count(platform.get_input("retry_count")),
        layout=parse_layout(platform.get_input("oci_layout")),
    )


def encode_client_credential(client_identifier: str) -> str:
    return base64.b64encode(client_identifier.encode("utf-8")).decode("ascii")


def describe_failure(error: BaseException) -> str:
    """Message reported to the host for a failed run."""
    if isinstance(error, OciOidcError):
        return f"{error.__class__.__name__}: {error}"
    return f"Unexpected error: {error}"


def configure(
    platform: Platform,
    inputs: ActionInputs,
    session: Optional[requests.Session] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> CredentialPaths:
    """
    Run the exchange and provisioning for already validated inputs.

    The key pair is created once, first, and passed down to the exchange
    and the provisioner.
    """
    key_pair = generate_key_pair()
    key_fingerprint = fingerprint(key_pair)
    public_key = public_key_base64(key_pair)
    platform.logger.debug(f"Public key fingerprint: {key_fingerprint}")

    id_token = platform.get_oidc_token(platform.config.audience)
    platform.logger.debug(f"Obtained OIDC token from {platform.get_name()} ({len(id_token)} chars)")

    client = TokenExchangeClient(platform, session=session, sleep=sleep)
    upst_token = client.exchange(
        TokenExchangeRequest(
            token_exchange_url=inputs.token_exchange_url,
            client_cred=encode_client_credential(inputs.client_identifier),
            public_key=public_key,
            subject_token=id_token,
            retry_count=inputs.retry_count,
        )
    )
    platform.mask_secret(upst_token)
    platform.logger.debug(f"Obtained UPST ({len(upst_token)} chars)")

    paths = provision_credentials(
        key_pair,
        upst_token,
        key_fingerprint,
        inputs.tenancy,
        inputs.region,
        home_dir=str(inputs.home_dir),
        profile_name=inputs.profile_name,
        layout=inputs.layout,
    )
    platform.logger.info(f"OCI CLI profile configured in {paths.config_file}")
    return paths


def run(
    platform: Optional[Platform] = None,
    session: Optional[requests.Session] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> CredentialPaths:
    """
    Main execution function.

    Failures are reported once through the platform's failure capability
    (or the module logger when no platform could be selected) and then
    re-raised so the process exits non-zero.
    """
    try:
        if platform is None:
            platform = get_platform(resolve_input("platform") or DEFAULT_PLATFORM)
        inputs = read_inputs(platform)
        paths = configure(platform, inputs, session=session, sleep=sleep)
        platform.set_output(CONFIGURED_OUTPUT, "true")
        return paths
    except Exception as e:
        message = describe_failure(e)
        if platform is not None:
            platform.set_failed(message)
        else:
            logger.error(message)
        if not isinstance(e, OciOidcError):
            logger.debug("Unexpected error details", exc_info=True)
        raise
