"""
oci_oidc

Exchange a CI pipeline OIDC token for an OCI session token (UPST) and
configure an OCI CLI profile that uses it.
"""

from .exceptions import (
    OciOidcError,
    ConfigurationError,
    AuthenticationError,
    TokenExchangeError,
    ProvisioningError,
)
from .keys import (
    KeyPair,
    generate_key_pair,
    fingerprint,
    public_key_base64,
    private_key_pem,
    public_key_pem,
)
from .token_exchange import TokenExchangeClient, TokenExchangeRequest
from .provisioner import (
    CredentialPaths,
    ProfileLayout,
    DEFAULT_PROFILE,
    provision_credentials,
)
from .main import run

__all__ = [
    # Exceptions
    "OciOidcError",
    "ConfigurationError",
    "AuthenticationError",
    "TokenExchangeError",
    "ProvisioningError",
    # Key material
    "KeyPair",
    "generate_key_pair",
    "fingerprint",
    "public_key_base64",
    "private_key_pem",
    "public_key_pem",
    # Token exchange
    "TokenExchangeClient",
    "TokenExchangeRequest",
    # Provisioning
    "CredentialPaths",
    "ProfileLayout",
    "DEFAULT_PROFILE",
    "provision_credentials",
    # Orchestration
    "run",
]

__version__ = "0.1.0"
