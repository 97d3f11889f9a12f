"""
oci_oidc.exceptions

Custom exceptions for the OIDC to OCI session exchange.
"""


class OciOidcError(Exception):
    """Base exception for all oci_oidc errors."""

    pass


class ConfigurationError(OciOidcError):
    """Raised when a required input is missing or invalid."""

    pass


class AuthenticationError(OciOidcError):
    """Raised when the CI platform identity token cannot be obtained."""

    pass


class TokenExchangeError(OciOidcError):
    """Raised when the token exchange fails after all retries are exhausted."""

    pass


class ProvisioningError(OciOidcError):
    """Raised when the OCI configuration or credential files cannot be written."""

    pass
