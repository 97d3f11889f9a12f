"""
oci_oidc.keys

RSA key material for binding the session token to this run.

The key pair is generated once per run and handed explicitly to the
token exchange and the credential provisioner.
"""

import base64
import hashlib
from dataclasses import dataclass

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

DEFAULT_KEY_SIZE = 2048
PUBLIC_EXPONENT = 65537


@dataclass(frozen=True)
class KeyPair:
    """An RSA key pair owned by the current run."""

    private_key: rsa.RSAPrivateKey

    @property
    def public_key(self) -> rsa.RSAPublicKey:
        return self.private_key.public_key()


def generate_key_pair(key_size: int = DEFAULT_KEY_SIZE) -> KeyPair:
    """Generate a new RSA key pair."""
    return KeyPair(
        private_key=rsa.generate_private_key(
            public_exponent=PUBLIC_EXPONENT, key_size=key_size
        )
    )


def public_key_der(pair: KeyPair) -> bytes:
    """DER-encoded SubjectPublicKeyInfo of the public key."""
    return pair.public_key.public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


def public_key_base64(pair: KeyPair) -> str:
    """Base64 of the DER public key, as sent to the token exchange endpoint."""
    return base64.b64encode(public_key_der(pair)).decode("ascii")


def fingerprint(pair: KeyPair) -> str:
    """
    OCI API key fingerprint of the public key.

    Returns:
        str: MD5 of the DER public key as lowercase colon-separated hex
             pairs, e.g. "12:ab:..."
    """
    digest = hashlib.md5(public_key_der(pair), usedforsecurity=False).hexdigest()
    return ":".join(digest[i : i + 2] for i in range(0, len(digest), 2))


def private_key_pem(pair: KeyPair) -> str:
    """Unencrypted PKCS#1 PEM of the private key."""
    return pair.private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


def public_key_pem(pair: KeyPair) -> str:
    """SubjectPublicKeyInfo PEM of the public key."""
    return pair.public_key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("ascii")
