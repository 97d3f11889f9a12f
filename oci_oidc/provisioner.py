"""
oci_oidc.provisioner

Writes the OCI CLI configuration profile and the key/session files that
back it.

Layout produced (nested, the default):

    <home>/.oci/config                        shared, one section per profile
    <home>/.oci/<profile>/private_key.pem     0600
    <home>/.oci/<profile>/public_key.pem
    <home>/.oci/<profile>/session             0600

With the flat layout the three credential files live directly in <home>.
"""

import configparser
import io
import logging
import os
import stat
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from .exceptions import ConfigurationError, ProvisioningError
from .keys import KeyPair, private_key_pem, public_key_pem

logger = logging.getLogger(__name__)

DEFAULT_PROFILE = "DEFAULT"
OCI_DIRNAME = ".oci"
CONFIG_FILENAME = "config"
PRIVATE_KEY_FILENAME = "private_key.pem"
PUBLIC_KEY_FILENAME = "public_key.pem"
SESSION_FILENAME = "session"

# Session tokens identify the user; the user entry is required by the CLI but unused
USER_PLACEHOLDER = "ocid1.user.oc1..session"

OWNER_ONLY = 0o600

PROFILE_KEYS = (
    "user",
    "fingerprint",
    "key_file",
    "tenancy",
    "region",
    "security_token_file",
)


class ProfileLayout(str, Enum):
    """Where per-profile credential files are placed."""

    NESTED = "nested"
    FLAT = "flat"


@dataclass(frozen=True)
class CredentialPaths:
    """Resolved locations of every file a profile consists of."""

    config_dir: Path
    config_file: Path
    profile_dir: Path
    private_key_file: Path
    public_key_file: Path
    session_file: Path


def resolve_home_dir(home_dir: Optional[str] = None) -> Path:
    """
    Resolve the directory the .oci folder is created in.

    Args:
        home_dir: Explicit override

    Returns:
        Path: Absolute, resolved home directory

    Raises:
        ConfigurationError: If no override is given and neither HOME nor
                            USERPROFILE is set
    """
    home = home_dir or os.environ.get("HOME") or os.environ.get("USERPROFILE")
    if not home:
        raise ConfigurationError(
            "HOME environment variable is not defined and no OCI home directory was given"
        )
    return Path(home).expanduser().resolve()


def validate_profile_name(profile_name: str) -> str:
    """Reject names that would break the INI header or escape the .oci folder."""
    if not profile_name or profile_name != profile_name.strip():
        raise ConfigurationError(f"Invalid OCI profile name: '{profile_name}'")
    if any(c in profile_name for c in "[]/\\\n\r") or profile_name in (".", ".."):
        raise ConfigurationError(f"Invalid OCI profile name: '{profile_name}'")
    return profile_name


def resolve_credential_paths(
    home: Path,
    profile_name: str,
    layout: ProfileLayout = ProfileLayout.NESTED,
) -> CredentialPaths:
    """Compute the config and credential file paths for a profile."""
    config_dir = (home / OCI_DIRNAME).resolve()
    if layout == ProfileLayout.FLAT:
        profile_dir = home
    else:
        profile_dir = (config_dir / profile_name).resolve()

    return CredentialPaths(
        config_dir=config_dir,
        config_file=config_dir / CONFIG_FILENAME,
        profile_dir=profile_dir,
        private_key_file=profile_dir / PRIVATE_KEY_FILENAME,
        public_key_file=profile_dir / PUBLIC_KEY_FILENAME,
        session_file=profile_dir / SESSION_FILENAME,
    )


def _new_parser() -> configparser.ConfigParser:
    parser = configparser.ConfigParser(interpolation=None)
    # Keep key case as written by other tools
    parser.optionxform = str
    return parser


def merge_profile(
    existing: Optional[str], profile_name: str, values: Dict[str, str]
) -> str:
    """
    Merge a profile into OCI config file content.

    Every section of ``existing`` other than ``profile_name`` is kept with
    its keys and values, written as ``key=value`` like the OCI CLI does.
    Comments are not preserved. The ``profile_name`` section is replaced
    entirely by ``values``. Content that cannot be parsed is discarded and
    the result holds only the new profile.

    Args:
        existing: Current file content, or None if there is no file
        profile_name: Section to (re)write
        values: Keys and values of the new section

    Returns:
        str: New file content
    """
    parser = _new_parser()
    if existing:
        try:
            parser.read_string(existing)
        except configparser.Error as e:
            logger.warning(
                "Existing OCI config could not be parsed (%s); rewriting it with only profile %s",
                e.__class__.__name__,
                profile_name,
            )
            parser = _new_parser()

    # Assigning a section replaces its body (DEFAULT included)
    parser[profile_name] = values

    buffer = io.StringIO()
    parser.write(buffer, space_around_delimiters=False)
    return buffer.getvalue()


def _write_file(path: Path, content: str, mode: Optional[int] = None) -> None:
    """Write a text file, restricting its mode when one is given."""
    if mode is None:
        path.write_text(content, encoding="utf-8")
        return

    # Create with the restricted mode so the file is never world-readable,
    # then chmod in case it already existed with a wider mode
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(content)
    os.chmod(path, mode)


def _verify(paths: CredentialPaths) -> None:
    for path in (
        paths.config_file,
        paths.private_key_file,
        paths.public_key_file,
        paths.session_file,
    ):
        if not path.is_file():
            raise ProvisioningError(f"Expected credential file is missing: {path}")

    if os.name != "posix":
        return
    for path in (paths.private_key_file, paths.session_file):
        if stat.S_IMODE(path.stat().st_mode) & 0o077:
            raise ProvisioningError(f"Permissions on {path} are not restricted to the owner")


def provision_credentials(
    key_pair: KeyPair,
    session_token: str,
    fingerprint: str,
    tenancy: str,
    region: str,
    home_dir: Optional[str] = None,
    profile_name: Optional[str] = None,
    layout: ProfileLayout = ProfileLayout.NESTED,
) -> CredentialPaths:
    """
    Provision an OCI CLI profile that authenticates with a session token.

    Args:
        key_pair: Key pair the session token is bound to
        session_token: UPST returned by the token exchange
        fingerprint: Fingerprint of the key pair's public key
        tenancy: Tenancy OCID
        region: Region identifier
        home_dir: Directory holding .oci (defaults to $HOME)
        profile_name: Profile to write (defaults to DEFAULT)
        layout: Credential file layout

    Returns:
        CredentialPaths: The files that were written

    Raises:
        ConfigurationError: If the home directory or profile name is invalid
        ProvisioningError: If a directory or file could not be written
    """
    home = resolve_home_dir(home_dir)
    profile = validate_profile_name(profile_name or DEFAULT_PROFILE)
    paths = resolve_credential_paths(home, profile, layout)
    logger.debug("OCI config dir: %s", paths.config_dir)

    for directory in (paths.config_dir, paths.profile_dir):
        try:
            os.makedirs(directory, exist_ok=True)
        except OSError as e:
            raise ProvisioningError(
                f"Failed to create configuration directory {directory}: {e}"
            ) from e

    try:
        existing = paths.config_file.read_text(encoding="utf-8")
    except FileNotFoundError:
        existing = None
    except OSError as e:
        raise ProvisioningError(
            f"Failed to read existing OCI config {paths.config_file}: {e}"
        ) from e

    profile_values = dict(
        zip(
            PROFILE_KEYS,
            (
                USER_PLACEHOLDER,
                fingerprint,
                str(paths.private_key_file),
                tenancy,
                region,
                str(paths.session_file),
            ),
        )
    )
    config_text = merge_profile(existing, profile, profile_values)

    writes: List[Tuple[Path, Callable[[], None]]] = [
        (paths.config_file, lambda: _write_file(paths.config_file, config_text, OWNER_ONLY)),
        (
            paths.private_key_file,
            lambda: _write_file(paths.private_key_file, private_key_pem(key_pair), OWNER_ONLY),
        ),
        (paths.public_key_file, lambda: _write_file(paths.public_key_file, public_key_pem(key_pair))),
        (paths.session_file, lambda: _write_file(paths.session_file, session_token, OWNER_ONLY)),
    ]

    with ThreadPoolExecutor(max_workers=len(writes)) as executor:
        futures = [(path, executor.submit(write)) for path, write in writes]

    # Leaving the executor block joins every write; report the first failure
    for path, future in futures:
        error = future.exception()
        if error is not None:
            raise ProvisioningError(f"Failed to write {path}: {error}") from error

    _verify(paths)
    logger.info("Configured OCI CLI profile %s in %s", profile, paths.config_file)
    return paths
