"""Command line entry point: ``python -m oci_oidc`` / ``oci-oidc``."""

import logging
import os
import sys

from .main import run

# Plain CI variables and the action-style INPUT_* names they populate
ENV_VAR_MAPPINGS = {
    "PLATFORM": "platform",
    "OIDC_CLIENT_IDENTIFIER": "oidc_client_identifier",
    "DOMAIN_BASE_URL": "domain_base_url",
    "OCI_TENANCY": "oci_tenancy",
    "OCI_REGION": "oci_region",
    "RETRY_COUNT": "retry_count",
    "OCI_HOME": "oci_home",
    "OCI_PROFILE": "oci_profile",
}

logger = logging.getLogger("oci_oidc")


def is_debug_enabled() -> bool:
    return os.environ.get("DEBUG") == "true" or os.environ.get("RUNNER_DEBUG") == "1"


def map_environment() -> None:
    """Copy plain variables to their INPUT_* form unless that is already set."""
    for env_var, input_name in ENV_VAR_MAPPINGS.items():
        value = os.environ.get(env_var)
        target = f"INPUT_{input_name.upper()}"
        if value and not os.environ.get(target):
            os.environ[target] = value
            logger.debug("%s -> %s", env_var, target)


def main() -> int:
    logging.basicConfig(
        level=logging.DEBUG if is_debug_enabled() else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # urllib3 logs request lines at debug, which include the OIDC request URL
    logging.getLogger("urllib3").setLevel(logging.INFO)

    map_environment()
    try:
        run()
    except Exception as e:
        logger.debug("Run failed: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
