"""
Secrets management utilities for statesync.

Supports multiple secret sources:
1. Docker secrets files referenced by {NAME}_FILE (production)
2. Environment variables (development)
3. Default Docker secrets mount (/run/secrets/{name})

Usage:
    from statesync.utils.secrets import get_secret

    jwt_secret = get_secret("JWT_SECRET")
"""
import os
import logging
from typing import Optional

logger = logging.getLogger(__name__)


def get_secret(name: str, default: Optional[str] = None) -> Optional[str]:
    """
    Get a secret value from various sources.

    Priority:
    1. {NAME}_FILE environment variable (path to file containing secret)
    2. {NAME} environment variable (direct value)
    3. /run/secrets/{name.lower()} file (Docker secrets default path)
    4. Default value

    Args:
        name: Secret name (e.g., "JWT_SECRET")
        default: Default value if secret not found

    Returns:
        Secret value or default
    """
    file_path = os.environ.get(f"{name}_FILE")

    if file_path and os.path.isfile(file_path):
        try:
            with open(file_path, 'r') as f:
                secret = f.read().strip()
                logger.debug(f"Loaded secret {name} from file")
                return secret
        except OSError as e:
            logger.warning(f"Failed to read secret file {file_path}: {e}")

    env_value = os.environ.get(name)
    if env_value:
        logger.debug(f"Loaded secret {name} from environment")
        return env_value

    docker_secret_path = f"/run/secrets/{name.lower()}"
    if os.path.isfile(docker_secret_path):
        try:
            with open(docker_secret_path, 'r') as f:
                secret = f.read().strip()
                logger.debug(f"Loaded secret {name} from Docker secrets")
                return secret
        except OSError as e:
            logger.warning(f"Failed to read Docker secret {docker_secret_path}: {e}")

    if default is None:
        logger.debug(f"Secret {name} not found, no default provided")
    return default


def mask_secret(secret: Optional[str], visible_chars: int = 4) -> str:
    """
    Mask a secret for safe logging.

    Returns:
        Masked string like "abc...xyz"
    """
    if not secret or len(secret) <= visible_chars * 2:
        return "***"
    return f"{secret[:visible_chars]}...{secret[-visible_chars:]}"
