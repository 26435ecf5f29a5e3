import logging
import os
from typing import Mapping, Optional

from .constants import (
    DEFAULT_REGION,
    ENV_ACCESS_KEY,
    ENV_ENDPOINT_URL,
    ENV_SECRET_KEY,
    ENV_SESSION_TOKEN,
    INSECURE_SCHEME,
    SECURE_SCHEME,
)
from .errors import ConfigError
from .models import S3Config

logger = logging.getLogger(__name__)


def normalize_endpoint(endpoint: str) -> str:
    """Return an absolute endpoint URL, defaulting to https when no scheme is given."""
    if endpoint.startswith(INSECURE_SCHEME) or endpoint.startswith(SECURE_SCHEME):
        return endpoint
    return f"{SECURE_SCHEME}{endpoint}"


def _lookup(override: Optional[str], env_name: str, environ: Mapping[str, str]) -> Optional[str]:
    if override is not None:
        return override
    return environ.get(env_name) or None


def _require(override: Optional[str], env_name: str, environ: Mapping[str, str]) -> str:
    value = _lookup(override, env_name, environ)
    if value is None:
        raise ConfigError(f"{env_name} not set and no override supplied")
    return value


def resolve_config(
    endpoint_url: Optional[str] = None,
    access_key: Optional[str] = None,
    secret_key: Optional[str] = None,
    session_token: Optional[str] = None,
    region: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> S3Config:
    """Resolve per-call overrides against the environment.

    Endpoint, access key and secret key are required: each falls back to its
    environment variable and raises ConfigError when missing everywhere.
    The session token is optional. Region falls back to a fixed default.

    Raises:
        ConfigError: If a required setting is missing from overrides and environment
    """
    environ = os.environ if environ is None else environ

    config = S3Config(
        endpoint_url=normalize_endpoint(_require(endpoint_url, ENV_ENDPOINT_URL, environ)),
        access_key=_require(access_key, ENV_ACCESS_KEY, environ),
        secret_key=_require(secret_key, ENV_SECRET_KEY, environ),
        session_token=_lookup(session_token, ENV_SESSION_TOKEN, environ),
        region=region or DEFAULT_REGION,
    )
    logger.debug(f"Resolved S3 config: endpoint={config.endpoint_url}, region={config.region}")
    return config
