from dataclasses import dataclass, field
from typing import Optional

from .constants import (
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_POOL_CONNECTIONS,
    DEFAULT_READ_TIMEOUT,
    DEFAULT_REGION,
    DEFAULT_RETRY_MODE,
)


@dataclass(frozen=True)
class ClientKey:
    """Identity of a cached S3 client.

    The session token is intentionally not part of the key: calls that share
    base credentials but carry different short-lived tokens reuse one client,
    which keeps the token it was built with.
    """

    endpoint_url: str
    access_key: str
    secret_key: str = field(repr=False)
    region: str


@dataclass(frozen=True)
class S3Config:
    """Fully resolved connection configuration for a single call."""

    endpoint_url: str
    access_key: str
    secret_key: str = field(repr=False)
    session_token: Optional[str] = field(default=None, repr=False)
    region: str = DEFAULT_REGION

    @property
    def key(self) -> ClientKey:
        return ClientKey(
            endpoint_url=self.endpoint_url,
            access_key=self.access_key,
            secret_key=self.secret_key,
            region=self.region,
        )


@dataclass(frozen=True)
class ClientSettings:
    """Transport settings applied to every client a cache builds."""

    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    read_timeout: float = DEFAULT_READ_TIMEOUT
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    retry_mode: str = DEFAULT_RETRY_MODE
    max_pool_connections: int = DEFAULT_MAX_POOL_CONNECTIONS
