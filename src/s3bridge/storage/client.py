import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Tuple

import aioboto3
from botocore.client import BaseClient
from botocore.config import Config

from ..models import ClientKey, ClientSettings, S3Config

logger = logging.getLogger(__name__)


async def build_client(
    s3_config: S3Config, settings: Optional[ClientSettings] = None
) -> Tuple[BaseClient, Any]:
    """Open a path-style S3 client for s3_config on the running event loop.

    Returns the entered client together with its context manager so the
    client can be closed later from the same loop.
    """
    settings = settings or ClientSettings()
    session = aioboto3.Session()

    boto_config = Config(
        region_name=s3_config.region,
        retries={
            'max_attempts': settings.max_attempts,
            'mode': settings.retry_mode
        },
        connect_timeout=settings.connect_timeout,
        read_timeout=settings.read_timeout,
        max_pool_connections=settings.max_pool_connections,
        s3={'addressing_style': 'path'},
    )

    client_context = session.client(
        "s3",
        endpoint_url=s3_config.endpoint_url,
        aws_access_key_id=s3_config.access_key,
        aws_secret_access_key=s3_config.secret_key,
        aws_session_token=s3_config.session_token,
        region_name=s3_config.region,
        config=boto_config,
    )
    client = await client_context.__aenter__()
    logger.info(
        f"S3 client created: endpoint={s3_config.endpoint_url}, region={s3_config.region}, "
        f"retry={settings.retry_mode}({settings.max_attempts}), "
        f"timeout={settings.connect_timeout}s/{settings.read_timeout}s"
    )
    return client, client_context


class ClientCache:
    """Mapping from resolved configuration to a reusable S3 client.

    The check, build and insert sequence runs under a single lock, so two
    callers asking for the same key never both build a client. Builds for
    different keys are serialized as well; client construction is rare and
    cheap, so one lock is enough.

    A builder that raises leaves nothing behind for its key and the next call
    builds again.
    """

    def __init__(self) -> None:
        self._clients: Dict[ClientKey, BaseClient] = {}
        self._contexts: Dict[ClientKey, Any] = {}
        self._lock = threading.Lock()

    def get_or_create(
        self, key: ClientKey, builder: Callable[[], Tuple[BaseClient, Any]]
    ) -> BaseClient:
        """Return the cached client for key, building it with builder() on first use.

        builder returns a (client, context) pair, the same shape as build_client();
        the context is kept so clear() can hand it back for closing.
        """
        with self._lock:
            client = self._clients.get(key)
            if client is not None:
                logger.debug(f"Client cache hit: endpoint={key.endpoint_url}, region={key.region}")
                return client

            logger.debug(f"Client cache miss, building: endpoint={key.endpoint_url}, region={key.region}")
            client, context = builder()
            self._clients[key] = client
            self._contexts[key] = context
            return client

    def __len__(self) -> int:
        with self._lock:
            return len(self._clients)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._clients

    def clear(self) -> List[Any]:
        """Forget every cached client and return their contexts for closing."""
        with self._lock:
            contexts = list(self._contexts.values())
            self._clients.clear()
            self._contexts.clear()
        return contexts


async def close_clients(contexts: List[Any]) -> None:
    """Exit client contexts taken from ClientCache.clear() on the loop that opened them."""
    for context in contexts:
        try:
            await context.__aexit__(None, None, None)
        except Exception as e:
            logger.warning(f"Error closing S3 client: {e}")
    logger.debug(f"Closed {len(contexts)} cached S3 clients")
