import atexit
import logging
import threading
from typing import Mapping, Optional

from botocore.client import BaseClient

from .async_utils import AsyncRunner
from .config import resolve_config
from .models import ClientSettings, S3Config
from .storage import s3
from .storage.client import ClientCache, build_client, close_clients

logger = logging.getLogger(__name__)


class S3Bridge:
    """Blocking S3 operations backed by cached async clients on a shared event loop.

    Every call resolves its configuration, fetches or builds the matching
    client from the cache, and runs one request through the runner. Failures
    surface as S3BridgeError subclasses; nothing is retried at this layer.
    """

    def __init__(
        self,
        settings: Optional[ClientSettings] = None,
        cache: Optional[ClientCache] = None,
        runner: Optional[AsyncRunner] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.settings = settings or ClientSettings()
        self.cache = cache if cache is not None else ClientCache()
        self.runner = runner if runner is not None else AsyncRunner()
        self.environ = environ

    def _client(
        self,
        endpoint_url: Optional[str],
        access_key: Optional[str],
        secret_key: Optional[str],
        session_token: Optional[str],
        region: Optional[str],
    ) -> BaseClient:
        s3_config: S3Config = resolve_config(
            endpoint_url=endpoint_url,
            access_key=access_key,
            secret_key=secret_key,
            session_token=session_token,
            region=region,
            environ=self.environ,
        )
        return self.cache.get_or_create(
            s3_config.key,
            lambda: self.runner.run(build_client(s3_config, self.settings)),
        )

    def object_exists(
        self,
        bucket: str,
        key: str,
        endpoint_url: Optional[str] = None,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        session_token: Optional[str] = None,
        region: Optional[str] = None,
    ) -> bool:
        """Return whether s3://bucket/key exists.

        Raises:
            ConfigError: If endpoint or credentials cannot be resolved
            AccessDeniedError: If the credentials may not read the object
            DispatchFailureError: If the backend could not be reached
            BackendError: For any other backend failure
        """
        client = self._client(endpoint_url, access_key, secret_key, session_token, region)
        return self.runner.run(s3.object_exists(client, bucket, key))

    def create_bucket(
        self,
        bucket: str,
        endpoint_url: Optional[str] = None,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        session_token: Optional[str] = None,
        region: Optional[str] = None,
    ) -> bool:
        """Create bucket and return True. An existing bucket raises BackendError."""
        client = self._client(endpoint_url, access_key, secret_key, session_token, region)
        return self.runner.run(s3.create_bucket(client, bucket))

    def put_object(
        self,
        bucket: str,
        key: str,
        data: bytes,
        endpoint_url: Optional[str] = None,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        session_token: Optional[str] = None,
        region: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> str:
        """Store data at s3://bucket/key and return its ETag."""
        client = self._client(endpoint_url, access_key, secret_key, session_token, region)
        return self.runner.run(s3.put_object(client, bucket, key, data, content_type))

    def get_object(
        self,
        bucket: str,
        key: str,
        endpoint_url: Optional[str] = None,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        session_token: Optional[str] = None,
        region: Optional[str] = None,
    ) -> bytes:
        """Return the full contents of s3://bucket/key."""
        client = self._client(endpoint_url, access_key, secret_key, session_token, region)
        return self.runner.run(s3.get_object(client, bucket, key))

    def close(self) -> None:
        """Close every cached client, then stop the event loop."""
        contexts = self.cache.clear()
        if contexts and self.runner.is_running:
            self.runner.run(close_clients(contexts))
        self.runner.close()

    def __enter__(self) -> "S3Bridge":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


_default_bridge: Optional[S3Bridge] = None
_default_lock = threading.Lock()


def get_default_bridge() -> S3Bridge:
    """Return the process-wide bridge used by the module-level functions."""
    global _default_bridge
    if _default_bridge is None:
        with _default_lock:
            if _default_bridge is None:
                _default_bridge = S3Bridge()
                atexit.register(_default_bridge.close)
                logger.debug("Default S3Bridge created")
    return _default_bridge


def object_exists(bucket: str, key: str, **overrides: Optional[str]) -> bool:
    return get_default_bridge().object_exists(bucket, key, **overrides)


def create_bucket(bucket: str, **overrides: Optional[str]) -> bool:
    return get_default_bridge().create_bucket(bucket, **overrides)


def put_object(bucket: str, key: str, data: bytes, **overrides: Optional[str]) -> str:
    return get_default_bridge().put_object(bucket, key, data, **overrides)


def get_object(bucket: str, key: str, **overrides: Optional[str]) -> bytes:
    return get_default_bridge().get_object(bucket, key, **overrides)
