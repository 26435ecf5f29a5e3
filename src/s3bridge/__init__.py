from .bridge import (
    S3Bridge,
    create_bucket,
    get_default_bridge,
    get_object,
    object_exists,
    put_object,
)
from .config import normalize_endpoint, resolve_config
from .errors import (
    AccessDeniedError,
    BackendError,
    ConfigError,
    DispatchFailureError,
    ErrorKind,
    NotFoundError,
    S3BridgeError,
)
from .models import ClientKey, ClientSettings, S3Config

__version__ = "0.1.0"
__all__ = [
    "S3Bridge",
    "get_default_bridge",
    "object_exists",
    "create_bucket",
    "put_object",
    "get_object",
    "normalize_endpoint",
    "resolve_config",
    "ErrorKind",
    "S3BridgeError",
    "ConfigError",
    "NotFoundError",
    "AccessDeniedError",
    "DispatchFailureError",
    "BackendError",
    "ClientKey",
    "ClientSettings",
    "S3Config",
]
