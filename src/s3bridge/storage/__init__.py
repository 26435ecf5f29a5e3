from .client import ClientCache, build_client, close_clients
from . import s3

__all__ = ["ClientCache", "build_client", "close_clients", "s3"]
