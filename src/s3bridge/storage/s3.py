"""Single-request S3 operations and their failure classification.

Each coroutine issues exactly one request on an already-built client and
either returns the operation's value or raises a classified S3BridgeError
chained to the original botocore/aiohttp exception.
"""

import logging
from typing import Optional

import aiohttp
from botocore.client import BaseClient
from botocore.exceptions import BotoCoreError, ClientError

from ..constants import ACCESS_DENIED_CODES, NOT_FOUND_CODES
from ..errors import (
    AccessDeniedError,
    BackendError,
    DispatchFailureError,
    NotFoundError,
    S3BridgeError,
    describe,
    error_code,
    error_message,
    is_dispatch_failure,
)

logger = logging.getLogger(__name__)


def _is_not_found(exc: ClientError) -> bool:
    code = error_code(exc)
    if code in NOT_FOUND_CODES:
        return True
    text = f"{code} {error_message(exc)}"
    return any(marker in text for marker in NOT_FOUND_CODES)


def classify_error(
    exc: Exception,
    operation: str,
    bucket: str,
    key: Optional[str] = None,
) -> S3BridgeError:
    """Map a failed request to a dispatch failure or a backend error."""
    message = describe(exc, operation, bucket=bucket, key=key)
    if is_dispatch_failure(exc):
        return DispatchFailureError(message)
    return BackendError(message)


def classify_head_error(exc: Exception, bucket: str, key: str) -> S3BridgeError:
    """Map a failed HeadObject, separating absence and permission failures."""
    if isinstance(exc, ClientError):
        if _is_not_found(exc):
            return NotFoundError(f"s3://{bucket}/{key} not found")
        if error_code(exc) in ACCESS_DENIED_CODES:
            return AccessDeniedError(
                f"AccessDenied for s3://{bucket}/{key} (check credentials/policy)"
            )
    return classify_error(exc, "HeadObject", bucket, key)


async def object_exists(s3: BaseClient, bucket: str, key: str) -> bool:
    """Return True if the object exists; a missing object is False, not an error."""
    try:
        await s3.head_object(Bucket=bucket, Key=key)
        return True
    except (ClientError, BotoCoreError) as e:
        error = classify_head_error(e, bucket, key)
        if isinstance(error, NotFoundError):
            logger.debug(f"Object not found: s3://{bucket}/{key}")
            return False
        logger.error(f"HeadObject error: {error}")
        raise error from e


async def create_bucket(s3: BaseClient, bucket: str) -> bool:
    """Create bucket. An already existing bucket is reported as a backend error."""
    try:
        await s3.create_bucket(Bucket=bucket)
    except (ClientError, BotoCoreError) as e:
        error = classify_error(e, "CreateBucket", bucket)
        logger.error(f"{error}")
        raise error from e

    logger.info(f"Created bucket '{bucket}'")
    return True


async def put_object(
    s3: BaseClient,
    bucket: str,
    key: str,
    data: bytes,
    content_type: Optional[str] = None,
) -> str:
    """Upload data and return the object's ETag without surrounding quotes."""
    params = {"Bucket": bucket, "Key": key, "Body": bytes(data)}
    if content_type is not None:
        params["ContentType"] = content_type

    try:
        response = await s3.put_object(**params)
    except (ClientError, BotoCoreError) as e:
        error = classify_error(e, "PutObject", bucket, key)
        logger.error(f"{error}")
        raise error from e

    etag = (response.get("ETag") or "").strip('"')
    logger.debug(f"Uploaded s3://{bucket}/{key} ({len(data)} bytes, etag={etag})")
    return etag


async def get_object(s3: BaseClient, bucket: str, key: str) -> bytes:
    """Download the whole object body into one bytes value."""
    try:
        response = await s3.get_object(Bucket=bucket, Key=key)
    except (ClientError, BotoCoreError) as e:
        error = classify_error(e, "GetObject", bucket, key)
        logger.error(f"{error}")
        raise error from e

    try:
        async with response["Body"] as stream:
            data = await stream.read()
    except (BotoCoreError, aiohttp.ClientError, OSError) as e:
        error = BackendError(describe(e, "GetObject collect", bucket=bucket, key=key))
        logger.error(f"{error}")
        raise error from e

    logger.debug(f"Downloaded s3://{bucket}/{key} ({len(data)} bytes)")
    return data
