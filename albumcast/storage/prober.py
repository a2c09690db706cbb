"""Object availability probing.

Uploads go straight from clients to object storage, so an upload event can
arrive before the object is visible. A probe answers "is it there yet?".
"Not found" is a normal False; every other failure raises.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from albumcast.errors import RetryableInfraError

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


class ObjectProber(ABC):
    """Checks whether an object is visible in backing storage."""

    @abstractmethod
    def exists(self, bucket: str, key: str) -> bool:
        """Return True if the object is visible, False if not found.

        Raises:
            RetryableInfraError: On any failure other than "not found"
        """


class S3ObjectProber(ObjectProber):
    """Probe S3-compatible storage with HEAD requests. No internal retry."""

    def __init__(
        self,
        client: Any = None,
        region: Optional[str] = None,
        endpoint_url: Optional[str] = None,
    ) -> None:
        """Initialize the prober.

        Args:
            client: Existing boto3 S3 client (created from region/endpoint if omitted)
            region: AWS region (optional, uses boto3 default if not set)
            endpoint_url: Custom endpoint for MinIO/compatible storage
        """
        if client is None:
            kwargs: dict = {}
            if region:
                kwargs["region_name"] = region
            if endpoint_url:
                kwargs["endpoint_url"] = endpoint_url
            client = boto3.client("s3", **kwargs)
        self._s3 = client

    def exists(self, bucket: str, key: str) -> bool:
        try:
            self._s3.head_object(Bucket=bucket, Key=key)
            return True
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in _NOT_FOUND_CODES:
                return False
            logger.error(f"Storage check error for {bucket}/{key}: {e}")
            raise RetryableInfraError(f"HEAD {bucket}/{key} failed: {e}") from e
        except BotoCoreError as e:
            logger.error(f"Storage check error for {bucket}/{key}: {e}")
            raise RetryableInfraError(f"HEAD {bucket}/{key} failed: {e}") from e
