"""Invocation of external classification functions."""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from albumcast.errors import RetryableInfraError

logger = logging.getLogger(__name__)


class FunctionInvoker(ABC):
    """Synchronously invokes a named function with a JSON payload."""

    @abstractmethod
    def invoke(self, function_name: str, payload: Dict[str, Any]) -> str:
        """Invoke the function and return its raw response payload.

        Raises:
            RetryableInfraError: If the invocation itself fails
        """


class LambdaInvoker(FunctionInvoker):
    """Invoke AWS Lambda functions with RequestResponse semantics."""

    def __init__(self, client: Any = None, region: Optional[str] = None) -> None:
        if client is None:
            kwargs: dict = {}
            if region:
                kwargs["region_name"] = region
            client = boto3.client("lambda", **kwargs)
        self._lambda = client

    def invoke(self, function_name: str, payload: Dict[str, Any]) -> str:
        try:
            response = self._lambda.invoke(
                FunctionName=function_name,
                InvocationType="RequestResponse",
                Payload=json.dumps(payload).encode("utf-8"),
            )
        except (ClientError, BotoCoreError) as e:
            raise RetryableInfraError(f"Invoking {function_name} failed: {e}") from e

        stream = response.get("Payload")
        raw = stream.read() if stream is not None else b""
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")

        if response.get("FunctionError"):
            raise RetryableInfraError(
                f"{function_name} raised {response['FunctionError']}: {raw[:500]}"
            )
        if not raw:
            raise RetryableInfraError(f"{function_name} returned an empty payload")

        logger.debug(f"{function_name} responded with {len(raw)} bytes")
        return raw
