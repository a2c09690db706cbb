"""Tests for the Lambda invoker."""

import io
import json
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from albumcast.classifiers.invoker import LambdaInvoker
from albumcast.errors import RetryableInfraError


def _response(payload: bytes, function_error: str = None) -> dict:
    response = {"StatusCode": 200, "Payload": io.BytesIO(payload)}
    if function_error:
        response["FunctionError"] = function_error
    return response


def test_invoke_request_response():
    client = MagicMock()
    client.invoke.return_value = _response(b'{"statusCode": 200, "body": "[]"}')

    raw = LambdaInvoker(client=client).invoke("face-recognition", {"Records": []})

    assert json.loads(raw)["statusCode"] == 200
    kwargs = client.invoke.call_args.kwargs
    assert kwargs["FunctionName"] == "face-recognition"
    assert kwargs["InvocationType"] == "RequestResponse"
    assert json.loads(kwargs["Payload"]) == {"Records": []}


def test_function_error_is_retryable():
    client = MagicMock()
    client.invoke.return_value = _response(b'{"errorMessage": "boom"}', function_error="Unhandled")

    with pytest.raises(RetryableInfraError):
        LambdaInvoker(client=client).invoke("blur-detection", {})


def test_client_error_is_retryable():
    client = MagicMock()
    client.invoke.side_effect = ClientError(
        {"Error": {"Code": "TooManyRequestsException", "Message": "Rate exceeded"}}, "Invoke"
    )

    with pytest.raises(RetryableInfraError):
        LambdaInvoker(client=client).invoke("blur-detection", {})


def test_empty_payload_is_retryable():
    client = MagicMock()
    client.invoke.return_value = _response(b"")

    with pytest.raises(RetryableInfraError):
        LambdaInvoker(client=client).invoke("duplicate-detection", {})
