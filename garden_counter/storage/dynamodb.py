"""DynamoDB implementation of CounterBackend.

DynamoDB usually answers in single-digit milliseconds, while the SDK
defaults allow connect/read waits of a minute and have no overall operation
deadline. A connection that stalls mid-response could then hang a request
indefinitely, so every call here runs under short botocore timeouts, a
small number of transport retries, and an asyncio deadline on top.

Transport retries are botocore's business; they are independent of the
optimistic-locking attempts made by ``CounterStore``.
"""

from __future__ import annotations

import asyncio
from typing import Any

import boto3
import structlog
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from garden_counter.core.errors import BackendUnavailable, CodecError, PreconditionFailed
from garden_counter.storage.base import COUNT_ATTR, KEY_ATTR, VALUE_ATTR, Precondition

log = structlog.get_logger()


def make_client(
    region: str | None = None,
    connect_timeout_ms: int = 100,
    read_timeout_ms: int = 100,
    transport_max_attempts: int = 2,
) -> Any:
    """Build a boto3 DynamoDB client tuned for low-latency single-item calls."""
    config = Config(
        connect_timeout=connect_timeout_ms / 1000,
        read_timeout=read_timeout_ms / 1000,
        retries={"mode": "standard", "max_attempts": transport_max_attempts},
    )
    return boto3.client("dynamodb", region_name=region or None, config=config)


def _from_attribute_values(key: str, raw: dict[str, Any]) -> dict[str, Any]:
    """Convert a DynamoDB item into plain Python values."""
    item: dict[str, Any] = {}
    for name, attr in raw.items():
        if name == KEY_ATTR:
            item[name] = attr.get("S")
        elif name == COUNT_ATTR:
            if "N" not in attr:
                raise CodecError(f"counter {key!r}: count is not a number")
            try:
                item[name] = int(attr["N"])
            except ValueError as exc:
                raise CodecError(f"counter {key!r}: failed to parse count") from exc
        elif name == VALUE_ATTR:
            if "B" not in attr:
                raise CodecError(f"counter {key!r}: value is not binary")
            item[name] = bytes(attr["B"])
    return item


class DynamoCounterBackend:
    """CounterBackend for a DynamoDB table with a string partition key named ``key``."""

    def __init__(self, client: Any, table_name: str, operation_timeout_ms: int = 200) -> None:
        self._client = client
        self._table_name = table_name
        self._operation_timeout = operation_timeout_ms / 1000

    async def _call(self, operation: str, **kwargs: Any) -> dict[str, Any]:
        """Run one client call in a worker thread under the operation deadline.

        The deadline only stops waiting: the worker thread is not cancelled, so
        a put_item that times out here may still be applied by DynamoDB after
        BackendUnavailable has been raised. The next increment sees that write
        through the count precondition.
        """
        method = getattr(self._client, operation)
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(method, TableName=self._table_name, **kwargs),
                timeout=self._operation_timeout,
            )
        except asyncio.TimeoutError as exc:
            log.warning("dynamodb_timeout", operation=operation,
                        timeout_s=self._operation_timeout)
            raise BackendUnavailable(f"{operation} timed out") from exc
        except ClientError as exc:
            if exc.response["Error"]["Code"] == "ConditionalCheckFailedException":
                raise PreconditionFailed(str(exc)) from exc
            raise BackendUnavailable(str(exc)) from exc
        except BotoCoreError as exc:
            raise BackendUnavailable(str(exc)) from exc

    async def get_item(self, key: str) -> dict[str, Any] | None:
        response = await self._call("get_item", Key={KEY_ATTR: {"S": key}})
        raw = response.get("Item")
        if raw is None:
            return None
        return _from_attribute_values(key, raw)

    async def put_item(self, key: str, item: dict[str, Any], precondition: Precondition) -> None:
        kwargs: dict[str, Any] = {
            "Item": {
                KEY_ATTR: {"S": key},
                COUNT_ATTR: {"N": str(item[COUNT_ATTR])},
                VALUE_ATTR: {"B": item[VALUE_ATTR]},
            },
        }
        if precondition.expected_count is None:
            kwargs["ConditionExpression"] = "attribute_not_exists(#k)"
            kwargs["ExpressionAttributeNames"] = {"#k": KEY_ATTR}
        else:
            kwargs["ConditionExpression"] = "#c = :count"
            kwargs["ExpressionAttributeNames"] = {"#c": COUNT_ATTR}
            kwargs["ExpressionAttributeValues"] = {
                ":count": {"N": str(precondition.expected_count)},
            }
        await self._call("put_item", **kwargs)
