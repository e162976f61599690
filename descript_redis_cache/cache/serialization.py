"""
Cached payload serialization.

Values are persisted as compact UTF-8 JSON text. A cache instance uses one
projection policy for every value it writes:

- ``verbatim``: the whole value is persisted.
- ``http_response``: only ``status_code``, ``headers`` and ``result`` are
  persisted; any other field of the value is dropped before encoding.

Mixing policies within one keyspace would break the encode/decode round
trip, which is why the policy is fixed per instance.
"""

import json
from collections.abc import Mapping
from typing import Any, Union

import httpx

from descript_redis_cache.cache.errors import JSONParsingError, JSONStringifyError
from descript_redis_cache.core.config import SerializationPolicy

HTTP_RESPONSE_FIELDS = ("status_code", "headers", "result")

_MISSING = object()


def http_response_payload(response: httpx.Response) -> dict[str, Any]:
    """
    Build the cacheable shape of an HTTP response.

    Args:
        response: Completed httpx response

    Returns:
        Dictionary with ``status_code``, ``headers`` and ``result`` (body text)
    """
    return {
        "status_code": response.status_code,
        "headers": dict(response.headers),
        "result": response.text,
    }


class CacheSerializer:
    """Encode values for the store and decode stored payloads."""

    def __init__(self, policy: SerializationPolicy = SerializationPolicy.VERBATIM):
        self.policy = SerializationPolicy(policy)

    def project(self, value: Any) -> Any:
        """
        Apply the configured projection policy.

        Args:
            value: Value handed to the cache

        Returns:
            The value as it will be persisted

        Raises:
            JSONStringifyError: If an HTTP response value exposes none of the
                persisted fields
        """
        if self.policy is SerializationPolicy.VERBATIM:
            return value

        if isinstance(value, httpx.Response):
            return http_response_payload(value)

        projected = {}
        for field in HTTP_RESPONSE_FIELDS:
            if isinstance(value, Mapping):
                field_value = value.get(field, _MISSING)
            else:
                field_value = getattr(value, field, _MISSING)
            if field_value is not _MISSING:
                projected[field] = field_value

        if not projected:
            raise JSONStringifyError(
                "value has none of the HTTP response fields",
                value_type=type(value).__name__,
            )
        return projected

    def encode(self, value: Any) -> str:
        """
        Project and encode a value as JSON text.

        Args:
            value: Value to persist

        Returns:
            JSON text

        Raises:
            JSONStringifyError: If the value is not JSON serializable
                (circular references, unsupported types, NaN/Infinity)
        """
        projected = self.project(value)
        try:
            return json.dumps(
                projected,
                separators=(",", ":"),
                ensure_ascii=False,
                allow_nan=False,
            )
        except (TypeError, ValueError, RecursionError) as e:
            raise JSONStringifyError(str(e), value_type=type(value).__name__) from e

    def decode(self, payload: Union[bytes, str]) -> Any:
        """
        Decode a stored payload.

        Args:
            payload: Raw value returned by the store

        Returns:
            Decoded value

        Raises:
            JSONParsingError: If the payload is not valid UTF-8 JSON or nests too deeply
        """
        try:
            if isinstance(payload, bytes):
                payload = payload.decode("utf-8")
            return json.loads(payload)
        except (ValueError, RecursionError) as e:
            raise JSONParsingError(str(e)) from e
