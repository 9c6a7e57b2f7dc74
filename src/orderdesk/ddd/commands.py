"""Command and query: CQRS markers, plus coercion helpers for building them from RPC payloads."""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from orderdesk.rpc.protocol import BadRequestError


@dataclass
class Command:
    """Command: intent to change state. One coordinator operation per command type."""
    pass


@dataclass
class Query:
    """Query: intent to read."""
    pass


def payload_dict(payload: Any) -> Mapping[str, Any]:
    if payload is None:
        return {}
    if not isinstance(payload, Mapping):
        raise BadRequestError("Payload must be a JSON object")
    return payload


def positive_int(value: Any, field: str) -> int:
    # bool is an int subclass; JSON true must not pass as 1.
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise BadRequestError(f"{field} must be a positive integer")
    return value


def required_str(value: Any, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise BadRequestError(f"{field} must be a non-empty string")
    return value
