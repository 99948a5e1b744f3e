"""
Payload to Event Mapper
=======================
Bridges raw server-push payloads (already JSON-decoded) to the typed
event contracts.

Principles:
- Pure: no state, no I/O.
- A payload that names no usable event is a failure Result.
- A payload with partially unusable parts maps to an event with those
  parts dropped; the reducer degrades it to a no-op.
"""

from typing import Any, Dict, Mapping, Optional, Tuple

from .base import (
    Error, ErrorCode, MessageId, Result, parse_flags, parse_message_ids
)
from .events import (
    BulkFetchComplete, FlaggedMessage, FlagOperation, FlagUpdate,
    FullReadResync, NewMessageArrived, Reset, ResetReason
)


# Action type tags as delivered by the event channel
LOGOUT = "LOGOUT"
ACCOUNT_SWITCH = "ACCOUNT_SWITCH"
DEAD_QUEUE = "DEAD_QUEUE"
MESSAGE_FETCH_COMPLETE = "MESSAGE_FETCH_COMPLETE"
EVENT_NEW_MESSAGE = "EVENT_NEW_MESSAGE"
EVENT_UPDATE_MESSAGE_FLAGS = "EVENT_UPDATE_MESSAGE_FLAGS"

_RESET_TAGS: Dict[str, ResetReason] = {
    LOGOUT: ResetReason.LOGOUT,
    ACCOUNT_SWITCH: ResetReason.ACCOUNT_SWITCH,
    DEAD_QUEUE: ResetReason.DEAD_QUEUE,
}


def _failure(code: ErrorCode, message: str, tag: Optional[str] = None) -> Result:
    error = Error.create(code, message)
    if tag is not None:
        error = error.with_context("type", tag)
    return Result.failure(error)


def _map_message(raw: Any) -> Optional[FlaggedMessage]:
    if not isinstance(raw, Mapping):
        return None
    ids = parse_message_ids([raw.get("id")])
    if not ids:
        return None
    return FlaggedMessage(id=ids[0], flags=parse_flags(raw.get("flags")))


def _map_all_message_ids(raw: Any) -> Optional[Tuple[MessageId, ...]]:
    """
    allMessages is keyed by message id. JSON object keys arrive as
    strings, so numeric string keys are accepted here.
    """
    if not isinstance(raw, Mapping):
        return None
    ids = []
    for key in raw:
        if isinstance(key, str) and key.isdecimal() and key.isascii():
            key = int(key)
        ids.append(key)
    return parse_message_ids(ids)


def _map_flag_change(payload: Mapping) -> Result:
    if payload.get("all"):
        ids = _map_all_message_ids(payload.get("allMessages"))
        if ids is None:
            return _failure(
                ErrorCode.MALFORMED_PAYLOAD,
                "full resync without an allMessages mapping",
                EVENT_UPDATE_MESSAGE_FLAGS
            )
        return Result.success(FullReadResync(all_messages=ids))

    operation = None
    for candidate in FlagOperation:
        if payload.get("operation") == candidate.value:
            operation = candidate

    flags = parse_flags([payload.get("flag")])
    return Result.success(FlagUpdate(
        operation=operation,
        flag=flags[0] if flags else None,
        messages=parse_message_ids(payload.get("messages"))
    ))


def map_payload(payload: Any) -> Result:
    """
    Map one raw payload to a FlagEvent.

    Returns Result.success(event) or Result.failure(error).
    """
    if not payload:
        return _failure(ErrorCode.EMPTY_PAYLOAD, "empty payload")
    if not isinstance(payload, Mapping):
        return _failure(ErrorCode.MALFORMED_PAYLOAD, f"payload is {type(payload).__name__}, not an object")

    tag = payload.get("type")
    if not isinstance(tag, str):
        return _failure(ErrorCode.MALFORMED_PAYLOAD, "payload has no type tag")

    if tag in _RESET_TAGS:
        return Result.success(Reset(reason=_RESET_TAGS[tag]))

    if tag == MESSAGE_FETCH_COMPLETE:
        raw_messages = payload.get("messages")
        if not isinstance(raw_messages, (list, tuple)):
            raw_messages = ()
        messages = tuple(
            message for message in (_map_message(raw) for raw in raw_messages)
            if message is not None
        )
        return Result.success(BulkFetchComplete(messages=messages))

    if tag == EVENT_NEW_MESSAGE:
        message = _map_message(payload.get("message"))
        if message is None:
            return _failure(ErrorCode.MISSING_MESSAGE, "new message event without a usable message", tag)
        return Result.success(NewMessageArrived(message=message))

    if tag == EVENT_UPDATE_MESSAGE_FLAGS:
        return _map_flag_change(payload)

    return _failure(ErrorCode.UNKNOWN_EVENT_TYPE, f"unknown event type: {tag}", tag)
