"""
Base Contracts and Shared Types

These are the foundational types used across all layers.
All types here are IMMUTABLE and represent pure data.

BOUNDARY ENFORCEMENT:
=====================
- This module is READ-ONLY from all layers
- Layers may import types but MUST NOT modify this module
- All types are frozen dataclasses or enums for immutability guarantee
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Optional, Tuple
from enum import Enum, auto


# Message ids are server-assigned positive integers
MessageId = int


# =============================================================================
# FLAG ENUMERATION (Fixed cardinality, public contract)
# =============================================================================

class FlagName(str, Enum):
    """
    Every per-message flag the store tracks.

    The member set is a public contract: adding or removing a member
    changes the shape of FlagState.
    """
    READ = "read"
    STARRED = "starred"
    COLLAPSED = "collapsed"
    MENTIONED = "mentioned"
    WILDCARD_MENTIONED = "wildcard_mentioned"
    SUMMARIZE_IN_HOME = "summarize_in_home"
    SUMMARIZE_IN_STREAM = "summarize_in_stream"
    FORCE_EXPAND = "force_expand"
    FORCE_COLLAPSE = "force_collapse"
    HAS_ALERT_WORD = "has_alert_word"
    HISTORICAL = "historical"
    IS_ME_MESSAGE = "is_me_message"

    @staticmethod
    def parse(value: object) -> Optional[FlagName]:
        """Map a raw flag name to a member, or None if it is not tracked."""
        if isinstance(value, FlagName):
            return value
        try:
            return FlagName(value)
        except (ValueError, TypeError):
            return None


ALL_FLAGS: Tuple[FlagName, ...] = tuple(FlagName)


def parse_flags(values: Optional[Iterable[object]]) -> Tuple[FlagName, ...]:
    """Keep only tracked flag names, preserving order and dropping repeats."""
    if not values or isinstance(values, (str, bytes)):
        return ()
    flags = []
    for value in values:
        flag = FlagName.parse(value)
        if flag is not None and flag not in flags:
            flags.append(flag)
    return tuple(flags)


def parse_message_ids(values: Optional[Iterable[object]]) -> Tuple[MessageId, ...]:
    """Keep only positive integer ids (bools and numeric strings rejected)."""
    if not values or isinstance(values, (str, bytes, dict)):
        return ()
    return tuple(
        value for value in values
        if isinstance(value, int) and not isinstance(value, bool) and value > 0
    )


# =============================================================================
# ERROR STATES (Explicit, never silent)
# =============================================================================

class ErrorCode(Enum):
    """
    Error codes for payloads that cannot be mapped to any event.
    Partially usable payloads are NOT errors; they degrade to no-ops.
    """
    EMPTY_PAYLOAD = auto()
    MALFORMED_PAYLOAD = auto()
    UNKNOWN_EVENT_TYPE = auto()
    MISSING_MESSAGE = auto()


@dataclass(frozen=True)
class Timestamp:
    """
    Immutable timestamp with explicit semantics.
    All timestamps are UTC, never local time.
    """
    value: datetime

    def __post_init__(self):
        if self.value.tzinfo is None:
            object.__setattr__(self, 'value', self.value.replace(tzinfo=timezone.utc))

    @staticmethod
    def now() -> Timestamp:
        return Timestamp(value=datetime.now(timezone.utc))

    def to_iso(self) -> str:
        return self.value.isoformat().replace('+00:00', 'Z')


@dataclass(frozen=True)
class Error:
    """
    Immutable error representation with full context.
    Errors are data, not exceptions - they can be stored and queried.
    """
    code: ErrorCode
    message: str
    timestamp: Timestamp
    context: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    @staticmethod
    def create(code: ErrorCode, message: str) -> Error:
        return Error(code=code, message=message, timestamp=Timestamp.now())

    def with_context(self, key: str, value: str) -> Error:
        """Return new Error with additional context (immutable)."""
        return Error(
            code=self.code,
            message=self.message,
            timestamp=self.timestamp,
            context=self.context + ((key, value),)
        )


@dataclass(frozen=True)
class Result:
    """
    Generic result type for operations that can fail.
    Either contains a value OR an error, never both.
    """
    value: Optional[object] = None
    error: Optional[Error] = None

    @property
    def is_success(self) -> bool:
        return self.error is None

    @property
    def is_failure(self) -> bool:
        return self.error is not None

    @staticmethod
    def success(value: object) -> Result:
        return Result(value=value, error=None)

    @staticmethod
    def failure(error: Error) -> Result:
        return Result(value=None, error=error)
