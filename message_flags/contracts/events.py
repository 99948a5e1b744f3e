"""
Event Contracts

Every input the flag store accepts, as a closed set of frozen dataclasses,
plus the audit/metric records produced around dispatch.

EVENT KINDS:
============
- Reset              session teardown (logout, account switch, dead queue)
- BulkFetchComplete  historical fetch of many messages
- NewMessageArrived  live push of one message
- FlagChangeEvent    live push of a flag change, in one of two forms:
    - FlagUpdate       add/remove one flag on a list of ids
    - FullReadResync   server asserts the complete read-state
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Tuple, Union
from enum import Enum

from .base import FlagName, MessageId, Timestamp


# =============================================================================
# INPUT EVENTS
# =============================================================================

class ResetReason(Enum):
    """Session teardown signals that discard all flag data."""
    LOGOUT = "logout"
    ACCOUNT_SWITCH = "account_switch"
    DEAD_QUEUE = "dead_queue"


class FlagOperation(Enum):
    """Operations carried by a FlagUpdate."""
    ADD = "add"
    REMOVE = "remove"


@dataclass(frozen=True)
class FlaggedMessage:
    """A message as seen by the store: its id and the flags it carries."""
    id: MessageId
    flags: Tuple[FlagName, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Reset:
    reason: ResetReason = ResetReason.LOGOUT


@dataclass(frozen=True)
class BulkFetchComplete:
    messages: Tuple[FlaggedMessage, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class NewMessageArrived:
    message: FlaggedMessage


@dataclass(frozen=True)
class FlagUpdate:
    """
    Add or remove one flag on a set of messages.

    operation and flag are None when the server sent something this
    store does not recognize; the reducer treats that as a no-op.
    """
    operation: Optional[FlagOperation]
    flag: Optional[FlagName]
    messages: Tuple[MessageId, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class FullReadResync:
    """
    The `all: true` form of a flag change.

    all_messages holds every currently known message id; only the ids
    matter to the store.
    """
    all_messages: Tuple[MessageId, ...] = field(default_factory=tuple)


FlagChangeEvent = Union[FlagUpdate, FullReadResync]

FlagEvent = Union[Reset, BulkFetchComplete, NewMessageArrived, FlagUpdate, FullReadResync]


def event_kind(event: object) -> str:
    """Stable label for an event, used by audit and metrics."""
    if isinstance(event, Reset):
        return f"reset:{event.reason.value}"
    if isinstance(event, BulkFetchComplete):
        return "bulk_fetch_complete"
    if isinstance(event, NewMessageArrived):
        return "new_message"
    if isinstance(event, FullReadResync):
        return "full_read_resync"
    if isinstance(event, FlagUpdate):
        op = event.operation.value if event.operation else "unknown"
        return f"flag_update:{op}"
    return "unknown"


# =============================================================================
# OBSERVABILITY RECORDS
# =============================================================================

class AuditEventType(Enum):
    """Explicit audit event types."""
    STATE_CHANGE = "state_change"
    NO_OP = "no_op"
    ERROR = "error"
    SYSTEM = "system"


@dataclass(frozen=True)
class AuditLogEntry:
    """Immutable audit log entry."""
    entry_id: str
    event_type: AuditEventType
    timestamp: Timestamp
    sequence: int
    action: str
    metadata: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "entry_id": self.entry_id,
            "event_type": self.event_type.value,
            "timestamp": self.timestamp.to_iso(),
            "sequence": self.sequence,
            "action": self.action,
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class MetricPoint:
    """Immutable metric data point."""
    metric_name: str
    value: float
    timestamp: Timestamp
    labels: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)
