"""
Contracts Layer

Immutable types shared by every layer: the flag enumeration, the event
union, error/result types and the raw payload mapper.
"""

from .base import (
    FlagName, ALL_FLAGS, MessageId, ErrorCode, Error, Result, Timestamp,
    parse_flags, parse_message_ids
)
from .events import (
    ResetReason, FlagOperation, FlaggedMessage,
    Reset, BulkFetchComplete, NewMessageArrived, FlagUpdate, FullReadResync,
    FlagChangeEvent, FlagEvent, event_kind,
    AuditEventType, AuditLogEntry, MetricPoint
)
from .mapper import map_payload

__all__ = [
    'FlagName', 'ALL_FLAGS', 'MessageId', 'ErrorCode', 'Error', 'Result', 'Timestamp',
    'parse_flags', 'parse_message_ids',
    'ResetReason', 'FlagOperation', 'FlaggedMessage',
    'Reset', 'BulkFetchComplete', 'NewMessageArrived', 'FlagUpdate', 'FullReadResync',
    'FlagChangeEvent', 'FlagEvent', 'event_kind',
    'AuditEventType', 'AuditLogEntry', 'MetricPoint',
    'map_payload',
]
