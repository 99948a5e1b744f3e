"""
API Mapper
==========

Transforms store values into JSON-ready DTOs.
Ids are emitted sorted so identical states serialize identically.
"""
from typing import Any, Dict, List

from ..contracts.base import FlagName, MessageId
from ..contracts.events import AuditLogEntry
from ..store.state import FlagState


def map_state_to_dto(state: FlagState) -> Dict[str, Any]:
    """Map a FlagState to {"flags": {name: [ids]}, "counts": {name: n}}."""
    flags = state.to_dict()
    return {
        "flags": flags,
        "counts": {name: len(ids) for name, ids in flags.items()},
    }


def map_flag_to_dto(state: FlagState, flag: FlagName) -> Dict[str, Any]:
    ids: List[MessageId] = sorted(state.messages(flag))
    return {"flag": flag.value, "messages": ids, "count": len(ids)}


def map_membership_to_dto(state: FlagState, flag: FlagName, message_id: MessageId) -> Dict[str, Any]:
    return {"flag": flag.value, "message_id": message_id, "set": state.get(flag, message_id)}


def map_audit_to_dto(entries: List[AuditLogEntry]) -> Dict[str, Any]:
    return {"entries": [entry.to_dict() for entry in entries]}
