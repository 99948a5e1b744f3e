"""
Flag State
==========

Immutable per-message flag state.

INVARIANTS:
- One field per FlagName, always present (possibly empty)
- Each field is a frozenset of message ids: presence means "set"
- Values are never mutated; transitions build new FlagState values
  and share unchanged frozensets with the previous value
"""

from __future__ import annotations
from dataclasses import dataclass, fields
from typing import Dict, FrozenSet, List, Mapping

from ..contracts.base import ALL_FLAGS, FlagName, MessageId


MessageFlagSet = FrozenSet[MessageId]

EMPTY: MessageFlagSet = frozenset()


@dataclass(frozen=True)
class FlagState:
    """
    Complete flag state for a session.

    Field names are the FlagName values, so `state.read` and
    `state.messages(FlagName.READ)` address the same set.
    """
    read: MessageFlagSet = EMPTY
    starred: MessageFlagSet = EMPTY
    collapsed: MessageFlagSet = EMPTY
    mentioned: MessageFlagSet = EMPTY
    wildcard_mentioned: MessageFlagSet = EMPTY
    summarize_in_home: MessageFlagSet = EMPTY
    summarize_in_stream: MessageFlagSet = EMPTY
    force_expand: MessageFlagSet = EMPTY
    force_collapse: MessageFlagSet = EMPTY
    has_alert_word: MessageFlagSet = EMPTY
    historical: MessageFlagSet = EMPTY
    is_me_message: MessageFlagSet = EMPTY

    def messages(self, flag: FlagName) -> MessageFlagSet:
        """Ids carrying the given flag; empty for names outside FlagName."""
        parsed = FlagName.parse(flag)
        if parsed is None:
            return EMPTY
        return getattr(self, parsed.value)

    def get(self, flag: FlagName, message_id: MessageId) -> bool:
        return message_id in self.messages(flag)

    def flags_for(self, message_id: MessageId) -> List[FlagName]:
        """Every flag set on one message, in enumeration order."""
        return [flag for flag in ALL_FLAGS if message_id in self.messages(flag)]

    def to_dict(self) -> Dict[str, List[MessageId]]:
        """Plain view for display: {flag name: sorted ids}."""
        return {f.name: sorted(getattr(self, f.name)) for f in fields(self)}

    def replacing(self, sets: Mapping[FlagName, MessageFlagSet]) -> FlagState:
        """New state with the given flag sets swapped in."""
        if not sets:
            return self
        return FlagState(**{
            f.name: sets.get(FlagName(f.name), getattr(self, f.name))
            for f in fields(self)
        })


INITIAL_STATE = FlagState()


def get(state: FlagState, flag: FlagName, message_id: MessageId) -> bool:
    """Read-only membership query used by rendering consumers."""
    return state.get(flag, message_id)
