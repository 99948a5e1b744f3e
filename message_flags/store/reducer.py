"""
Flag Reducer
============

Pure function state transition: apply(state, event) -> state.

GUARANTEES:
===========
1. Total: never raises, malformed input returns `state` unchanged
2. No mutation: the previous state is never modified
3. Identity on no-op: when nothing changes the SAME object is returned,
   so consumers can skip recomputation with an `is` check
4. After every additive transition, wildcard_mentioned is a subset of
   mentioned

This module DOES NOT log or store anything.
"""

from __future__ import annotations
from typing import Dict, Iterable, Mapping, Optional

from ..contracts.base import FlagName, MessageId, parse_flags, parse_message_ids
from ..contracts.events import (
    BulkFetchComplete, FlaggedMessage, FlagOperation, FlagUpdate,
    FullReadResync, NewMessageArrived, Reset
)
from .state import EMPTY, INITIAL_STATE, FlagState, MessageFlagSet


# Newly discovered entries, keyed by flag
Delta = Dict[FlagName, MessageFlagSet]


def combine_mentioned(delta: Mapping[FlagName, MessageFlagSet]) -> Delta:
    """
    Fold wildcard mentions into mentions.

    Returns a new delta; the argument is left untouched.
    """
    combined = dict(delta)
    wildcard = combined.get(FlagName.WILDCARD_MENTIONED)
    if wildcard:
        combined[FlagName.MENTIONED] = combined.get(FlagName.MENTIONED, EMPTY) | wildcard
    return combined


def _with_full_wildcard(state: FlagState, delta: Delta) -> Delta:
    """
    Widen a delta that touches wildcard_mentioned to the whole wildcard
    set, so ids dropped from mentioned by an earlier removal are folded
    back in by combine_mentioned.
    """
    if FlagName.WILDCARD_MENTIONED not in delta:
        return delta
    widened = dict(delta)
    widened[FlagName.WILDCARD_MENTIONED] = state.wildcard_mentioned | delta[FlagName.WILDCARD_MENTIONED]
    return widened


def merge_delta(state: FlagState, delta: Mapping[FlagName, MessageFlagSet]) -> FlagState:
    """
    Union each delta set into the matching flag of `state`.

    Flags absent from the delta keep their existing frozenset. An empty
    delta returns `state` itself.
    """
    if not delta:
        return state
    return state.replacing({
        flag: state.messages(flag) | ids for flag, ids in delta.items()
    })


def add_flags_for_messages(
    state: FlagState,
    messages: Optional[Iterable[MessageId]],
    flags: Optional[Iterable[FlagName]]
) -> FlagState:
    """Set every given flag on every given message id."""
    ids = frozenset(parse_message_ids(messages))
    flag_names = parse_flags(flags)
    if not ids or not flag_names:
        return state

    delta = combine_mentioned(_with_full_wildcard(state, {flag: ids for flag in flag_names}))
    return merge_delta(state, delta)


def remove_flag_for_messages(
    state: FlagState,
    messages: Optional[Iterable[MessageId]],
    flag: Optional[FlagName]
) -> FlagState:
    """Clear one flag on the given ids; other flags are untouched."""
    flag_names = parse_flags([flag])
    ids = frozenset(parse_message_ids(messages))
    if not ids or not flag_names:
        return state

    flag_name = flag_names[0]
    return state.replacing({flag_name: state.messages(flag_name) - ids})


def process_flags_for_messages(
    state: FlagState,
    messages: Optional[Iterable[FlaggedMessage]]
) -> FlagState:
    """
    Merge the flags of fetched messages into `state`.

    Only entries not already recorded are staged. If none are, the
    same state object is returned.
    """
    staged: Dict[FlagName, set] = {}
    for message in messages or ():
        if not isinstance(message, FlaggedMessage):
            continue
        ids = parse_message_ids([message.id])
        if not ids:
            continue
        for flag in parse_flags(message.flags):
            if ids[0] not in state.messages(flag):
                staged.setdefault(flag, set()).add(ids[0])

    if not staged:
        return state

    delta = combine_mentioned(_with_full_wildcard(
        state, {flag: frozenset(ids) for flag, ids in staged.items()}
    ))
    return merge_delta(state, delta)


def _update_message_flags(state: FlagState, event: FlagUpdate) -> FlagState:
    if event.operation is FlagOperation.ADD:
        return add_flags_for_messages(state, event.messages, [event.flag])

    if event.operation is FlagOperation.REMOVE:
        return remove_flag_for_messages(state, event.messages, event.flag)

    return state


def apply(state: FlagState, event: object) -> FlagState:
    """
    Derive the next state from one event.

    Unknown event objects leave the state unchanged.
    """
    if isinstance(event, Reset):
        return INITIAL_STATE

    if isinstance(event, BulkFetchComplete):
        return process_flags_for_messages(state, event.messages)

    if isinstance(event, NewMessageArrived):
        message = event.message
        if not isinstance(message, FlaggedMessage):
            return state
        return add_flags_for_messages(state, [message.id], message.flags)

    if isinstance(event, FullReadResync):
        # Every flag other than read is dropped, not just reset to the server's view.
        return add_flags_for_messages(INITIAL_STATE, event.all_messages, [FlagName.READ])

    if isinstance(event, FlagUpdate):
        return _update_message_flags(state, event)

    return state
