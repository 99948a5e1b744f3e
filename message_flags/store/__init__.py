"""
Flag Store Layer
================

Immutable flag state and the pure reducer that advances it.

INVARIANTS:
- State is only ever replaced, never mutated
- No-op transitions return the same state object
- wildcard_mentioned is absorbed into mentioned on additive transitions

Modules:
- state: FlagState value and membership query
- reducer: apply(state, event) and its merge helpers
- engine: FlagStore dispatch wrapper
- replay: JSONL event log replay
"""

from .state import FlagState, INITIAL_STATE, MessageFlagSet, get
from .reducer import apply, combine_mentioned, merge_delta
from .engine import FlagStore, FlagStoreConfig, DispatchOutcome
from .replay import ReplayResult, ReplayStep, replay_file, replay_into

__all__ = [
    'FlagState',
    'INITIAL_STATE',
    'MessageFlagSet',
    'get',
    'apply',
    'combine_mentioned',
    'merge_delta',
    'FlagStore',
    'FlagStoreConfig',
    'DispatchOutcome',
    'ReplayResult',
    'ReplayStep',
    'replay_file',
    'replay_into',
]
