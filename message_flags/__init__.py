"""
Message Flags Store

Tracks per-message boolean flags (read, starred, mentioned, ...) for a
chat client, reconciling historical fetches, live new-message events and
live flag-change events into one consistent, immutable state.

LAYER STRUCTURE:
================

1. CONTRACTS (contracts/)
   - Flag enumeration, typed events, Error/Result, raw payload mapper
   - MUST NOT: hold state

2. STORE (store/)
   - FlagState value, pure reducer apply(state, event), FlagStore dispatch
   - MUST NOT: mutate a published state, raise on malformed events

3. OBSERVABILITY (observability/)
   - Audit log of dispatches, metrics counters
   - MUST NOT: influence transitions

4. API (api/)
   - FastAPI surface: membership queries and event ingest over a FlagStore

5. FORENSIC CLI (forensic.py)
   - Replay JSONL event logs through the reducer and inspect the result
"""

from .contracts import (
    FlagName, ALL_FLAGS, Reset, ResetReason, BulkFetchComplete,
    NewMessageArrived, FlaggedMessage, FlagUpdate, FlagOperation,
    FullReadResync, map_payload
)
from .store import FlagState, INITIAL_STATE, FlagStore, FlagStoreConfig, apply, get

__version__ = "0.1.0"

__all__ = [
    'FlagName', 'ALL_FLAGS', 'Reset', 'ResetReason', 'BulkFetchComplete',
    'NewMessageArrived', 'FlaggedMessage', 'FlagUpdate', 'FlagOperation',
    'FullReadResync', 'map_payload',
    'FlagState', 'INITIAL_STATE', 'FlagStore', 'FlagStoreConfig', 'apply', 'get',
]
