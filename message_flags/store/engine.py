"""
Flag Store Orchestration

Holds the current FlagState and serializes events through the reducer.

DESIGN PRINCIPLES:
==================
1. The reducer decides; the store only dispatches
2. Subscribers are notified only when the state object changes identity
3. Every dispatch is traceable through observability
4. Not thread-safe: callers serialize dispatches
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional
import os

from ..contracts.base import FlagName, MessageId, Result
from ..contracts.events import event_kind
from ..contracts.mapper import map_payload
from ..observability import ObservabilityConfig, ObservabilityEngine
from .reducer import apply
from .state import INITIAL_STATE, FlagState


Listener = Callable[[FlagState, FlagState], None]

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass
class FlagStoreConfig:
    """Unified configuration for a flag store."""
    observability: ObservabilityConfig = None

    def __post_init__(self):
        self.observability = self.observability or ObservabilityConfig()

    @staticmethod
    def from_env() -> FlagStoreConfig:
        defaults = ObservabilityConfig()
        return FlagStoreConfig(observability=ObservabilityConfig(
            enable_metrics=_env_flag("MESSAGE_FLAGS_ENABLE_METRICS", defaults.enable_metrics),
            enable_audit=_env_flag("MESSAGE_FLAGS_ENABLE_AUDIT", defaults.enable_audit),
            max_audit_entries=_env_int("MESSAGE_FLAGS_MAX_AUDIT_ENTRIES", defaults.max_audit_entries),
        ))


@dataclass(frozen=True)
class DispatchOutcome:
    """What one dispatch did."""
    accepted: bool
    changed: bool
    state: FlagState
    kind: Optional[str] = None
    error_message: Optional[str] = None


class FlagStore:
    """
    Stateful wrapper around the pure reducer.

    LAYER FLOW:
    ===========
    raw payload -> mapper -> event -> reducer -> new state -> listeners
    """

    def __init__(
        self,
        config: Optional[FlagStoreConfig] = None,
        initial_state: FlagState = INITIAL_STATE
    ):
        self._config = config or FlagStoreConfig()
        self._observability = ObservabilityEngine(self._config.observability)
        self._state = initial_state
        self._listeners: List[Listener] = []

    @property
    def state(self) -> FlagState:
        return self._state

    @property
    def observability(self) -> ObservabilityEngine:
        return self._observability

    def get(self, flag: FlagName, message_id: MessageId) -> bool:
        return self._state.get(flag, message_id)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register listener(previous, current).

        Returns a callable that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, event: object) -> DispatchOutcome:
        """Run one event through the reducer and publish the result."""
        previous = self._state
        current = apply(previous, event)
        changed = current is not previous
        kind = event_kind(event)

        self._state = current
        self._observability.record_transition(kind, changed)

        if changed:
            for listener in list(self._listeners):
                listener(previous, current)

        return DispatchOutcome(accepted=True, changed=changed, state=current, kind=kind)

    def dispatch_payload(self, payload: Any) -> DispatchOutcome:
        """Map a raw payload and dispatch it; unmappable payloads are recorded and dropped."""
        result: Result = map_payload(payload)
        if result.is_failure:
            self._observability.record_rejection(result.error)
            return DispatchOutcome(
                accepted=False,
                changed=False,
                state=self._state,
                error_message=result.error.message
            )
        return self.dispatch(result.value)

    def dispatch_all(self, payloads: Iterable[Any]) -> List[DispatchOutcome]:
        return [self.dispatch_payload(payload) for payload in payloads]
