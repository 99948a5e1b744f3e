"""
Replay Engine
=============

Feeds a recorded JSONL event log through a FlagStore.

INVARIANT: Replay is deterministic.
Same log = same final state.

One payload per line. Blank lines are skipped; lines that are not valid
JSON are recorded as rejected payloads and replay continues.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple
import json

from ..contracts.base import Error, ErrorCode
from .engine import DispatchOutcome, FlagStore, FlagStoreConfig
from .state import FlagState


@dataclass(frozen=True)
class ReplayStep:
    line_number: int
    outcome: DispatchOutcome


@dataclass(frozen=True)
class ReplayResult:
    """Final state plus the per-line outcomes that produced it."""
    state: FlagState
    steps: Tuple[ReplayStep, ...] = field(default_factory=tuple)

    @property
    def changed_count(self) -> int:
        return sum(1 for s in self.steps if s.outcome.changed)

    @property
    def rejected_count(self) -> int:
        return sum(1 for s in self.steps if not s.outcome.accepted)


def read_payloads(path: str) -> Iterator[Tuple[int, object, Optional[Error]]]:
    """Yield (line_number, payload, decode_error) for each non-blank line."""
    with open(path, 'r', encoding='utf-8') as f:
        for line_number, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                yield line_number, json.loads(line), None
            except json.JSONDecodeError as e:
                error = Error.create(ErrorCode.MALFORMED_PAYLOAD, f"invalid JSON: {e.msg}")
                yield line_number, None, error.with_context("line", str(line_number))


def replay_into(store: FlagStore, path: str) -> ReplayResult:
    """Dispatch every payload in the log into an existing store."""
    steps: List[ReplayStep] = []
    for line_number, payload, error in read_payloads(path):
        if error is not None:
            store.observability.record_rejection(error)
            outcome = DispatchOutcome(
                accepted=False,
                changed=False,
                state=store.state,
                error_message=error.message
            )
        else:
            outcome = store.dispatch_payload(payload)
        steps.append(ReplayStep(line_number=line_number, outcome=outcome))
    return ReplayResult(state=store.state, steps=tuple(steps))


def replay_file(path: str, config: Optional[FlagStoreConfig] = None) -> ReplayResult:
    """Replay a log into a fresh store starting from the initial state."""
    return replay_into(FlagStore(config), path)
