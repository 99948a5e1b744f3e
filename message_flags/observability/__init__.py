"""
Observability & Audit Layer

RESPONSIBILITY: Audit log of dispatched events, metrics counters
ALLOWED INPUTS: Events and transition outcomes reported by the FlagStore
OUTPUTS: AuditLogEntry records, MetricPoint series

WHAT THIS LAYER MUST NOT DO:
============================
- Modify store behavior
- Hold references to FlagState values
- Make decisions based on logged data

The reducer never reports here directly; the FlagStore reports on its
behalf after each transition.
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Optional, Tuple
from enum import Enum
import hashlib

from ..contracts.base import Error, Timestamp
from ..contracts.events import AuditEventType, AuditLogEntry, MetricPoint


# =============================================================================
# LOG COLLECTOR
# =============================================================================

class LogCollector:
    """
    Append-only audit collector.

    Entries are never modified. When max_entries is reached the oldest
    entries are dropped; sequence numbers keep counting.
    """

    def __init__(self, layer_name: str, max_entries: Optional[int] = None):
        self._layer_name = layer_name
        self._entries: Deque[AuditLogEntry] = deque(maxlen=max_entries)
        self._sequence: int = 0

    def next_sequence(self) -> int:
        self._sequence += 1
        return self._sequence

    def collect(self, entry: AuditLogEntry):
        """Collect an audit entry (append-only)."""
        self._entries.append(entry)

    def get_entries(
        self,
        event_type: Optional[AuditEventType] = None,
        limit: Optional[int] = None
    ) -> List[AuditLogEntry]:
        """Get entries, optionally filtered, oldest first."""
        entries = list(self._entries)

        if event_type:
            entries = [e for e in entries if e.event_type == event_type]

        if limit is not None:
            entries = entries[-limit:] if limit > 0 else []

        return entries

    @property
    def layer_name(self) -> str:
        return self._layer_name

    @property
    def entry_count(self) -> int:
        return len(self._entries)


# =============================================================================
# METRICS COLLECTOR
# =============================================================================

class MetricType(Enum):
    """Types of metrics collected."""
    COUNTER = "counter"


@dataclass
class MetricDefinition:
    """Definition of a metric to collect."""
    name: str
    metric_type: MetricType
    description: str
    labels: Tuple[str, ...] = field(default_factory=tuple)


class MetricsCollector:
    """
    Append-only time series of metric points.
    """

    def __init__(self):
        self._metrics: Dict[str, List[MetricPoint]] = {}
        self._definitions: Dict[str, MetricDefinition] = {}
        self._register_default_metrics()

    def _register_default_metrics(self):
        defaults = [
            MetricDefinition(
                name="flag_events_total",
                metric_type=MetricType.COUNTER,
                description="Events dispatched to the flag store",
                labels=("kind",)
            ),
            MetricDefinition(
                name="flag_noop_total",
                metric_type=MetricType.COUNTER,
                description="Dispatched events that left the state unchanged",
                labels=("kind",)
            ),
            MetricDefinition(
                name="flag_payload_rejected_total",
                metric_type=MetricType.COUNTER,
                description="Raw payloads that could not be mapped to an event",
                labels=("code",)
            ),
        ]

        for definition in defaults:
            self.register_metric(definition)

    def register_metric(self, definition: MetricDefinition):
        self._definitions[definition.name] = definition
        if definition.name not in self._metrics:
            self._metrics[definition.name] = []

    def record(
        self,
        metric_name: str,
        value: float,
        labels: Optional[Dict[str, str]] = None
    ):
        """Record a metric data point."""
        if metric_name not in self._metrics:
            self._metrics[metric_name] = []

        label_tuple = tuple(sorted(labels.items())) if labels else ()

        self._metrics[metric_name].append(MetricPoint(
            metric_name=metric_name,
            value=value,
            timestamp=Timestamp.now(),
            labels=label_tuple
        ))

    def get_metric(self, metric_name: str) -> List[MetricPoint]:
        return list(self._metrics.get(metric_name, []))

    def total(self, metric_name: str, labels: Optional[Dict[str, str]] = None) -> float:
        """Sum of recorded values, restricted to points carrying `labels`."""
        wanted = set(labels.items()) if labels else set()
        return sum(
            p.value for p in self._metrics.get(metric_name, [])
            if wanted.issubset(p.labels)
        )

    @property
    def definitions(self) -> List[MetricDefinition]:
        return list(self._definitions.values())


# =============================================================================
# OBSERVABILITY ENGINE
# =============================================================================

@dataclass
class ObservabilityConfig:
    """Configuration for observability engine."""
    enable_metrics: bool = True
    enable_audit: bool = True
    max_audit_entries: int = 10_000


class ObservabilityEngine:
    """
    Central Observability Engine.

    BOUNDARY ENFORCEMENT:
    - ONLY observes, never modifies
    - Receives labels and outcomes, never state objects
    - Provides read-only access to collected data
    """

    def __init__(self, config: Optional[ObservabilityConfig] = None):
        self._config = config or ObservabilityConfig()
        self._audit = LogCollector('store', max_entries=self._config.max_audit_entries)
        self._metrics = MetricsCollector() if self._config.enable_metrics else None

    def _entry_id(self, sequence: int, action: str) -> str:
        digest = hashlib.sha256(
            f"store|{sequence}|{action}|{Timestamp.now().value.timestamp()}".encode()
        ).hexdigest()[:16]
        return f"audit_{digest}"

    def _log(self, event_type: AuditEventType, action: str, metadata: Dict[str, str]):
        if not self._config.enable_audit:
            return
        sequence = self._audit.next_sequence()
        self._audit.collect(AuditLogEntry(
            entry_id=self._entry_id(sequence, action),
            event_type=event_type,
            timestamp=Timestamp.now(),
            sequence=sequence,
            action=action,
            metadata=tuple(metadata.items())
        ))

    def record_transition(self, kind: str, changed: bool):
        """Record one dispatched event and whether it produced a new state."""
        self._log(
            AuditEventType.STATE_CHANGE if changed else AuditEventType.NO_OP,
            kind,
            {"changed": str(changed).lower()}
        )
        if self._metrics:
            self._metrics.record("flag_events_total", 1, {"kind": kind})
            if not changed:
                self._metrics.record("flag_noop_total", 1, {"kind": kind})

    def record_rejection(self, error: Error):
        """Record a payload that never reached the reducer."""
        metadata = {"code": error.code.name, "message": error.message}
        metadata.update(dict(error.context))
        self._log(AuditEventType.ERROR, "payload_rejected", metadata)
        if self._metrics:
            self._metrics.record("flag_payload_rejected_total", 1, {"code": error.code.name})

    def record_system(self, action: str, details: str = ""):
        self._log(AuditEventType.SYSTEM, action, {"details": details})

    def get_audit_log(
        self,
        event_type: Optional[AuditEventType] = None,
        limit: Optional[int] = None
    ) -> List[AuditLogEntry]:
        return self._audit.get_entries(event_type=event_type, limit=limit)

    @property
    def metrics(self) -> Optional[MetricsCollector]:
        return self._metrics


__all__ = [
    'LogCollector', 'MetricType', 'MetricDefinition', 'MetricsCollector',
    'ObservabilityConfig', 'ObservabilityEngine',
]
