"""
FlagStore Dispatch Tests

The store publishes a new state only when the reducer returns a new
object, and records every dispatch in observability.
"""

import pytest

from message_flags.contracts.base import FlagName
from message_flags.contracts.events import (
    AuditEventType, FlaggedMessage, FlagOperation, FlagUpdate,
    NewMessageArrived, Reset
)
from message_flags.observability import ObservabilityConfig
from message_flags.store.engine import FlagStore, FlagStoreConfig
from message_flags.store.state import INITIAL_STATE, FlagState


@pytest.fixture
def store():
    return FlagStore()


class TestDispatch:

    def test_starts_from_initial_state(self, store):
        assert store.state is INITIAL_STATE

    def test_custom_initial_state(self):
        state = FlagState(read=frozenset({1}))

        assert FlagStore(initial_state=state).get(FlagName.READ, 1)

    def test_dispatch_updates_state(self, store):
        outcome = store.dispatch(NewMessageArrived(message=FlaggedMessage(7, (FlagName.STARRED,))))

        assert outcome.accepted and outcome.changed
        assert outcome.kind == "new_message"
        assert store.get(FlagName.STARRED, 7)

    def test_noop_keeps_identity(self, store):
        before = store.state

        outcome = store.dispatch(FlagUpdate(FlagOperation.ADD, FlagName.READ, ()))

        assert not outcome.changed
        assert store.state is before

    def test_payload_dispatch(self, store):
        store.dispatch_payload({
            "type": "EVENT_UPDATE_MESSAGE_FLAGS",
            "operation": "add",
            "flag": "read",
            "messages": [1, 2],
        })

        assert store.state.read == {1, 2}

    def test_resync_with_non_ascii_digit_key(self, store):
        outcome = store.dispatch_payload({
            "type": "EVENT_UPDATE_MESSAGE_FLAGS",
            "all": True,
            "allMessages": {"\u00b2": {}, "4": {}},
        })

        assert outcome.accepted
        assert store.state.read == {4}

    def test_rejected_payload_leaves_state(self, store):
        before = store.state

        outcome = store.dispatch_payload({"type": "NOPE"})

        assert not outcome.accepted
        assert "NOPE" in outcome.error_message
        assert store.state is before

    def test_dispatch_all(self, store):
        outcomes = store.dispatch_all([
            {"type": "EVENT_NEW_MESSAGE", "message": {"id": 1, "flags": ["read"]}},
            {"type": "EVENT_NEW_MESSAGE", "message": {"id": 2, "flags": ["read"]}},
            {"type": "LOGOUT"},
        ])

        assert [o.changed for o in outcomes] == [True, True, True]
        assert store.state is INITIAL_STATE


class TestSubscribers:

    def test_notified_on_change(self, store):
        seen = []
        store.subscribe(lambda previous, current: seen.append((previous, current)))

        store.dispatch(FlagUpdate(FlagOperation.ADD, FlagName.READ, (1,)))

        assert len(seen) == 1
        assert seen[0][0] is INITIAL_STATE
        assert seen[0][1] is store.state

    def test_not_notified_on_noop(self, store):
        seen = []
        store.subscribe(lambda previous, current: seen.append(current))

        store.dispatch(Reset())
        store.dispatch(FlagUpdate(None, FlagName.READ, (1,)))

        assert seen == []

    def test_unsubscribe(self, store):
        seen = []
        unsubscribe = store.subscribe(lambda previous, current: seen.append(current))

        unsubscribe()
        unsubscribe()
        store.dispatch(FlagUpdate(FlagOperation.ADD, FlagName.READ, (1,)))

        assert seen == []


class TestObservability:

    def test_audit_records_each_dispatch(self, store):
        store.dispatch(FlagUpdate(FlagOperation.ADD, FlagName.READ, (1,)))
        store.dispatch(FlagUpdate(FlagOperation.ADD, FlagName.READ, ()))
        store.dispatch_payload({"type": "NOPE"})

        entries = store.observability.get_audit_log()

        assert [e.event_type for e in entries] == [
            AuditEventType.STATE_CHANGE, AuditEventType.NO_OP, AuditEventType.ERROR
        ]
        assert [e.sequence for e in entries] == [1, 2, 3]
        assert dict(entries[0].metadata)["changed"] == "true"

    def test_metrics_count_events(self, store):
        store.dispatch(FlagUpdate(FlagOperation.ADD, FlagName.READ, (1,)))
        store.dispatch(FlagUpdate(FlagOperation.ADD, FlagName.READ, ()))

        metrics = store.observability.metrics

        assert metrics.total("flag_events_total") == 2
        assert metrics.total("flag_noop_total", {"kind": "flag_update:add"}) == 1

    def test_audit_disabled(self):
        store = FlagStore(FlagStoreConfig(observability=ObservabilityConfig(enable_audit=False)))

        store.dispatch(Reset())

        assert store.observability.get_audit_log() == []


class TestConfig:

    def test_defaults(self, monkeypatch):
        for name in ("MESSAGE_FLAGS_ENABLE_METRICS", "MESSAGE_FLAGS_ENABLE_AUDIT",
                     "MESSAGE_FLAGS_MAX_AUDIT_ENTRIES"):
            monkeypatch.delenv(name, raising=False)

        config = FlagStoreConfig.from_env()

        assert config.observability == ObservabilityConfig()

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("MESSAGE_FLAGS_ENABLE_METRICS", "false")
        monkeypatch.setenv("MESSAGE_FLAGS_ENABLE_AUDIT", "yes")
        monkeypatch.setenv("MESSAGE_FLAGS_MAX_AUDIT_ENTRIES", "5")

        config = FlagStoreConfig.from_env()

        assert config.observability.enable_metrics is False
        assert config.observability.enable_audit is True
        assert config.observability.max_audit_entries == 5

    def test_bad_integer(self, monkeypatch):
        monkeypatch.setenv("MESSAGE_FLAGS_MAX_AUDIT_ENTRIES", "many")

        with pytest.raises(ValueError):
            FlagStoreConfig.from_env()
