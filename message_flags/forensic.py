"""
Forensic Reporter CLI
=====================

Inspect flag state by replaying a recorded event log (one JSON payload
per line) through the reducer. Never touches a running server.

COMMANDS:
- replay:  Replay a log and dump the final state
- query:   Replay a log and report one flag on one message
- verify:  Replay twice, check determinism and the mentioned invariant

USAGE:
    python -m message_flags.forensic [COMMAND] [ARGS]
"""
import argparse
import json
import os
import sys
from typing import List, Optional

from .contracts.base import FlagName
from .store.engine import FlagStoreConfig
from .store.replay import ReplayResult, replay_file
from .store.state import FlagState


def _load(path: str) -> Optional[ReplayResult]:
    if not os.path.exists(path):
        print(f"[!] No event log at: {path}")
        return None
    return replay_file(path, FlagStoreConfig.from_env())


def _print_state(state: FlagState, as_json: bool):
    if as_json:
        print(json.dumps(state.to_dict(), indent=2))
        return
    print("FLAG                 | COUNT | IDS")
    print("-" * 80)
    for name, ids in state.to_dict().items():
        shown = ", ".join(str(i) for i in ids[:10])
        if len(ids) > 10:
            shown += ", ..."
        print(f"{name:<20} | {len(ids):<5} | {shown}")


def cmd_replay(args) -> int:
    """Replay log and dump final state."""
    print(f"[*] Replaying: {args.log}")
    result = _load(args.log)
    if result is None:
        return 1

    if args.trace:
        print("LINE | KIND                     | RESULT")
        print("-" * 80)
        for step in result.steps:
            outcome = step.outcome
            if not outcome.accepted:
                status = f"REJECTED ({outcome.error_message})"
            else:
                status = "CHANGED" if outcome.changed else "NO-OP"
            print(f"{step.line_number:<4} | {outcome.kind or '-':<24} | {status}")

    print(f"[INFO] {len(result.steps)} events, {result.changed_count} changed state, {result.rejected_count} rejected.")
    _print_state(result.state, args.json)
    return 0


def cmd_query(args) -> int:
    """Report one flag on one message."""
    flag = FlagName.parse(args.flag)
    if flag is None:
        print(f"[!] Unknown flag: {args.flag}")
        return 2

    result = _load(args.log)
    if result is None:
        return 1

    is_set = result.state.get(flag, args.message_id)
    print(f"{flag.value} on {args.message_id}: {'set' if is_set else 'not set'}")
    return 0


def cmd_verify(args) -> int:
    """Check determinism and the mentioned-superset invariant."""
    print(f"[*] Verifying: {args.log}")
    first = _load(args.log)
    if first is None:
        return 1
    second = replay_file(args.log, FlagStoreConfig.from_env())

    failures: List[str] = []
    if first.state != second.state:
        failures.append("replay is not deterministic")

    orphaned = first.state.wildcard_mentioned - first.state.mentioned
    if orphaned:
        failures.append(f"wildcard mentions missing from mentioned: {sorted(orphaned)}")

    if failures:
        for failure in failures:
            print(f"[FAIL] {failure}")
        return 1

    print(f"[PASS] Verified {len(first.steps)} events. State is deterministic.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Message flags forensic reporter")
    subparsers = parser.add_subparsers(dest="command")

    replay_parser = subparsers.add_parser("replay", help="Replay a log and dump state")
    replay_parser.add_argument("log", help="Path to JSONL event log")
    replay_parser.add_argument("--trace", action="store_true", help="Print one line per event")
    replay_parser.add_argument("--json", action="store_true", help="Dump state as JSON")

    query_parser = subparsers.add_parser("query", help="Check one flag on one message")
    query_parser.add_argument("log", help="Path to JSONL event log")
    query_parser.add_argument("flag", help="Flag name, e.g. starred")
    query_parser.add_argument("message_id", type=int, help="Message id")

    verify_parser = subparsers.add_parser("verify", help="Verify replay determinism")
    verify_parser.add_argument("log", help="Path to JSONL event log")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "replay":
        return cmd_replay(args)
    elif args.command == "query":
        return cmd_query(args)
    elif args.command == "verify":
        return cmd_verify(args)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
