"""
Message Flags: API Server
=========================

Query and ingest surface over one process-wide FlagStore.

Endpoints:
- GET  /health
- GET  /api/v1/flags                        -> Full flag state
- GET  /api/v1/flags/{flag}                 -> Ids under one flag
- GET  /api/v1/flags/{flag}/{message_id}    -> Membership of one id
- GET  /api/v1/messages/{message_id}        -> Every flag set on one id
- POST /api/v1/events                       -> Dispatch one raw event payload
- GET  /api/v1/audit                        -> Recent audit entries

Usage:
    uvicorn message_flags.api.server:app --reload
"""
import os
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import Body, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from ..contracts.base import FlagName
from ..contracts.events import AuditEventType
from ..store.engine import FlagStore, FlagStoreConfig
from ..store.replay import replay_into
from .mapper import (
    map_audit_to_dto, map_flag_to_dto, map_membership_to_dto, map_state_to_dto
)


class DispatchResponse(BaseModel):
    accepted: bool
    changed: bool
    kind: Optional[str] = None


class MessageFlagsResponse(BaseModel):
    message_id: int
    flags: list


def _build_store() -> FlagStore:
    store = FlagStore(FlagStoreConfig.from_env())

    log_path = os.environ.get("MESSAGE_FLAGS_EVENT_LOG")
    if log_path:
        print(f"[*] Replaying event log: {log_path}")
        result = replay_into(store, log_path)
        print(f"[+] Replayed {len(result.steps)} events ({result.rejected_count} rejected).")
        store.observability.record_system("startup_replay", log_path)

    return store


def _parse_flag(flag: str) -> FlagName:
    parsed = FlagName.parse(flag)
    if parsed is None:
        raise HTTPException(status_code=404, detail=f"Unknown flag: {flag}")
    return parsed


def _store(request: Request) -> FlagStore:
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="Store not initialized")
    return store


def create_app(store: Optional[FlagStore] = None) -> FastAPI:
    """
    Build the API app.

    When no store is given one is built at startup from the environment.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        print("[*] Initializing flag store")
        try:
            app.state.store = store if store is not None else _build_store()
        except (OSError, ValueError) as e:
            print(f"[!] FAILED to initialize flag store: {e}")
            raise
        yield
        print("[*] Shutting down flag store.")
        app.state.store = None

    app = FastAPI(
        title="Message Flags API",
        version="0.1.0",
        description="Per-message flag state for a chat client",
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health_check(request: Request):
        """System status."""
        _store(request)
        return {"status": "online"}

    @app.get("/api/v1/flags")
    async def get_flags(request: Request):
        return map_state_to_dto(_store(request).state)

    @app.get("/api/v1/flags/{flag}")
    async def get_flag(flag: str, request: Request):
        return map_flag_to_dto(_store(request).state, _parse_flag(flag))

    @app.get("/api/v1/flags/{flag}/{message_id}")
    async def get_membership(flag: str, message_id: int, request: Request):
        return map_membership_to_dto(_store(request).state, _parse_flag(flag), message_id)

    @app.get("/api/v1/messages/{message_id}", response_model=MessageFlagsResponse)
    async def get_message_flags(message_id: int, request: Request):
        flags = _store(request).state.flags_for(message_id)
        return MessageFlagsResponse(message_id=message_id, flags=[f.value for f in flags])

    @app.post("/api/v1/events", response_model=DispatchResponse)
    async def post_event(request: Request, payload: Dict[str, Any] = Body(...)):
        """
        Dispatch one raw payload.

        Unmappable payloads are rejected with 422; partially usable ones
        are accepted and may leave the state unchanged.
        """
        outcome = _store(request).dispatch_payload(payload)
        if not outcome.accepted:
            raise HTTPException(status_code=422, detail=outcome.error_message)
        return DispatchResponse(accepted=True, changed=outcome.changed, kind=outcome.kind)

    @app.get("/api/v1/audit")
    async def get_audit(request: Request, limit: int = 100, event_type: Optional[str] = None):
        wanted = None
        if event_type:
            try:
                wanted = AuditEventType(event_type)
            except ValueError:
                raise HTTPException(status_code=400, detail=f"Unknown event type: {event_type}")
        entries = _store(request).observability.get_audit_log(event_type=wanted, limit=limit)
        return map_audit_to_dto(entries)

    return app


app = create_app()
