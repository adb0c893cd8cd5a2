"""Dependency injection for FastAPI endpoints"""

import uuid
from typing import Any
from fastapi import BackgroundTasks, Request
from budget_ledger.infrastructure.clients.events import LedgerEventClient


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_event_client() -> LedgerEventClient:
    """Provide ledger event webhook client instance"""
    return LedgerEventClient()


def publish_event(
    background_tasks: BackgroundTasks,
    event_client: LedgerEventClient,
    event: str,
    **payload: Any,
) -> None:
    """Schedule a ledger event for delivery after the response is sent"""
    if not event_client.enabled:
        return
    body = {"event": event}
    body.update({key: str(value) if isinstance(value, uuid.UUID) else value for key, value in payload.items()})
    background_tasks.add_task(event_client.send_event, body)
