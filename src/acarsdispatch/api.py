"""Summary: FastAPI application for the ACARS dispatch client.

Importance: Exposes the message store and sync loop to dashboard clients over HTTP.
Alternatives: Embed the client directly in a desktop UI.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import Depends, FastAPI, Header, HTTPException
from pydantic import BaseModel, Field

from acarsdispatch.app import build_services
from acarsdispatch.config import AppConfig
from acarsdispatch.errors import MessageNotFoundError, StatusTransitionError
from acarsdispatch.models import ACARSMessage, MessageStatus, MessageType, format_acars_time
from acarsdispatch.sync import LoopState
from acarsdispatch.transport import Transport


class SessionRequest(BaseModel):
    """Summary: Request payload for starting a dispatch session.

    Importance: The auth layer hands over the logon code and station here.
    Alternatives: Read credentials only from the environment.
    """

    logon_code: str = Field(min_length=1)
    station: str | None = Field(default=None, max_length=12)


class SendMessageRequest(BaseModel):
    """Summary: Request payload for sending a message.

    Importance: Keeps the send inputs explicit; the sender is always the session station.
    Alternatives: Accept raw Hoppie query parameters.
    """

    to: str = Field(min_length=1, max_length=12)
    packet: str = Field(min_length=1, max_length=4000)
    type: MessageType = MessageType.TELEX


class StatusUpdateRequest(BaseModel):
    status: MessageStatus


def serialize_message(message: ACARSMessage) -> dict[str, Any]:
    """Summary: Convert a message into an API response record.

    Importance: Adds a display time alongside the ISO timestamp.
    Alternatives: Return dataclasses and let FastAPI encode them.
    """

    record: dict[str, Any] = dict(message.to_record())
    record["display_time"] = format_acars_time(message.timestamp)
    return record


def create_app(config: AppConfig, transport: Transport | None = None) -> FastAPI:
    """Summary: Create a FastAPI app wired to the dispatch services.

    Importance: Ensures the API layer shares the same configuration and storage.
    Alternatives: Instantiate services globally outside the factory.
    """

    if not logging.getLogger().handlers:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    services = build_services(config, transport=transport)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        services.sync.shutdown()

    app = FastAPI(title="ACARS Dispatch API", version="0.1.0", lifespan=lifespan)
    app.state.services = services

    def require_api_key(x_api_key: str | None = Header(default=None)) -> None:
        """Summary: Enforce API key authentication when configured.

        Importance: Adds a minimal security layer for local and private deployments.
        Alternatives: Use OAuth or session-based authentication.
        """

        if not config.api_key:
            return
        if x_api_key != config.api_key:
            raise HTTPException(status_code=401, detail="Invalid API key")

    @app.get("/health")
    def health() -> dict[str, str]:
        """Summary: Health check endpoint.

        Importance: Supports uptime checks in local and cloud deployments.
        Alternatives: Use a metrics endpoint only.
        """

        return {"status": "ok", "sync": services.sync.state.value}

    @app.get("/config")
    def public_config() -> dict[str, Any]:
        return config.public_view()

    @app.get("/session", dependencies=[Depends(require_api_key)])
    def session_state() -> dict[str, str]:
        return {"state": services.sync.state.value, "station": services.sync.station}

    @app.post("/session", dependencies=[Depends(require_api_key)])
    def start_session(payload: SessionRequest) -> dict[str, str]:
        """Summary: Activate polling with the supplied credential.

        Importance: Moves the sync loop from idle to active after login.
        Alternatives: Poll whenever a logon code exists in the environment.
        """

        try:
            services.sync.activate(payload.logon_code, payload.station)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {"state": services.sync.state.value, "station": services.sync.station}

    @app.delete("/session", dependencies=[Depends(require_api_key)])
    def end_session() -> dict[str, str]:
        services.sync.deactivate()
        return {"state": services.sync.state.value, "station": services.sync.station}

    @app.get("/messages", dependencies=[Depends(require_api_key)])
    def list_messages() -> list[dict[str, Any]]:
        return [serialize_message(message) for message in services.store.list_messages()]

    @app.get("/messages/by-day", dependencies=[Depends(require_api_key)])
    def list_messages_by_day() -> list[dict[str, Any]]:
        """Summary: List messages grouped by calendar day.

        Importance: Feeds day-separated message history views.
        Alternatives: Group on the client side.
        """

        return [
            {"day": day.isoformat(), "messages": [serialize_message(item) for item in items]}
            for day, items in services.store.group_by_day().items()
        ]

    @app.post("/messages/send", dependencies=[Depends(require_api_key)])
    def send_message(payload: SendMessageRequest) -> dict[str, Any]:
        """Summary: Send a message through the Hoppie network.

        Importance: Surfaces send failures to the operator with a readable reason.
        Alternatives: Queue sends and report failures asynchronously.
        """

        if services.sync.state is not LoopState.ACTIVE:
            raise HTTPException(status_code=409, detail="Hoppie logon code not configured")
        try:
            request = services.sync.compose(payload.to, payload.packet, payload.type)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        result = services.sync.send(request)
        if not result.success or result.message is None:
            kind = result.error.kind.value if result.error else "unknown"
            raise HTTPException(
                status_code=502, detail={"kind": kind, "message": result.user_message}
            )
        return {"message": serialize_message(result.message), "detail": result.user_message}

    @app.post("/messages/refresh", dependencies=[Depends(require_api_key)])
    def refresh_messages() -> dict[str, Any]:
        inserted = services.sync.refresh()
        return {"inserted": inserted or 0, "skipped": inserted is None}

    @app.patch("/messages/{message_id}/status", dependencies=[Depends(require_api_key)])
    def update_status(message_id: str, payload: StatusUpdateRequest) -> dict[str, Any]:
        """Summary: Apply an acknowledgement or delivery status change.

        Importance: Records PDC accept/reject decisions from the operator.
        Alternatives: Infer acknowledgements from later received messages.
        """

        try:
            updated = services.store.update_status(message_id, payload.status)
        except MessageNotFoundError as exc:
            raise HTTPException(status_code=404, detail="Message not found") from exc
        except StatusTransitionError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        return serialize_message(updated)

    @app.delete("/messages/{message_id}", dependencies=[Depends(require_api_key)])
    def delete_message(message_id: str) -> dict[str, str]:
        if not services.store.delete(message_id):
            raise HTTPException(status_code=404, detail="Message not found")
        return {"status": "deleted"}

    @app.delete("/messages", dependencies=[Depends(require_api_key)])
    def clear_messages() -> dict[str, str]:
        services.store.clear()
        return {"status": "cleared"}

    return app
