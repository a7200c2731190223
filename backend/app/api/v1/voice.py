import asyncio
import base64
import binascii
import logging

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.websockets import WebSocketState

from app.api.deps import user_from_token
from app.core.exceptions import UnauthorizedError
from app.database import get_db
from app.services.voice import VoiceSession, VoiceUnavailableError

router = APIRouter(prefix="/voice", tags=["Voice Assistant"])
logger = logging.getLogger(__name__)


async def _client_to_model(websocket: WebSocket, session: VoiceSession) -> None:
    """Forward microphone chunks until the client says stop."""
    while True:
        message = await websocket.receive_json()
        kind = message.get("type")
        if kind == "stop":
            return
        if kind != "audio":
            continue
        try:
            pcm = base64.b64decode(message.get("data", ""), validate=True)
        except (binascii.Error, ValueError):
            await websocket.send_json({"type": "error", "data": "Audio chunk is not valid base64"})
            continue
        await session.send_audio(pcm)


async def _model_to_client(websocket: WebSocket, session: VoiceSession) -> None:
    async for event in session.events():
        await websocket.send_json(event.as_dict())


@router.websocket("/ws")
async def voice_relay(
    websocket: WebSocket,
    token: str = Query(...),
    db: AsyncSession = Depends(get_db),
):
    """
    Relay a live voice conversation.

    Client frames: ``{"type": "audio", "data": <base64 16 kHz PCM>}`` and
    ``{"type": "stop"}``. Server frames: ``ready``, ``audio``,
    ``input_transcript``, ``output_transcript``, ``interrupted``,
    ``turn_complete`` and ``error``.
    """
    try:
        user = await user_from_token(db, token)
    except UnauthorizedError as e:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=e.detail)
        return

    await websocket.accept()
    try:
        async with VoiceSession(user.name) as session:
            await websocket.send_json({"type": "ready", "data": ""})
            tasks = {
                asyncio.create_task(_client_to_model(websocket, session)),
                asyncio.create_task(_model_to_client(websocket, session)),
            }
            done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            for task in done:
                exc = task.exception()
                if exc is not None and not isinstance(exc, WebSocketDisconnect):
                    logger.warning("Voice relay for %s ended with an error: %s", user.username, exc)
    except VoiceUnavailableError as e:
        logger.warning("Voice assistant unavailable for %s: %s", user.username, e)
        await websocket.send_json({"type": "error", "data": str(e)})
    finally:
        if (
            websocket.client_state == WebSocketState.CONNECTED
            and websocket.application_state == WebSocketState.CONNECTED
        ):
            await websocket.close()
