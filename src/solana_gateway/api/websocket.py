"""Duplex message channel over a WebSocket."""

import asyncio
import json
import logging
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect

from solana_gateway.services.dispatcher import OperationDispatcher

logger = logging.getLogger(__name__)

WELCOME_MESSAGE = "Connected to Solana MCP WebSocket"


class WebSocketSession:
    """Serves the {type, data} message protocol on each accepted socket.

    Every "mcp" message is dispatched as its own task so a slow ledger call
    does not hold up the socket; replies are correlated by requestId.
    """

    def __init__(self, dispatcher: OperationDispatcher):
        if dispatcher is None:
            raise ValueError("dispatcher is required")
        self._dispatcher = dispatcher

    async def serve(self, websocket: WebSocket) -> None:
        await websocket.accept()
        logger.info("Client connected to WebSocket")

        send_lock = asyncio.Lock()
        pending: set[asyncio.Task] = set()

        async def send(message: dict[str, Any]) -> None:
            async with send_lock:
                await websocket.send_json(message)

        try:
            await send({"type": "connection", "message": WELCOME_MESSAGE})
            while True:
                frame = await websocket.receive()
                if frame["type"] == "websocket.disconnect":
                    raise WebSocketDisconnect(frame.get("code", 1000))
                # Binary frames carry no "text" and are treated as malformed.
                text = frame.get("text")
                if text is None:
                    await send({"type": "error", "message": "Invalid message format"})
                    continue
                try:
                    message = json.loads(text)
                except ValueError:
                    await send({"type": "error", "message": "Invalid message format"})
                    continue
                if not isinstance(message, dict):
                    await send({"type": "error", "message": "Invalid message format"})
                    continue

                kind = message.get("type")
                if kind == "subscribe":
                    # Reserved; subscriptions are not implemented.
                    logger.debug("Ignoring subscribe message")
                elif kind == "mcp":
                    task = asyncio.create_task(self._handle_mcp(message.get("data"), send))
                    pending.add(task)
                    task.add_done_callback(pending.discard)
                else:
                    await send({"type": "error", "message": "Unknown message type"})
        except WebSocketDisconnect:
            logger.info("Client disconnected from WebSocket")
        finally:
            tasks = list(pending)
            for task in tasks:
                task.cancel()
            if tasks:
                await asyncio.gather(*tasks, return_exceptions=True)

    async def _handle_mcp(self, data: Any, send) -> None:
        if not isinstance(data, dict):
            await self._reply(send, {"type": "error", "message": "Invalid message format"})
            return

        request_id = data.get("requestId")
        result = await self._dispatcher.execute_raw(
            data.get("action"), data.get("parameters"), request_id
        )
        if result.success:
            reply = {"type": "response", "requestId": request_id, "data": result.payload}
        else:
            reply = {
                "type": "error",
                "requestId": request_id,
                "error": result.error.message,
                "category": result.error.category.value,
            }
        await self._reply(send, reply)

    @staticmethod
    async def _reply(send, message: dict[str, Any]) -> None:
        try:
            await send(message)
        except (WebSocketDisconnect, RuntimeError) as e:
            logger.debug(f"Could not deliver reply, socket closed: {e}")
