import asyncio
import logging
from typing import Set

from fastapi import WebSocket, WebSocketDisconnect, status
from pydantic import ValidationError

from app.core.schemas import ClientMessage, SessionEvent
from app.nl2sql.orchestrator import QueryPipeline, SessionOrchestrator, error_text

logger = logging.getLogger(__name__)

STATUS_CONNECTED = "Connected to server ✅"


class QueryHub:
    """
    One open /queryhub connection.

    Every inbound question runs as its own task with a fresh orchestrator.
    Outbound frames share a lock so two requests never interleave a frame.
    """

    def __init__(
        self,
        websocket: WebSocket,
        pipeline: QueryPipeline,
        connection_id: str,
        max_requests: int = 0,
    ):
        self.websocket = websocket
        self.pipeline = pipeline
        self.connection_id = connection_id
        self.max_requests = max_requests
        self.request_count = 0
        self.tasks: Set[asyncio.Task] = set()
        self.send_lock = asyncio.Lock()

    async def send(self, event: SessionEvent):
        async with self.send_lock:
            await self.websocket.send_json(event.model_dump(mode="json"))

    async def on_connected(self):
        logger.info(f"Client connected: {self.connection_id}")
        await self.send(SessionEvent.status(STATUS_CONNECTED))

    async def on_disconnected(self):
        # Cancellation reaches the executor, which releases its connection
        for task in self.tasks:
            task.cancel()
        await asyncio.gather(*self.tasks, return_exceptions=True)
        logger.info(f"Client disconnected: {self.connection_id}")

    async def serve(self):
        """Read frames until the client goes away (WebSocketDisconnect propagates)."""
        while True:
            frame = await self.websocket.receive()
            if frame["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(frame.get("code", 1000), frame.get("reason"))

            # Clients may send the JSON as a text or a binary frame
            raw = frame.get("text") or frame.get("bytes")
            try:
                if raw is None:
                    raise ValueError("frame carries no payload")
                message = ClientMessage.model_validate_json(raw)
            except (ValidationError, ValueError) as error:
                logger.warning(f"[{self.connection_id}] Bad frame: {error}")
                await self.send(SessionEvent.error(error_text("Unrecognized message")))
                continue

            if self.max_requests and self.request_count >= self.max_requests:
                logger.warning(f"[{self.connection_id}] Request limit reached, closing")
                await self.send(
                    SessionEvent.error(
                        error_text(f"Request limit of {self.max_requests} per connection reached")
                    )
                )
                await asyncio.gather(*self.tasks, return_exceptions=True)
                await self.websocket.close(code=status.WS_1008_POLICY_VIOLATION)
                return

            self.request_count += 1
            self.start_request(message.data)

    def start_request(self, question: str) -> asyncio.Task:
        request_id = f"{self.connection_id}-{self.request_count}"
        orchestrator = SessionOrchestrator(self.pipeline, self.send, request_id)
        task = asyncio.create_task(orchestrator.run(question))
        self.tasks.add(task)
        task.add_done_callback(self.tasks.discard)
        return task
