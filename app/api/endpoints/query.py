import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from app.core.config import Settings, get_settings
from app.nl2sql.hub import QueryHub
from app.nl2sql.orchestrator import QueryPipeline
from app.nl2sql.service import get_pipeline

router = APIRouter(tags=["Query"])

pipeline_dep = Annotated[QueryPipeline, Depends(get_pipeline)]
settings_dep = Annotated[Settings, Depends(get_settings)]


@router.websocket("/queryhub")
async def query_hub(websocket: WebSocket, pipeline: pipeline_dep, config: settings_dep):
    """
    Persistent channel for natural language questions.
    Send {"event": "ProcessNaturalLanguageQuery", "data": "<question>"}.
    """
    await websocket.accept()
    hub = QueryHub(
        websocket,
        pipeline,
        connection_id=uuid.uuid4().hex[:8],
        max_requests=config.MAX_REQUESTS_PER_CONNECTION,
    )
    try:
        await hub.on_connected()
        await hub.serve()
    except WebSocketDisconnect:
        pass
    finally:
        await hub.on_disconnected()
