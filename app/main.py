import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from app.core.config import settings
from app.core.database import engine
from app.api.router import api_router

logging.basicConfig(level=settings.LOG_LEVEL)


# Close the engine once everything is done and close all the connections
@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.info("Natural language query API started")
    yield
    await engine.dispose()


app = FastAPI(title="Natural Language SQL Query API", lifespan=lifespan)

# Include the master router containing all our endpoints
app.include_router(api_router)


@app.get("/")
async def root():
    return {
        "message": "Welcome to the Natural Language SQL Query API",
        "websocket": "/queryhub",
    }
