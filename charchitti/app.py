from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Config
from .routers import rooms as rooms_router
from .routers import websockets as ws_router
from .state import cleanup_tasks

# -----------------------------
# Logging
# -----------------------------

logging.basicConfig(
    level=Config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)

# -----------------------------
# FastAPI app instance
# -----------------------------

@asynccontextmanager
async def lifespan(_: FastAPI):
    yield
    # Pending prune timers die with the loop
    for task in list(cleanup_tasks.values()):
        task.cancel()
    cleanup_tasks.clear()


app = FastAPI(title="Char-Chitti Room Server", lifespan=lifespan)

# Allow all origins by default; narrow with ALLOWED_ORIGINS in production.
app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(rooms_router.router)
app.include_router(ws_router.router)


def main():
    """Run the server with uvicorn on the configured host and port."""
    logger.info("Char-Chitti server listening on %s:%s", Config.HOST, Config.PORT)
    uvicorn.run(app, host=Config.HOST, port=Config.PORT, log_level=Config.LOG_LEVEL.lower())


if __name__ == "__main__":
    main()

__all__ = ["app", "main"]
