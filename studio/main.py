import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import config
from .api.routes import api_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan: startup and shutdown events.
    """
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("🚀 Starting Node Studio application...")
    if not config.GEMINI_API_KEY:
        logger.warning("GEMINI_API_KEY is not set; AI nodes will fail until it is configured")
    logger.info("✅ Application startup complete")

    yield

    logger.info("🛑 Shutting down Node Studio application...")


app = FastAPI(
    title="Node Studio",
    description="Node-based workflow editor backend: build a graph of copywriting, VFX and image generation nodes and run it in dependency order.",
    lifespan=lifespan,
)

# Allow the editor dev server and deployed previews
app.add_middleware(
    CORSMiddleware,
    allow_origins=[],
    allow_origin_regex=r"^https:\/\/.*\.vercel\.app$|^http:\/\/localhost:\d+$|^http:\/\/127\.0\.0\.1:\d+$",
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    expose_headers=["*"],
)

app.include_router(api_router)


def run():
    """Serve the app with uvicorn on the configured host and port."""
    uvicorn.run(app, host=config.STUDIO_HOST, port=config.STUDIO_PORT)


if __name__ == "__main__":
    run()
