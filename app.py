"""Main FastAPI application for the plugin host."""

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv

# Load environment variables from .env
load_dotenv('.env')

# Configure logging BEFORE importing any modules that use logger
log_level = os.getenv('LOG_LEVEL', 'INFO')
logging.basicConfig(
    level=getattr(logging, log_level.upper()),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Import after logging is configured
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from plugin_host import __version__
from plugin_host.constants import PORT
from plugin_host.dependencies import get_context
from plugin_host.errors import PluginHostError
from plugin_host.routers import env_router, plugins_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the service context on startup."""
    context = get_context()
    logger.info("Starting plugin host")
    logger.info(f"Plugins directory: {context.plugins_dir}")
    if not context.runtime.is_installed:
        logger.warning(f"Script runtime '{context.runtime.binary}' unavailable, tools cannot run")
    yield
    logger.info("Shutting down plugin host")


# Create FastAPI app
app = FastAPI(
    title="Plugin Host",
    description="Catalog, introspection and execution of scripted plugins",
    version=__version__,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PluginHostError)
async def plugin_host_error_handler(request: Request, exc: PluginHostError):
    """Render typed plugin errors as {kind, message}."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Include API routers
app.include_router(plugins_router)  # /api/plugins endpoints
app.include_router(env_router)  # /api/env endpoints


@app.get("/health")
async def health():
    """Liveness plus runtime availability."""
    context = get_context()
    plugins = await context.manager.list_plugins()
    return {
        "status": "ok",
        "runtime": context.runtime.binary,
        "runtime_installed": context.runtime.is_installed,
        "plugins": len(plugins),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app:app", host="0.0.0.0", port=PORT, reload=True)
