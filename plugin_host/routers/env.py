"""Plugin environment REST API endpoints."""

from fastapi import APIRouter, Depends

from plugin_host.dependencies import get_plugin_manager
from plugin_host.models.requests import EnvSaveRequest
from plugin_host.plugins.manager import PluginManager

router = APIRouter(prefix="/api/env", tags=["env"])


@router.get("")
async def list_env(manager: PluginManager = Depends(get_plugin_manager)):
    """List the variables injected into plugin executions."""
    return {"vars": manager.env_list()}


@router.put("")
async def save_env(body: EnvSaveRequest, manager: PluginManager = Depends(get_plugin_manager)):
    """Replace the plugin environment."""
    manager.env_save(body.vars)
    return {"message": f"Saved {len(body.vars)} environment variable(s)"}
