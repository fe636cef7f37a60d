"""Plugin management REST API endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from plugin_host.dependencies import get_plugin_manager
from plugin_host.models.requests import PluginContentRequest, ToolExecuteRequest
from plugin_host.plugins.manager import PluginManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/plugins", tags=["plugins"])


@router.get("")
async def list_plugins(manager: PluginManager = Depends(get_plugin_manager)):
    """List all catalogued plugins keyed by id."""
    plugins = await manager.list_plugins()
    return {"plugins": plugins}


@router.post("")
async def import_plugin(body: PluginContentRequest, manager: PluginManager = Depends(get_plugin_manager)):
    """Import a plugin from its source and return the introspected manifest."""
    return await manager.import_plugin(body.content)


@router.get("/doctor")
async def check_plugins(manager: PluginManager = Depends(get_plugin_manager)):
    """Report catalog entries without sources and sources without entries."""
    report = await manager.check()
    return report.to_dict()


@router.post("/doctor/repair")
async def repair_plugins(manager: PluginManager = Depends(get_plugin_manager)):
    """Fix catalog/source mismatches. Do not call while imports are running."""
    report = await manager.repair()
    return report.to_dict()


@router.get("/{plugin_id}")
async def get_plugin(plugin_id: str, manager: PluginManager = Depends(get_plugin_manager)):
    """Get a plugin together with its source text."""
    plugin = await manager.get_plugin(plugin_id)
    if plugin is None:
        raise HTTPException(status_code=404, detail=f"Plugin '{plugin_id}' not found")
    return plugin


@router.put("/{plugin_id}")
async def update_plugin(
    plugin_id: str,
    body: PluginContentRequest,
    manager: PluginManager = Depends(get_plugin_manager),
):
    """Replace a plugin's source; the id is preserved."""
    return await manager.update_plugin(plugin_id, body.content)


@router.delete("/{plugin_id}")
async def remove_plugin(plugin_id: str, manager: PluginManager = Depends(get_plugin_manager)):
    """Remove a plugin and its source file."""
    await manager.remove_plugin(plugin_id)
    return {"message": f"Plugin '{plugin_id}' removed"}


@router.post("/{plugin_id}/tools/{tool}")
async def execute_tool(
    plugin_id: str,
    tool: str,
    body: ToolExecuteRequest,
    manager: PluginManager = Depends(get_plugin_manager),
):
    """Run one tool of a plugin with the given arguments."""
    result = await manager.execute_tool(plugin_id, tool, body.args)
    return {"result": result}
