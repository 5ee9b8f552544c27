# -*- coding: utf-8 -*-
"""
db-inspector API routes

MCP tool discovery and execution over HTTP, plus health and alias listing
"""

from typing import Any

from fastapi import APIRouter, HTTPException
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, Field

from .. import __version__
from ..db.connector import get_db_manager
from ..mcp import get_tool_registry


router = APIRouter(tags=["db-inspector"])


# ============================================
# Request/response models
# ============================================

class HealthResponse(BaseModel):
    status: str
    version: str
    databases: int


class ToolExecuteRequest(BaseModel):
    arguments: dict[str, Any] = Field(default_factory=dict, description="Tool arguments")


# ============================================
# Routes
# ============================================

@router.get("/health", response_model=HealthResponse)
async def health_check():
    return HealthResponse(status="healthy", version=__version__, databases=len(get_db_manager()))


@router.get("/api/v1/databases")
async def list_databases():
    """Registered database aliases"""
    databases = [info.to_dict() for info in get_db_manager().list_databases()]
    return {"databases": databases, "count": len(databases)}


@router.get("/mcp/v1/tools")
async def list_tools():
    """MCP tool definitions"""
    return {"tools": get_tool_registry().get_mcp_definitions()}


@router.get("/mcp/v1/tools/stats")
async def tool_stats():
    return {"tools": get_tool_registry().get_all_stats()}


@router.post("/mcp/v1/tools/{name}:execute")
async def execute_tool(name: str, request: ToolExecuteRequest):
    """
    Execute one tool

    Tool failures are reported in the result envelope (HTTP 200); only an
    unknown tool name is an HTTP error.
    """
    tool = get_tool_registry().get(name)
    if tool is None:
        raise HTTPException(status_code=404, detail=f"Tool not found: {name}")

    result = await tool.execute(**request.arguments)
    return jsonable_encoder(result.to_dict())


__all__ = ["router"]
