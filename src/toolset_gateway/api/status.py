"""Health, status and per-client toolset endpoints"""

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..errors import PermissionDeniedError
from ..server import ToolsetServer

router = APIRouter(tags=["toolsets"])
logger = logging.getLogger(__name__)

MCP_CONFIG_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "MCP Session Configuration",
    "description": "Per-session configuration accepted by this gateway (none at present)",
    "type": "object",
    "properties": {},
    "required": [],
    "x-mcp-version": "1.0",
    "x-query-style": "dot+bracket",
}


class HealthResponse(BaseModel):
    """Health check response model."""

    ok: bool


class ClientToolsetsResponse(BaseModel):
    """Toolsets visible to the calling client"""

    client_id: str
    mode: str
    allowed_toolsets: list[str]
    failed_toolsets: list[str]
    active_toolsets: list[str]
    tools: list[str]
    toolsetToTools: dict[str, list[str]]  # noqa: N815


def get_toolset_server(request: Request) -> ToolsetServer:
    server = getattr(request.app.state, "toolset_server", None)
    if server is None:
        raise HTTPException(status_code=503, detail="Toolset server not initialized")
    return server


@router.get("/healthz", response_model=HealthResponse)
async def healthz() -> HealthResponse:
    return HealthResponse(ok=True)


@router.get("/tools")
async def tools_status(request: Request) -> dict[str, Any]:
    """Status of the base manager: available and active toolsets, registration history."""
    server = get_toolset_server(request)
    return server.get_status().model_dump(by_alias=True)


@router.get("/.well-known/mcp-config")
async def mcp_config_schema() -> JSONResponse:
    return JSONResponse(MCP_CONFIG_SCHEMA, media_type="application/schema+json; charset=utf-8")


@router.get("/clients/toolsets", response_model=ClientToolsetsResponse)
async def client_toolsets(request: Request) -> ClientToolsetsResponse:
    """Resolve (or reuse) the calling client's bundle and report what it can see."""
    server = get_toolset_server(request)
    headers = dict(request.headers)
    client_id = server.bundles.resolve_client_id(headers)
    try:
        bundle = await server.get_bundle(client_id, headers)
    except PermissionDeniedError as e:
        logger.warning(f"Client '{client_id}' denied: {e.message}")
        raise HTTPException(status_code=403, detail=e.message)

    manager = bundle.orchestrator.get_manager()
    status = manager.get_status()
    return ClientToolsetsResponse(
        client_id=client_id,
        mode=bundle.orchestrator.get_mode().value,
        allowed_toolsets=bundle.allowed_toolsets,
        failed_toolsets=bundle.failed_toolsets,
        active_toolsets=status.active_toolsets,
        tools=status.tools,
        toolsetToTools=status.toolset_to_tools,
    )
