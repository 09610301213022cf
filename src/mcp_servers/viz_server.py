"""3D Visualization MCP Server - thin wrapper around agent/tools/viz_tools.py.

Run standalone:  python -m src.mcp_servers.viz_server
External use:    Claude Desktop, Cursor, or any MCP client via stdio

Core logic lives in src/agent/tools/viz_tools.py (single source of truth).
"""

from __future__ import annotations

from mcp.server.fastmcp import FastMCP

from src.agent.tools.viz_tools import (
    build_fallback_visualization as _fallback,
    list_compatible_models as _compatible,
    profile_csv as _profile,
    render_visualization_tool as _render,
)

mcp = FastMCP("Eidos 3D Visualizations")


@mcp.tool()
def profile_csv(path: str):
    """Load a CSV file and return its column type profile."""
    return _profile.invoke({"path": path})


@mcp.tool()
def list_compatible_models(data_json: str, columns: str = ""):
    """List the 3D visualization models compatible with the data."""
    return _compatible.invoke({"data_json": data_json, "columns": columns})


@mcp.tool()
def render_visualization(model_id: str, data_json: str, columns: str = ""):
    """Compute the Plotly 3D figure for one catalogue model."""
    return _render.invoke({"model_id": model_id, "data_json": data_json, "columns": columns})


@mcp.tool()
def build_fallback_visualization(requested_type: str, data_json: str = "[]", columns: str = ""):
    """Build a deterministic local 3D config."""
    return _fallback.invoke({"requested_type": requested_type, "data_json": data_json,
                             "columns": columns})


if __name__ == "__main__":
    from src.logging_setup import setup_logging

    setup_logging()
    mcp.run(transport="stdio")
