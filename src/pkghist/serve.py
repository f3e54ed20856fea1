"""
MCP server for pkghist.

Exposes package history queries as tools and resources for AI agents.

Usage:
    pkghist serve                    # stdio transport
    pkghist serve --transport sse    # SSE transport (for HTTP clients)
"""

from __future__ import annotations

import json
from typing import Any

from fastmcp import FastMCP

from pkghist.core import (
    Direction,
    PkghistError,
    PkghistConfig,
    QueryOptions,
    parse_after,
    parse_limit,
)
from pkghist.events import read_log
from pkghist.query import run_query

# Create the MCP server
mcp = FastMCP(
    "pkghist",
    instructions=(
        "Package history from pacman's logfile. "
        "Use tools to find when packages were installed, upgraded, downgraded or removed."
    ),
)


# ============================================================================
# Implementation Functions
# (Separated from decorators so they can be called from resources)
# ============================================================================


def _history_impl(
    logfile: str | None = None,
    filters: list[str] | None = None,
    exclude: bool = False,
    removed_only: bool = False,
    with_removed: bool = False,
    after: str | None = None,
    limit: int | None = None,
    first: int | None = None,
    last: int | None = None,
    details: bool = True,
) -> dict[str, Any]:
    """Implementation of history query."""
    try:
        config = PkghistConfig.load()
        direction = None
        if first is not None and last is not None:
            return {"error": "first and last cannot be used together"}
        if first is not None:
            direction = Direction.first(first)
        elif last is not None:
            direction = Direction.last(last)
        options = QueryOptions(
            removed_only=removed_only,
            with_removed=with_removed,
            filters=filters or [],
            exclude=exclude,
            after=parse_after(after) if after else None,
            limit=parse_limit(limit) if limit is not None else config.limit,
            direction=direction,
        )
    except PkghistError as e:
        return {"error": str(e)}

    path = logfile or config.logfile
    try:
        events = read_log(path)
    except OSError as e:
        return {"error": f"Unable to open {path}: {e.strerror or e}"}

    histories = run_query(events, options)
    packages: list[Any]
    if details:
        packages = [h.to_dict() for h in histories]
    else:
        packages = [h.package for h in histories]
    return {"logfile": str(path), "packages": packages, "count": len(histories)}


# ============================================================================
# Tools
# ============================================================================


@mcp.tool()
def history(
    filters: list[str] | None = None,
    exclude: bool = False,
    removed_only: bool = False,
    with_removed: bool = False,
    after: str | None = None,
    limit: int | None = None,
    first: int | None = None,
    last: int | None = None,
    logfile: str | None = None,
) -> dict[str, Any]:
    """Get the version history of packages.

    Args:
        filters: Regular expressions selecting packages (partial match)
        exclude: Return packages NOT matching the filters
        removed_only: Only packages that are currently removed
        with_removed: Include packages that are currently removed
        after: Only events after this date ("YYYY-MM-DD HH:MM")
        limit: Max events per package (most recent)
        first: Only the N packages touched earliest (not with filters)
        last: Only the N packages touched most recently (not with filters)
        logfile: Path to the pacman logfile (default: /var/log/pacman.log)

    Returns:
        Packages with their events, sorted by name
    """
    return _history_impl(
        logfile, filters, exclude, removed_only, with_removed, after, limit, first, last
    )


@mcp.tool()
def packages(
    filters: list[str] | None = None,
    exclude: bool = False,
    removed_only: bool = False,
    with_removed: bool = False,
    after: str | None = None,
    logfile: str | None = None,
) -> dict[str, Any]:
    """List package names matching the query, without their events."""
    return _history_impl(
        logfile, filters, exclude, removed_only, with_removed, after, details=False
    )


# ============================================================================
# Resources
# ============================================================================


@mcp.resource("pkghist://packages")
def resource_packages() -> str:
    """Currently installed packages from the default logfile."""
    result = _history_impl(details=False)
    return json.dumps(result, indent=2)


# ============================================================================
# Entry point
# ============================================================================


def serve(transport: str = "stdio", port: int = 8080) -> None:
    """Start the MCP server.

    Args:
        transport: Transport type ("stdio" or "sse")
        port: Port for SSE transport
    """
    if transport == "stdio":
        mcp.run()
    elif transport == "sse":
        mcp.run(transport="sse", port=port)
    else:
        raise ValueError(f"Unknown transport: {transport}")


if __name__ == "__main__":
    serve()
