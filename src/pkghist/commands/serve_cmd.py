"""
Serve command for pkghist CLI.

Handles starting the MCP server for AI agent integration.
"""

from __future__ import annotations

import argparse
import sys


def cmd_serve(args: argparse.Namespace) -> None:
    """Start the MCP server for AI agent integration."""
    try:
        from pkghist.serve import serve
    except ImportError:
        print("Error: MCP dependencies not installed.", file=sys.stderr)
        print("Install with: pip install pkghist[mcp]", file=sys.stderr)
        sys.exit(1)

    serve(transport=args.transport, port=args.port)
